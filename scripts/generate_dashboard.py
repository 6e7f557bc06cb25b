#!/usr/bin/env python3
"""
Generate the household-contact dashboard from the LTBI estimates CSV.

This script builds a single HTML page with five D3 charts: a force-directed
graph, a world map, a timeline, a treemap and a sunburst.

Usage:
    # Generate the dashboard with defaults
    python scripts/generate_dashboard.py --data data/LTBI_estimates_cleaned.csv

    # Use a local boundary file and only two charts
    python scripts/generate_dashboard.py --boundaries data/world.geojson --charts choropleth,timeline

    # Map a single year and keep the CSV row order in the timeline
    python scripts/generate_dashboard.py --map-year 2022 --no-sort-timeline

    # Apply manual narrative overrides
    python scripts/generate_dashboard.py --overrides config/dashboard_overrides.yaml

    # Export auto-generated narratives (to edit and use as overrides)
    python scripts/generate_dashboard.py --export-narratives config/narratives_draft.yaml

    # Also write static PNG figures
    python scripts/generate_dashboard.py --static-dir output/figures
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.dashboard.overrides import create_template_override_file, export_narratives_to_yaml
from src.dashboard.sections import CHART_IDS
from src.exceptions import DashboardError
from src.pipeline import (
    PipelineConfig,
    format_pipeline_summary,
    load_pipeline_config,
    run_pipeline,
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate the TB household-contact dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML file with a 'pipeline:' section; command line options take precedence",
    )

    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="CSV file with the contact estimates (default: data/LTBI_estimates_cleaned.csv)",
    )

    parser.add_argument(
        "--boundaries",
        type=str,
        default=None,
        help="GeoJSON file or URL with country boundaries; 'none' to skip the map boundaries",
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for the output HTML file (default: output/dashboard)",
    )

    parser.add_argument(
        "--charts",
        type=str,
        default="all",
        help=f"Comma-separated list of charts. Options: {', '.join(CHART_IDS)}, all (default: all)",
    )

    parser.add_argument(
        "--map-year",
        type=int,
        default=None,
        help="Only map rows from this year (default: last row per country wins)",
    )

    parser.add_argument(
        "--no-sort-timeline",
        action="store_true",
        help="Keep each country's timeline points in CSV order instead of sorting by year",
    )

    parser.add_argument(
        "--overrides",
        type=str,
        default=None,
        help="Path to YAML file with narrative overrides",
    )

    parser.add_argument(
        "--export-narratives",
        type=str,
        default=None,
        help="Export auto-generated narratives to YAML file for editing",
    )

    parser.add_argument(
        "--create-template",
        type=str,
        default=None,
        help="Create a template override file with all narrative fields",
    )

    parser.add_argument(
        "--static-dir",
        type=str,
        default=None,
        help="Also write static PNG figures to this directory",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Merge the optional config file with command line options."""
    config = load_pipeline_config(args.config) if args.config else PipelineConfig()

    if args.data:
        config.data_path = args.data
    if args.boundaries:
        config.boundary_source = None if args.boundaries.lower() == "none" else args.boundaries
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.charts != "all":
        config.charts = [c.strip() for c in args.charts.split(",") if c.strip()]
    if args.map_year is not None:
        config.map_year = args.map_year
    if args.no_sort_timeline:
        config.sort_timeline = False
    if args.overrides:
        config.overrides_path = args.overrides
    if args.static_dir:
        config.static_dir = args.static_dir

    return config


def main(argv: list[str] | None = None) -> int:
    """Main dashboard generation workflow."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.create_template:
        create_template_override_file(args.create_template)
        print(f"Created template override file: {args.create_template}")

    try:
        config = build_config(args)
        result = run_pipeline(config)
    except DashboardError as e:
        logger.error(f"Dashboard generation failed: {e.message}")
        for key, value in e.context.items():
            logger.error(f"  {key}: {value}")
        return 1

    if args.export_narratives:
        export_narratives_to_yaml(result.narratives, args.export_narratives)
        print(f"Exported narratives to: {args.export_narratives}")

    print(format_pipeline_summary(result))

    if result.output_path:
        output_file = result.output_path.absolute()
        print(f"\nDashboard generated successfully!")
        print(f"Open in browser: file://{output_file}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
