#!/usr/bin/env python3
"""Quick start example for the household-contact dashboard.

Builds the dashboard from a handful of in-memory rows, without the CSV or
network access, and writes it to output/quick_start/index.html.

Usage:
    python examples/quick_start.py
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.data.local_loader import records_from_dicts
from src.pipeline import PipelineConfig, format_pipeline_summary, run_pipeline

ROWS = [
    ("Kenya", "KEN", "AFR", 2019, 1200),
    ("Kenya", "KEN", "AFR", 2020, 1500),
    ("Uganda", "UGA", "AFR", 2020, 800),
    ("Peru", "PER", "AMR", 2020, 400),
    ("Brazil", "BRA", "AMR", 2020, 30000),
    ("India", "IND", "SEA", 2019, 240000),
    ("India", "IND", "SEA", 2020, 250000),
]


def main() -> None:
    """Run a quick dashboard build."""
    print("=" * 60)
    print("Household Contact Dashboard - Quick Start Demo")
    print("=" * 60)

    records = records_from_dicts([
        {
            "Country": country,
            "ISO3": iso3,
            "WHO_Region": region,
            "Year": year,
            "Estimated_Household_Contacts": contacts,
        }
        for country, iso3, region, year, contacts in ROWS
    ])

    config = PipelineConfig(boundary_source=None, output_dir="output/quick_start")
    result = run_pipeline(config, records=records)

    print("\n" + format_pipeline_summary(result))

    print("\n" + "=" * 60)
    print("CHART NARRATIVES")
    print("=" * 60)

    for section in result.dashboard.sections:
        print(f"\n{section.title}")
        print("-" * 40)
        print(f"  {section.narrative.insight}")
        for name, value in section.key_metrics.items():
            print(f"  {name}: {value}")


if __name__ == "__main__":
    main()
