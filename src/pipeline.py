"""
Module: pipeline

Purpose: Main orchestrator for the end-to-end dashboard build.

Key Functions:
- run_pipeline: Execute the complete build from CSV to HTML page
- build_dashboard: Compose the chart sections into a Dashboard value
- PipelineConfig: Configuration for pipeline execution
- PipelineResult: Container for pipeline outputs

Architecture Notes:
- Stages: data loading, boundary loading, reshaping, narratives,
  composition, rendering, static figures
- Each stage is timed and logged
- Failures propagate: domain errors unchanged, anything else as PipelineError
"""

import logging
import time
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import yaml

from src.dashboard.base import ChartNarrative, Dashboard, DashboardConfig
from src.dashboard.data_queries import ChartDataBundle, query_all_chart_data
from src.dashboard.narratives import generate_all_narratives
from src.dashboard.overrides import apply_overrides, load_overrides_safe
from src.dashboard.renderers.html import render_dashboard_html, save_dashboard_html
from src.dashboard.sections import create_sections
from src.data.boundaries import DEFAULT_BOUNDARY_URL, load_boundaries_safe
from src.data.local_loader import DEFAULT_DATA_FILE, load_contact_data
from src.data.schemas import ContactRecord
from src.exceptions import DashboardError, DataLoadError, PipelineError

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class PipelineConfig:
    """Configuration for pipeline execution."""

    # Inputs
    data_path: str = f"data/{DEFAULT_DATA_FILE}"
    boundary_source: str | None = DEFAULT_BOUNDARY_URL  # None = map without boundaries
    overrides_path: str | None = None

    # Reshaping
    sort_timeline: bool = True
    map_year: int | None = None

    # Chart ids to include (None = all five)
    charts: list[str] | None = None

    # Output options
    output_dir: str = "output/dashboard"
    output_filename: str = "index.html"
    render_html: bool = True
    static_dir: str | None = None  # None = no static figures
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir) / self.output_filename


def load_pipeline_config(path: Path | str) -> PipelineConfig:
    """Load a PipelineConfig from the `pipeline:` section of a YAML file.

    Expected YAML format:
    ```yaml
    pipeline:
      data_path: data/LTBI_estimates_cleaned.csv
      map_year: 2022
      charts: [choropleth, timeline]
      dashboard:
        title: "Household contacts"
    ```

    Unknown keys are logged and ignored.

    Args:
        path: Path to the YAML config file

    Returns:
        PipelineConfig with the file's values over the defaults

    Raises:
        FileNotFoundError: If the config file doesn't exist
        yaml.YAMLError: If the YAML is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    section = (data.get("pipeline") or {}) if isinstance(data, dict) else {}

    known = {f.name for f in fields(PipelineConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        logger.warning(f"Ignoring unknown pipeline config keys: {unknown}")

    values = {key: value for key, value in section.items() if key in known}

    if isinstance(values.get("dashboard"), dict):
        dashboard_known = {f.name for f in fields(DashboardConfig)}
        values["dashboard"] = DashboardConfig(
            **{k: v for k, v in values["dashboard"].items() if k in dashboard_known}
        )

    return PipelineConfig(**values)


@dataclass
class PipelineStageResult:
    """Result from a single pipeline stage."""

    stage_name: str
    success: bool
    duration_ms: float
    metrics: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None


@dataclass
class PipelineResult:
    """Complete pipeline execution result."""

    # Core outputs
    records: list[ContactRecord]
    features: list[dict[str, Any]]
    bundle: ChartDataBundle
    narratives: dict[str, ChartNarrative]
    dashboard: Dashboard

    # Rendered page and written files
    html: str | None = None
    output_path: Path | None = None
    figure_paths: list[Path] = field(default_factory=list)

    # Metadata
    config: PipelineConfig = field(default_factory=PipelineConfig)
    stage_results: list[PipelineStageResult] = field(default_factory=list)
    total_duration_ms: float = 0.0

    def get_summary(self) -> dict[str, Any]:
        """Get summary of pipeline results."""
        return {
            "records": len(self.records),
            "features": len(self.features),
            "charts": [s.chart.chart_id for s in self.dashboard.sections],
            "output_path": str(self.output_path) if self.output_path else None,
            "figures": [str(p) for p in self.figure_paths],
            "total_duration_ms": self.total_duration_ms,
            "stages": [
                {
                    "name": s.stage_name,
                    "success": s.success,
                    "duration_ms": s.duration_ms,
                }
                for s in self.stage_results
            ],
        }


# =============================================================================
# PIPELINE EXECUTION
# =============================================================================


def _time_stage(
    stage_name: str,
    func: Callable[[], Any],
    stage_results: list[PipelineStageResult],
) -> Any:
    """Execute a stage, time it and record the outcome."""
    logger.info(f"Starting: {stage_name}")

    start = time.perf_counter()
    try:
        result = func()
    except Exception as e:
        duration = (time.perf_counter() - start) * 1000
        stage_results.append(PipelineStageResult(
            stage_name=stage_name,
            success=False,
            duration_ms=duration,
            error_message=str(e),
        ))
        logger.error(f"Failed: {stage_name} - {e}")

        if isinstance(e, DashboardError):
            raise
        raise PipelineError(f"Stage '{stage_name}' failed: {e}", stage=stage_name) from e

    duration = (time.perf_counter() - start) * 1000
    stage_results.append(PipelineStageResult(
        stage_name=stage_name,
        success=True,
        duration_ms=duration,
    ))
    logger.info(f"Completed: {stage_name} ({duration:.1f}ms)")

    return result


def build_dashboard(
    bundle: ChartDataBundle,
    narratives: dict[str, ChartNarrative] | None = None,
    config: PipelineConfig | None = None,
) -> Dashboard:
    """Compose the chart sections into a Dashboard value.

    Args:
        bundle: Reshaped data for every chart
        narratives: Optional narratives (with possible overrides)
        config: Pipeline configuration (chart selection and page options)

    Returns:
        Dashboard with one section per selected chart
    """
    config = config or PipelineConfig()

    sections = create_sections(bundle, narratives, config.charts)

    return Dashboard(
        dashboard_id="ltbi-household-contacts",
        title=config.dashboard.title,
        subtitle=config.dashboard.subtitle,
        sections=sections,
        generated_at=datetime.now(),
        record_count=bundle.record_count,
        country_count=bundle.country_count,
        region_count=bundle.region_count,
        year_range=bundle.year_range,
    )


def run_pipeline(
    config: PipelineConfig | None = None,
    *,
    records: list[ContactRecord] | None = None,
    features: list[dict[str, Any]] | None = None,
) -> PipelineResult:
    """
    Execute the complete dashboard build.

    Records and features can be passed in directly; otherwise they are loaded
    from config.data_path and config.boundary_source.

    Args:
        config: Pipeline configuration
        records: Optional pre-loaded dataset rows
        features: Optional pre-loaded boundary features

    Returns:
        PipelineResult with all outputs

    Raises:
        DataLoadError: If the dataset cannot be read
        DataValidationError: If the dataset lacks a required column
        PipelineError: If any other stage fails
    """
    config = config or PipelineConfig()
    start_time = time.perf_counter()
    stage_results: list[PipelineStageResult] = []

    # Stage 1: Data Loading
    def load_data() -> list[ContactRecord]:
        if records is not None:
            return list(records)

        result = load_contact_data(config.data_path)
        if not result.ok:
            raise DataLoadError(
                f"Could not load {config.data_path}",
                path=str(config.data_path),
                errors=result.errors,
            )
        return result.records

    rows = _time_stage("Data Loading", load_data, stage_results)
    stage_results[-1].metrics = {"n_records": len(rows)}

    # Stage 2: Boundary Loading
    def load_features() -> list[dict[str, Any]]:
        if features is not None:
            return list(features)
        return load_boundaries_safe(config.boundary_source)

    boundary_features = _time_stage("Boundary Loading", load_features, stage_results)
    stage_results[-1].metrics = {"n_features": len(boundary_features)}

    # Stage 3: Reshaping
    bundle = _time_stage(
        "Reshaping",
        lambda: query_all_chart_data(
            rows,
            boundary_features,
            sort_timeline=config.sort_timeline,
            map_year=config.map_year,
        ),
        stage_results,
    )
    stage_results[-1].metrics = {
        "n_links": bundle.graph.link_count,
        "n_series": bundle.timeline.country_count,
        "n_regions": bundle.treemap.group_count,
    }

    # Stage 4: Narratives
    def make_narratives() -> dict[str, ChartNarrative]:
        narratives = generate_all_narratives(bundle)
        overrides = load_overrides_safe(config.overrides_path)
        return apply_overrides(narratives, overrides) if overrides else narratives

    narratives = _time_stage("Narratives", make_narratives, stage_results)

    # Stage 5: Composition
    dashboard = _time_stage(
        "Composition",
        lambda: build_dashboard(bundle, narratives, config),
        stage_results,
    )
    stage_results[-1].metrics = {"n_sections": len(dashboard.sections)}

    result = PipelineResult(
        records=rows,
        features=boundary_features,
        bundle=bundle,
        narratives=narratives,
        dashboard=dashboard,
        config=config,
        stage_results=stage_results,
    )

    # Stage 6: Rendering
    if config.render_html:
        def render() -> str:
            html = render_dashboard_html(dashboard, config.dashboard)
            save_dashboard_html(html, config.output_path)
            return html

        result.html = _time_stage("Rendering", render, stage_results)
        result.output_path = config.output_path

    # Stage 7: Static Figures
    if config.static_dir:
        from src.reporting.visuals import save_dashboard_figures

        result.figure_paths = _time_stage(
            "Static Figures",
            lambda: save_dashboard_figures(bundle, config.static_dir),
            stage_results,
        )

    result.total_duration_ms = (time.perf_counter() - start_time) * 1000
    return result


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def get_pipeline_metrics(result: PipelineResult) -> dict[str, Any]:
    """
    Extract key metrics from pipeline result.

    Args:
        result: PipelineResult

    Returns:
        Dictionary of metrics
    """
    bundle = result.bundle
    metrics: dict[str, Any] = {
        "total_duration_ms": result.total_duration_ms,
        "n_records": bundle.record_count,
        "n_countries": bundle.country_count,
        "n_regions": bundle.region_count,
        "n_features": len(result.features),
        "n_links": bundle.graph.link_count,
        "n_nodes": bundle.graph.node_count,
        "n_matched_features": bundle.choropleth.matched_count,
        "total_contacts": bundle.treemap.total,
        "n_sections": len(result.dashboard.sections),
    }

    # Add stage timings
    stage_timings = {
        f"stage_{s.stage_name.lower().replace(' ', '_')}_ms": s.duration_ms
        for s in result.stage_results
    }
    metrics.update(stage_timings)

    return metrics


def format_pipeline_summary(result: PipelineResult) -> str:
    """
    Format pipeline result as human-readable summary.

    Args:
        result: PipelineResult

    Returns:
        Formatted summary string
    """
    bundle = result.bundle
    years = f"{bundle.year_range[0]}-{bundle.year_range[1]}" if bundle.year_range else "n/a"

    lines = [
        "=" * 60,
        "DASHBOARD PIPELINE RESULTS",
        "=" * 60,
        "",
        f"Duration: {result.total_duration_ms:.1f}ms",
        "",
        "DATA:",
        f"  - Rows: {bundle.record_count:,}",
        f"  - Countries: {bundle.country_count:,}",
        f"  - Regions: {bundle.region_count:,}",
        f"  - Years: {years}",
        f"  - Boundary features: {len(result.features):,}",
        "",
        "CHARTS:",
    ]
    for section in result.dashboard.sections:
        lines.append(f"  - {section.title}")

    lines.extend([
        "",
        "STAGE TIMINGS:",
    ])
    for stage in result.stage_results:
        status = "✓" if stage.success else "✗"
        lines.append(f"  {status} {stage.stage_name}: {stage.duration_ms:.1f}ms")

    if result.output_path:
        lines.extend(["", f"Output: {result.output_path}"])

    lines.extend([
        "",
        "=" * 60,
    ])

    return "\n".join(lines)
