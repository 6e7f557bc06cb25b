"""
Tests for the dashboard pipeline orchestrator and the CLI script.
"""

import importlib.util
from pathlib import Path

import pytest

import src.pipeline as pipeline_module
from src.dashboard.base import DashboardConfig
from src.dashboard.narratives import CHOROPLETH_ID, TIMELINE_ID
from src.data.local_loader import records_from_dicts
from src.exceptions import ChartSpecError, DataLoadError, DataValidationError, PipelineError
from src.pipeline import (
    PipelineConfig,
    PipelineResult,
    build_dashboard,
    format_pipeline_summary,
    get_pipeline_metrics,
    load_pipeline_config,
    run_pipeline,
)

PROJECT_ROOT = Path(__file__).parent.parent

HEADER = (
    "Country,ISO3,Year,WHO_Region,Estimated_Household_Contacts,"
    "Prev_Treatment_Contacts_Pct,Prev_Treatment_Kids_Pct"
)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def csv_path(tmp_path: Path) -> Path:
    path = tmp_path / "contacts.csv"
    path.write_text(
        "\n".join([
            HEADER,
            "Kenya,KEN,2020,AFR,1500,12,35",
            "Kenya,KEN,2019,AFR,1200,10,30",
            "Peru,PER,2020,AMR,400,8,20",
            "India,IND,2020,SEA,250000,5,18",
        ]) + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def features() -> list[dict]:
    return [
        {"type": "Feature", "id": "KEN", "properties": {"name": "Kenya"}, "geometry": None},
        {"type": "Feature", "id": "FRA", "properties": {"name": "France"}, "geometry": None},
    ]


@pytest.fixture
def config(tmp_path: Path, csv_path: Path) -> PipelineConfig:
    return PipelineConfig(
        data_path=str(csv_path),
        boundary_source=None,
        output_dir=str(tmp_path / "output"),
    )


# =============================================================================
# CONFIG TESTS
# =============================================================================


class TestPipelineConfig:
    """Tests for PipelineConfig and YAML loading."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.sort_timeline is True
        assert config.map_year is None
        assert config.charts is None
        assert config.output_path == Path("output/dashboard/index.html")

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text(
            "pipeline:\n"
            "  data_path: data/other.csv\n"
            "  map_year: 2021\n"
            "  sort_timeline: false\n"
            "  charts: [choropleth, timeline]\n"
            "  dashboard:\n"
            "    title: Custom title\n",
            encoding="utf-8",
        )
        config = load_pipeline_config(path)

        assert config.data_path == "data/other.csv"
        assert config.map_year == 2021
        assert config.sort_timeline is False
        assert config.charts == ["choropleth", "timeline"]
        assert isinstance(config.dashboard, DashboardConfig)
        assert config.dashboard.title == "Custom title"

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("pipeline:\n  colour: red\n  map_year: 2020\n", encoding="utf-8")
        assert load_pipeline_config(path).map_year == 2020

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("", encoding="utf-8")
        assert load_pipeline_config(path) == PipelineConfig()

    def test_shipped_config(self):
        config = load_pipeline_config(PROJECT_ROOT / "config" / "dashboard.yaml")
        assert config.charts is None
        assert config.dashboard.show_metrics is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_pipeline_config(tmp_path / "missing.yaml")


# =============================================================================
# PIPELINE TESTS
# =============================================================================


class TestRunPipeline:
    """Tests for run_pipeline."""

    def test_end_to_end(self, config, features):
        result = run_pipeline(config, features=features)

        assert isinstance(result, PipelineResult)
        assert len(result.records) == 4
        assert len(result.dashboard.sections) == 5
        assert result.output_path.exists()
        assert result.html.startswith("<!DOCTYPE html>")
        assert result.total_duration_ms > 0

    def test_stage_results(self, config):
        result = run_pipeline(config)

        assert [s.stage_name for s in result.stage_results] == [
            "Data Loading",
            "Boundary Loading",
            "Reshaping",
            "Narratives",
            "Composition",
            "Rendering",
        ]
        assert all(s.success for s in result.stage_results)
        assert result.stage_results[0].metrics == {"n_records": 4}

    def test_records_passed_directly(self, tmp_path):
        records = records_from_dicts([
            {"Country": "A", "ISO3": "AAA", "WHO_Region": "R1", "Year": 2020,
             "Estimated_Household_Contacts": 10},
            {"Country": "B", "ISO3": "BBB", "WHO_Region": "R1", "Year": 2020,
             "Estimated_Household_Contacts": 20},
        ])
        config = PipelineConfig(boundary_source=None, render_html=False, data_path="unused.csv")

        result = run_pipeline(config, records=records)

        assert result.bundle.treemap.root.find("R1").value == 30.0
        assert [n.id for n in result.bundle.graph.nodes] == ["A", "B"]
        assert result.html is None
        assert result.output_path is None

    def test_timeline_sort_and_map_year(self, config):
        config.sort_timeline = False
        config.map_year = 2019
        result = run_pipeline(config)

        assert [r.year for r in result.bundle.timeline.series["Kenya"]] == [2020, 2019]
        assert result.bundle.choropleth.contacts_by_iso3 == {"KEN": 1200.0}

    def test_chart_selection(self, config):
        config.charts = [TIMELINE_ID, CHOROPLETH_ID]
        result = run_pipeline(config)

        assert [s.chart.chart_id for s in result.dashboard.sections] == [CHOROPLETH_ID, TIMELINE_ID]

    def test_unknown_chart(self, config):
        config.charts = ["radar"]
        with pytest.raises(ChartSpecError):
            run_pipeline(config)

    def test_overrides_applied(self, config, tmp_path):
        overrides = tmp_path / "overrides.yaml"
        overrides.write_text("narratives:\n  timeline:\n    headline: My timeline\n", encoding="utf-8")
        config.overrides_path = str(overrides)

        result = run_pipeline(config)

        assert result.narratives[TIMELINE_ID].headline == "My timeline"
        assert "My timeline" in result.html

    def test_missing_data_file(self, config, tmp_path):
        config.data_path = str(tmp_path / "missing.csv")

        with pytest.raises(DataLoadError) as exc_info:
            run_pipeline(config)

        assert exc_info.value.errors
        assert exc_info.value.path.endswith("missing.csv")

    def test_missing_column(self, config, tmp_path):
        bad = tmp_path / "bad.csv"
        bad.write_text("Country,ISO3\nKenya,KEN\n", encoding="utf-8")
        config.data_path = str(bad)

        with pytest.raises(DataValidationError):
            run_pipeline(config)

    def test_unexpected_failure_wrapped(self, config, monkeypatch):
        def explode(*args, **kwargs):
            raise ValueError("boom")

        monkeypatch.setattr(pipeline_module, "query_all_chart_data", explode)

        with pytest.raises(PipelineError) as exc_info:
            run_pipeline(config)

        assert exc_info.value.stage == "Reshaping"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_unreachable_boundaries_render_without_map(self, config, tmp_path):
        config.boundary_source = str(tmp_path / "missing.geojson")
        result = run_pipeline(config)

        assert result.features == []
        assert result.bundle.choropleth.features == []

    def test_static_figures(self, config, tmp_path):
        import matplotlib

        matplotlib.use("Agg")
        config.static_dir = str(tmp_path / "figures")

        result = run_pipeline(config)

        assert len(result.figure_paths) == 4
        assert result.stage_results[-1].stage_name == "Static Figures"


# =============================================================================
# COMPOSITION AND SUMMARY TESTS
# =============================================================================


class TestBuildDashboard:
    """Tests for build_dashboard and the summaries."""

    def test_dashboard_metadata(self, config):
        result = run_pipeline(config)
        dashboard = build_dashboard(result.bundle, result.narratives, config)

        assert dashboard.record_count == 4
        assert dashboard.country_count == 3
        assert dashboard.region_count == 3
        assert dashboard.year_range == (2019, 2020)
        assert dashboard.title == config.dashboard.title

    def test_metrics(self, config, features):
        result = run_pipeline(config, features=features)
        metrics = get_pipeline_metrics(result)

        assert metrics["n_records"] == 4
        assert metrics["n_links"] == 4
        assert metrics["n_features"] == 2
        assert metrics["n_matched_features"] == 1
        assert metrics["total_contacts"] == 1500 + 1200 + 400 + 250000
        assert "stage_data_loading_ms" in metrics

    def test_summary_text(self, config):
        result = run_pipeline(config)
        summary = format_pipeline_summary(result)

        assert "DASHBOARD PIPELINE RESULTS" in summary
        assert "Rows: 4" in summary
        assert "Sunburst Chart" in summary

    def test_get_summary(self, config):
        summary = run_pipeline(config).get_summary()
        assert summary["records"] == 4
        assert len(summary["charts"]) == 5


# =============================================================================
# CLI TESTS
# =============================================================================


@pytest.fixture
def cli():
    spec = importlib.util.spec_from_file_location(
        "generate_dashboard", PROJECT_ROOT / "scripts" / "generate_dashboard.py"
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestCli:
    """Tests for scripts/generate_dashboard.py."""

    def test_build_config_from_args(self, cli):
        args = cli.parse_args([
            "--data", "x.csv",
            "--boundaries", "none",
            "--charts", "timeline, treemap",
            "--map-year", "2020",
            "--no-sort-timeline",
        ])
        config = cli.build_config(args)

        assert config.data_path == "x.csv"
        assert config.boundary_source is None
        assert config.charts == ["timeline", "treemap"]
        assert config.map_year == 2020
        assert config.sort_timeline is False

    def test_main_generates_page(self, cli, csv_path, tmp_path, capsys):
        output_dir = tmp_path / "site"
        narratives = tmp_path / "narratives.yaml"

        code = cli.main([
            "--data", str(csv_path),
            "--boundaries", "none",
            "--output-dir", str(output_dir),
            "--export-narratives", str(narratives),
        ])

        assert code == 0
        assert (output_dir / "index.html").exists()
        assert narratives.exists()
        assert "Dashboard generated successfully" in capsys.readouterr().out

    def test_main_reports_load_failure(self, cli, tmp_path):
        code = cli.main([
            "--data", str(tmp_path / "missing.csv"),
            "--boundaries", "none",
            "--output-dir", str(tmp_path / "site"),
        ])
        assert code == 1
