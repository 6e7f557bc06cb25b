"""
Dashboard module for the household-contact charts.

This module turns the contact dataset into five D3 charts on one HTML page.
Each chart is described by a JSON-serialisable ChartSpec; the page is a
Dashboard value composed of one section per chart.

Key components:
- base: Core dataclasses (Dashboard, DashboardSection, ChartSpec, ChartNarrative)
- data_queries: Reshape rows into per-chart structures
- narratives: Auto-generate chart titles and captions from the data
- overrides: Load/apply manual narrative overrides from YAML
- charts: D3 chart specifications for each visualization type
- sections: Pair each chart with its narrative and key metrics
- renderers: HTML rendering with Jinja2 templates

Example usage:
    from src.dashboard.data_queries import query_all_chart_data
    from src.dashboard.sections import create_sections

    bundle = query_all_chart_data(records, features)
    sections = create_sections(bundle)
"""

from src.dashboard.base import (
    ChartNarrative,
    ChartSpec,
    Dashboard,
    DashboardConfig,
    DashboardSection,
)

__all__ = [
    # Core dataclasses
    "ChartNarrative",
    "ChartSpec",
    "Dashboard",
    "DashboardConfig",
    "DashboardSection",
]
