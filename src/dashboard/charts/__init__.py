"""
D3 chart specifications for the dashboard.

This module provides functions to create ChartSpec objects for each
visualization type. The specs contain the data and configuration that
the D3.js code needs to render the charts.

Each chart type has its own module with a create_*_spec function.
"""

from src.dashboard.charts.choropleth import create_choropleth_spec
from src.dashboard.charts.force_graph import create_force_graph_spec
from src.dashboard.charts.sunburst import create_sunburst_spec
from src.dashboard.charts.timeline import create_timeline_spec
from src.dashboard.charts.treemap import create_treemap_spec

__all__ = [
    "create_choropleth_spec",
    "create_force_graph_spec",
    "create_sunburst_spec",
    "create_timeline_spec",
    "create_treemap_spec",
]
