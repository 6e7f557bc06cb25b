"""
Hierarchical treemap specification.

Rectangles for every dataset row, nested in WHO region groups and sized by
household contacts.
"""

from src.dashboard.base import ChartSpec
from src.dashboard.data_queries import HierarchyData


def create_treemap_spec(
    chart_id: str,
    data: HierarchyData,
    *,
    width: int = 800,
    height: int = 600,
    padding: int = 1,
) -> ChartSpec:
    """Create a treemap specification.

    Node values are the aggregates computed in Python; the renderer uses them
    as-is instead of re-summing.

    Args:
        chart_id: Unique identifier for the chart
        data: Aggregated hierarchy
        width: Chart width in pixels
        height: Chart height in pixels
        padding: Padding between tiles

    Returns:
        ChartSpec for D3 treemap rendering
    """
    return ChartSpec(
        chart_id=chart_id,
        chart_type="treemap",
        data={
            "root": data.root.to_dict(),
            "keys": list(data.grouping.keys),
        },
        config={
            "width": width,
            "height": height,
            "padding": padding,
            "fill": "steelblue",
            "labelField": "country",
            "labelOffset": [3, 10],
        },
        interactions=[
            {
                "event": "hover",
                "action": "show_tooltip",
                "params": {"field": "country"},
            },
        ],
        annotations=[],
    )
