"""
Sunburst chart specification.

Rings for WHO region and country around an empty centre, partitioned by
household contacts.
"""

from src.dashboard.base import ChartSpec
from src.dashboard.data_queries import HierarchyData


def create_sunburst_spec(
    chart_id: str,
    data: HierarchyData,
    *,
    width: int = 800,
    height: int = 600,
    label_depth: int = 1,
) -> ChartSpec:
    """Create a sunburst specification.

    Args:
        chart_id: Unique identifier for the chart
        data: Aggregated hierarchy (region -> country)
        width: Chart width in pixels
        height: Chart height in pixels
        label_depth: Ring whose segments get text labels

    Returns:
        ChartSpec for D3 partition rendering
    """
    return ChartSpec(
        chart_id=chart_id,
        chart_type="sunburst",
        data={
            "root": data.root.to_dict(),
            "keys": list(data.grouping.keys),
        },
        config={
            "width": width,
            "height": height,
            "radius": min(width, height) / 2,
            "colorScheme": "category10",
            "stroke": "#fff",
            "labelDepth": label_depth,
            "rootLabel": "Root",
            "tooltip": "Region/Country: {name}, Estimated Contacts: {value}",
        },
        interactions=[
            {
                "event": "hover",
                "action": "show_tooltip",
                "params": {"field": "name"},
            },
        ],
        annotations=[],
    )
