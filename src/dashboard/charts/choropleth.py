"""
Choropleth world map specification.

Colours each boundary feature by its household-contact estimate on a
sequential blue scale whose domain is recomputed from the live dataset.
"""

from src.dashboard.base import ChartSpec
from src.dashboard.data_queries import ChoroplethData


def create_choropleth_spec(
    chart_id: str,
    data: ChoroplethData,
    *,
    width: int = 960,
    height: int = 500,
    projection_scale: int = 130,
    max_zoom: int = 8,
) -> ChartSpec:
    """Create a choropleth map specification.

    Args:
        chart_id: Unique identifier for the chart
        data: Bound boundary features and colour domain
        width: Chart width in pixels
        height: Chart height in pixels
        projection_scale: Mercator projection scale
        max_zoom: Upper bound of the zoom scale extent

    Returns:
        ChartSpec for D3 geo rendering
    """
    legend = [
        {"index": i, "fraction": i / len(data.legend_stops), "value": value}
        for i, value in enumerate(data.legend_stops)
    ]

    return ChartSpec(
        chart_id=chart_id,
        chart_type="choropleth",
        data={
            "features": data.features,
            "domain": list(data.domain),
            "legend": legend,
        },
        config={
            "width": width,
            "height": height,
            "projection": "mercator",
            "projectionScale": projection_scale,
            "translate": [width / 2, height / 1.4],
            "interpolator": "Blues",
            "stroke": "white",
            "strokeWidth": 0.5,
            "legendWidth": 200,
            "legendSwatch": 20,
            "legendTicks": 5,
            "legendTickFormat": ".0s",
            "legendLabel": "Contacts",
            "tooltip": "{name}: {contacts}",
            "year": data.year,
        },
        interactions=[
            {
                "event": "zoom",
                "action": "transform_map",
                "params": {"scaleExtent": [1, max_zoom]},
            },
            {
                "event": "click",
                "action": "zoom_to_feature",
                "params": {"fit": 0.9, "duration": 750, "scaleExtent": [1, max_zoom]},
            },
        ],
        annotations=[],
    )
