"""
Timeline chart specification.

One line per country plotting household contacts against year.
"""

from typing import Any

from src.dashboard.base import ChartSpec
from src.dashboard.data_queries import TimelineData


def create_timeline_spec(
    chart_id: str,
    data: TimelineData,
    *,
    width: int = 800,
    height: int = 300,
    margin: dict[str, int] | None = None,
) -> ChartSpec:
    """Create a per-country timeline specification.

    Points without a usable year cannot be placed on the x axis and are left
    out of the series; the line generator would otherwise emit an invalid path.

    Args:
        chart_id: Unique identifier for the chart
        data: Timeline data grouped by country
        width: Chart width in pixels
        height: Chart height in pixels
        margin: Plot margins (top, right, bottom, left)

    Returns:
        ChartSpec for D3 line rendering
    """
    margin = margin or {"top": 20, "right": 30, "bottom": 30, "left": 50}

    series: list[dict[str, Any]] = []
    for country, records in data.series.items():
        points = [
            {"year": r.year, "contacts": r.contacts}
            for r in records
            if r.year is not None
        ]
        series.append({"country": country, "points": points})

    x_domain = list(data.year_extent) if data.year_extent else []

    annotations = []
    if data.peak_country is not None:
        annotations.append({
            "type": "peak",
            "country": data.peak_country,
            "year": data.peak_year,
            "value": data.max_contacts,
        })

    return ChartSpec(
        chart_id=chart_id,
        chart_type="timeline",
        data={"series": series},
        config={
            "width": width,
            "height": height,
            "margin": margin,
            "xDomain": x_domain,
            "yDomain": [0, data.max_contacts],
            "xLabel": "Year",
            "yLabel": "Estimated Household Contacts",
            "stroke": "steelblue",
            "strokeWidth": 1.5,
            "sortedByYear": data.sorted_by_year,
        },
        interactions=[
            {
                "event": "hover",
                "action": "show_tooltip",
                "params": {"field": "country"},
            },
        ],
        annotations=annotations,
    )
