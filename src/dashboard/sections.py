"""
Dashboard panel builders.

Each builder pairs one chart spec with its narrative and the key metrics shown
under the chart. The panel ids match the page anchors of the dashboard.
"""

from src.dashboard.base import ChartNarrative, DashboardSection
from src.dashboard.charts import (
    create_choropleth_spec,
    create_force_graph_spec,
    create_sunburst_spec,
    create_timeline_spec,
    create_treemap_spec,
)
from src.dashboard.data_queries import (
    ChartDataBundle,
    ChoroplethData,
    GraphData,
    HierarchyData,
    TimelineData,
)
from src.dashboard.narratives import (
    CHOROPLETH_ID,
    FORCE_GRAPH_ID,
    SUNBURST_ID,
    TIMELINE_ID,
    TREEMAP_ID,
    format_contacts,
    generate_choropleth_narrative,
    generate_force_graph_narrative,
    generate_sunburst_narrative,
    generate_timeline_narrative,
    generate_treemap_narrative,
)
from src.exceptions import ChartSpecError

# Chart id -> DOM id of its panel, in display order
SECTION_IDS = {
    FORCE_GRAPH_ID: "force-directed-graph",
    CHOROPLETH_ID: "map-chart",
    TIMELINE_ID: "timeline",
    TREEMAP_ID: "hierarchical-tree-map",
    SUNBURST_ID: "sunburst-chart",
}

CHART_IDS = tuple(SECTION_IDS)


def create_force_graph_section(
    data: GraphData,
    narratives: dict[str, ChartNarrative] | None = None,
) -> DashboardSection:
    """Create the force-directed graph panel."""
    narratives = narratives or {}
    narrative = narratives.get(FORCE_GRAPH_ID) or generate_force_graph_narrative(data)

    return DashboardSection(
        section_id=SECTION_IDS[FORCE_GRAPH_ID],
        chart=create_force_graph_spec(FORCE_GRAPH_ID, data),
        narrative=narrative,
        key_metrics={
            "Nodes": f"{data.node_count:,}",
            "Links": f"{data.link_count:,}",
            "Total link weight": format_contacts(data.total_weight),
        },
    )


def create_choropleth_section(
    data: ChoroplethData,
    narratives: dict[str, ChartNarrative] | None = None,
) -> DashboardSection:
    """Create the world map panel."""
    narratives = narratives or {}
    narrative = narratives.get(CHOROPLETH_ID) or generate_choropleth_narrative(data)

    key_metrics = {
        "Countries with data": f"{len(data.contacts_by_iso3):,}",
        "Boundaries matched": f"{data.matched_count:,}",
        "Boundaries without data": f"{data.unmatched_count:,}",
    }
    if data.top_iso3 is not None:
        key_metrics["Highest"] = f"{data.top_iso3} ({format_contacts(data.top_contacts)})"

    return DashboardSection(
        section_id=SECTION_IDS[CHOROPLETH_ID],
        chart=create_choropleth_spec(CHOROPLETH_ID, data),
        narrative=narrative,
        key_metrics=key_metrics,
    )


def create_timeline_section(
    data: TimelineData,
    narratives: dict[str, ChartNarrative] | None = None,
) -> DashboardSection:
    """Create the timeline panel."""
    narratives = narratives or {}
    narrative = narratives.get(TIMELINE_ID) or generate_timeline_narrative(data)

    key_metrics = {"Countries": f"{data.country_count:,}"}
    if data.year_extent is not None:
        key_metrics["Years"] = f"{data.year_extent[0]}-{data.year_extent[1]}"
    key_metrics["Peak"] = format_contacts(data.max_contacts)

    return DashboardSection(
        section_id=SECTION_IDS[TIMELINE_ID],
        chart=create_timeline_spec(TIMELINE_ID, data),
        narrative=narrative,
        key_metrics=key_metrics,
    )


def _hierarchy_metrics(data: HierarchyData) -> dict[str, str]:
    metrics = {
        "Groups": f"{data.group_count:,}",
        "Rows": f"{data.leaf_count:,}",
        "Total contacts": format_contacts(data.total),
    }
    if data.largest_group is not None:
        metrics["Largest group"] = f"{data.largest_group} ({data.largest_group_share * 100:.0f}%)"
    return metrics


def create_treemap_section(
    data: HierarchyData,
    narratives: dict[str, ChartNarrative] | None = None,
) -> DashboardSection:
    """Create the treemap panel."""
    narratives = narratives or {}
    narrative = narratives.get(TREEMAP_ID) or generate_treemap_narrative(data)

    return DashboardSection(
        section_id=SECTION_IDS[TREEMAP_ID],
        chart=create_treemap_spec(TREEMAP_ID, data),
        narrative=narrative,
        key_metrics=_hierarchy_metrics(data),
    )


def create_sunburst_section(
    data: HierarchyData,
    narratives: dict[str, ChartNarrative] | None = None,
) -> DashboardSection:
    """Create the sunburst panel."""
    narratives = narratives or {}
    narrative = narratives.get(SUNBURST_ID) or generate_sunburst_narrative(data)

    return DashboardSection(
        section_id=SECTION_IDS[SUNBURST_ID],
        chart=create_sunburst_spec(SUNBURST_ID, data),
        narrative=narrative,
        key_metrics=_hierarchy_metrics(data),
    )


def create_sections(
    data: ChartDataBundle,
    narratives: dict[str, ChartNarrative] | None = None,
    charts: list[str] | tuple[str, ...] | None = None,
) -> list[DashboardSection]:
    """Create panels for the selected charts, in display order.

    Args:
        data: Reshaped data for every chart
        narratives: Optional narratives (with possible overrides)
        charts: Chart ids to include; None means all five

    Returns:
        List of DashboardSection in display order

    Raises:
        ChartSpecError: If an unknown chart id is requested
    """
    selected = list(CHART_IDS) if charts is None else list(charts)

    unknown = [c for c in selected if c not in SECTION_IDS]
    if unknown:
        raise ChartSpecError(
            f"Unknown chart ids {unknown}; expected any of {list(CHART_IDS)}",
            chart_type=unknown[0],
        )

    builders = {
        FORCE_GRAPH_ID: lambda: create_force_graph_section(data.graph, narratives),
        CHOROPLETH_ID: lambda: create_choropleth_section(data.choropleth, narratives),
        TIMELINE_ID: lambda: create_timeline_section(data.timeline, narratives),
        TREEMAP_ID: lambda: create_treemap_section(data.treemap, narratives),
        SUNBURST_ID: lambda: create_sunburst_section(data.sunburst, narratives),
    }

    return [builders[chart_id]() for chart_id in CHART_IDS if chart_id in selected]
