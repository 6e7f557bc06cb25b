"""
Auto-narrative generation from the reshaped chart data.

Each chart gets a headline (its title), a one-line insight computed from the
data, and a callout describing how to interact with it. Narratives update
automatically with the dataset and can be overridden from YAML.
"""

from src.dashboard.base import ChartNarrative
from src.dashboard.data_queries import (
    ChartDataBundle,
    ChoroplethData,
    GraphData,
    HierarchyData,
    TimelineData,
)

FORCE_GRAPH_ID = "force_graph"
CHOROPLETH_ID = "choropleth"
TIMELINE_ID = "timeline"
TREEMAP_ID = "treemap"
SUNBURST_ID = "sunburst"

NO_DATA_INSIGHT = "No rows were loaded, so this chart is empty."


def format_contacts(value: float) -> str:
    """Short human-readable contact count, e.g. 1.2M or 45K."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.0f}K"
    return f"{value:,.0f}"


# =============================================================================
# NARRATIVE GENERATORS
# =============================================================================


def generate_force_graph_narrative(data: GraphData) -> ChartNarrative:
    """Generate narrative for the force-directed graph."""
    if not data.links:
        insight = NO_DATA_INSIGHT
    else:
        insight = (
            f"{data.node_count:,} countries joined by {data.link_count:,} links. "
            f"Links connect consecutive rows of the dataset and are not real relationships."
        )

    return ChartNarrative(
        chart_id=FORCE_GRAPH_ID,
        auto_headline="Force-Directed Graph: Relationships Between Countries",
        auto_insight=insight,
        auto_callout="Drag a node to pin it; release to let the layout settle.",
    )


def generate_choropleth_narrative(data: ChoroplethData) -> ChartNarrative:
    """Generate narrative for the world map."""
    if not data.contacts_by_iso3:
        insight = NO_DATA_INSIGHT
    elif data.top_iso3 is not None:
        insight = (
            f"{data.top_iso3} has the most household contacts "
            f"({format_contacts(data.top_contacts)}). "
            f"{data.matched_count:,} of {data.matched_count + data.unmatched_count:,} "
            f"mapped countries have data."
        )
    else:
        insight = "No country has a numeric contact estimate."

    if data.year is not None:
        insight += f" Showing {data.year}."

    return ChartNarrative(
        chart_id=CHOROPLETH_ID,
        auto_headline="World Map: Estimated Household Contacts by Country",
        auto_insight=insight,
        auto_callout="Scroll to zoom, drag to pan, click a country to zoom to it.",
    )


def generate_timeline_narrative(data: TimelineData) -> ChartNarrative:
    """Generate narrative for the timeline."""
    if not data.series:
        insight = NO_DATA_INSIGHT
    elif data.year_extent is None:
        insight = f"{data.country_count:,} countries, but no row has a usable year."
    else:
        start, end = data.year_extent
        insight = f"{data.country_count:,} countries tracked from {start} to {end}."
        if data.peak_country is not None:
            insight += (
                f" The highest estimate is {data.peak_country} in {data.peak_year} "
                f"({format_contacts(data.max_contacts)})."
            )

    return ChartNarrative(
        chart_id=TIMELINE_ID,
        auto_headline="Timeline: Estimated Household Contacts Over Time",
        auto_insight=insight,
        auto_callout="Hover a line to see which country it belongs to.",
    )


def _hierarchy_insight(data: HierarchyData) -> str:
    if not data.root.children:
        return NO_DATA_INSIGHT
    return (
        f"{data.largest_group} accounts for {data.largest_group_share * 100:.0f}% "
        f"of {format_contacts(data.total)} estimated contacts across "
        f"{data.group_count} regions."
    )


def generate_treemap_narrative(data: HierarchyData) -> ChartNarrative:
    """Generate narrative for the treemap."""
    return ChartNarrative(
        chart_id=TREEMAP_ID,
        auto_headline="Hierarchical Tree Map: Household Contacts by WHO Region",
        auto_insight=_hierarchy_insight(data),
        auto_callout="Each tile is one country-year; tiles are grouped by region.",
    )


def generate_sunburst_narrative(data: HierarchyData) -> ChartNarrative:
    """Generate narrative for the sunburst."""
    return ChartNarrative(
        chart_id=SUNBURST_ID,
        auto_headline="Sunburst Chart: Household Contacts by Region and Country",
        auto_insight=_hierarchy_insight(data),
        auto_callout="Inner ring shows regions, outer rings show countries; hover for totals.",
    )


def generate_all_narratives(data: ChartDataBundle) -> dict[str, ChartNarrative]:
    """Generate all narratives for the dashboard.

    Args:
        data: ChartDataBundle with all chart data

    Returns:
        Dictionary mapping chart_id to ChartNarrative
    """
    return {
        FORCE_GRAPH_ID: generate_force_graph_narrative(data.graph),
        CHOROPLETH_ID: generate_choropleth_narrative(data.choropleth),
        TIMELINE_ID: generate_timeline_narrative(data.timeline),
        TREEMAP_ID: generate_treemap_narrative(data.treemap),
        SUNBURST_ID: generate_sunburst_narrative(data.sunburst),
    }


def export_narratives_to_dict(narratives: dict[str, ChartNarrative]) -> dict[str, dict[str, str]]:
    """Export narratives to a dictionary format suitable for YAML.

    Args:
        narratives: Dictionary of ChartNarrative objects

    Returns:
        Dictionary with chart_id -> {headline, insight, callout}
    """
    result = {}
    for chart_id, narrative in narratives.items():
        result[chart_id] = {
            "headline": narrative.auto_headline,
            "insight": narrative.auto_insight,
            "callout": narrative.auto_callout,
        }
    return result
