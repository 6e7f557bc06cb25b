"""
Data query functions for dashboard generation.

This module reshapes the flat list of ContactRecords into the structure each
chart needs:
- Graph: synthetic ring topology (links and unique nodes)
- Choropleth: ISO3 -> contacts lookup merged onto boundary features
- Timeline: per-country series ordered by year
- Treemap / sunburst: aggregated region (-> country) hierarchies

Every function is a pure transformation: no caching, no mutation of inputs,
and empty input yields empty output.
"""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from src.data.schemas import (
    SUNBURST_GROUPING,
    TREEMAP_GROUPING,
    ContactRecord,
    GroupingConfig,
    HierarchyNode,
    Link,
    Node,
)

logger = logging.getLogger(__name__)

LEGEND_STEPS = 10


# =============================================================================
# DATA RESULT CLASSES
# =============================================================================


@dataclass
class GraphData:
    """Data for the force-directed graph."""

    nodes: list[Node] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)

    # The ring topology pairs consecutive rows; it encodes no real relationship
    synthetic: bool = True

    total_weight: float = 0.0

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def link_count(self) -> int:
        return len(self.links)


@dataclass
class ChoroplethData:
    """Data for the choropleth world map."""

    # Boundary features with properties.contacts set
    features: list[dict[str, Any]] = field(default_factory=list)

    contacts_by_iso3: dict[str, float] = field(default_factory=dict)

    # Colour scale domain [0, max contacts] and the legend sample values
    domain: tuple[float, float] = (0.0, 0.0)
    legend_stops: list[float] = field(default_factory=list)

    # Binding statistics
    matched_count: int = 0
    unmatched_count: int = 0

    # Optional year filter applied to the lookup
    year: int | None = None

    top_iso3: str | None = None
    top_contacts: float = 0.0


@dataclass
class TimelineData:
    """Data for the contacts-over-time timeline."""

    # Country -> records, in first-appearance order of countries
    series: dict[str, list[ContactRecord]] = field(default_factory=dict)

    year_extent: tuple[int, int] | None = None
    max_contacts: float = 0.0
    sorted_by_year: bool = True

    # Single highest observation
    peak_country: str | None = None
    peak_year: int | None = None

    @property
    def country_count(self) -> int:
        return len(self.series)


@dataclass
class HierarchyData:
    """Data for the treemap and sunburst charts."""

    root: HierarchyNode
    grouping: GroupingConfig

    group_count: int = 0
    leaf_count: int = 0

    # Largest top-level group and its share of the total
    largest_group: str | None = None
    largest_group_share: float = 0.0

    @property
    def total(self) -> float:
        return self.root.value


# =============================================================================
# GRAPH RESHAPER
# =============================================================================


def build_ring_links(records: Sequence[ContactRecord]) -> list[Link]:
    """Pair each row with the next one (wrapping around) to form a ring.

    This is a synthetic topology: the dataset has no country-to-country
    relationships, so consecutive rows in dataset order are linked to give the
    force layout something to draw. Link weight is the source row's contacts.
    """
    n = len(records)
    return [
        Link(
            source=record.country,
            target=records[(i + 1) % n].country,
            value=record.contacts,
        )
        for i, record in enumerate(records)
    ]


def extract_nodes(links: Sequence[Link]) -> list[Node]:
    """Unique link endpoints in first-appearance order."""
    names = dict.fromkeys(name for link in links for name in (link.source, link.target))
    return [Node(id=name) for name in names]


def query_graph_data(records: Sequence[ContactRecord]) -> GraphData:
    """Build the synthetic ring graph for the force-directed chart."""
    links = build_ring_links(records)
    nodes = extract_nodes(links)

    return GraphData(
        nodes=nodes,
        links=links,
        total_weight=_finite_sum(link.value for link in links),
    )


# =============================================================================
# CHOROPLETH BINDER
# =============================================================================


def contacts_by_iso3(
    records: Sequence[ContactRecord],
    year: int | None = None,
) -> dict[str, float]:
    """Map ISO3 code to contacts; later rows overwrite earlier ones.

    Rows with a blank ISO3 have no join key and are left out.

    Args:
        records: Dataset rows in dataset order
        year: Only use rows from this year (None = all rows)
    """
    lookup: dict[str, float] = {}
    for record in records:
        if not record.iso3 or (year is not None and record.year != year):
            continue
        lookup[record.iso3] = record.contacts
    return lookup


def feature_iso3(feature: dict[str, Any]) -> str | None:
    """ISO3 join key of a boundary feature."""
    feature_id = feature.get("id")
    if isinstance(feature_id, str) and feature_id:
        return feature_id

    properties = feature.get("properties") or {}
    for key in ("ISO3", "iso_a3"):
        value = properties.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def bind_contacts(
    features: Sequence[dict[str, Any]],
    lookup: dict[str, float],
) -> list[dict[str, Any]]:
    """Return copies of the features with ``properties.contacts`` set.

    Matching is exact ISO3 equality. Unmatched features, and matches whose
    value is not a finite number, get 0. The input features are not modified.
    """
    bound = []
    for feature in features:
        iso3 = feature_iso3(feature)
        value = lookup.get(iso3) if iso3 else None
        properties = dict(feature.get("properties") or {})
        properties["contacts"] = value if value is not None and math.isfinite(value) else 0
        bound.append({**feature, "properties": properties})
    return bound


def contact_domain(records: Sequence[ContactRecord]) -> tuple[float, float]:
    """Colour scale domain: 0 to the largest finite contact value."""
    return (0.0, _finite_max(r.contacts for r in records))


def query_choropleth_data(
    records: Sequence[ContactRecord],
    features: Sequence[dict[str, Any]] | None = None,
    *,
    year: int | None = None,
) -> ChoroplethData:
    """Bind contacts onto boundary features and compute the colour domain.

    Args:
        records: Dataset rows
        features: Boundary features (already loaded); None = no map geometry
        year: Optional year filter for the ISO3 lookup
    """
    features = features or []
    lookup = contacts_by_iso3(records, year=year)
    bound = bind_contacts(features, lookup)

    matched = sum(1 for f in features if feature_iso3(f) in lookup)
    if features and matched < len(features):
        logger.debug(f"{len(features) - matched} boundary features have no matching ISO3 row")

    domain = contact_domain(records)
    top_iso3, top_value = _top_entry(lookup)

    return ChoroplethData(
        features=bound,
        contacts_by_iso3=lookup,
        domain=domain,
        legend_stops=[domain[1] * i / LEGEND_STEPS for i in range(LEGEND_STEPS)],
        matched_count=matched,
        unmatched_count=len(features) - matched,
        year=year,
        top_iso3=top_iso3,
        top_contacts=top_value,
    )


# =============================================================================
# TIMELINE GROUPER
# =============================================================================


def _year_sort_key(record: ContactRecord) -> tuple[bool, int]:
    # Rows without a usable year go last
    return (record.year is None, record.year or 0)


def group_by_country(
    records: Sequence[ContactRecord],
    *,
    sort_by_year: bool = True,
) -> dict[str, list[ContactRecord]]:
    """Group rows by country, keeping countries in first-appearance order.

    Args:
        records: Dataset rows
        sort_by_year: Stable-sort each group by year; False keeps dataset order

    Returns:
        Country -> list of its rows
    """
    groups = _group_in_order(records, lambda r: r.country)
    if sort_by_year:
        return {country: sorted(rows, key=_year_sort_key) for country, rows in groups.items()}
    return groups


def query_timeline_data(
    records: Sequence[ContactRecord],
    *,
    sort_by_year: bool = True,
) -> TimelineData:
    """Build per-country time series for the timeline chart."""
    series = group_by_country(records, sort_by_year=sort_by_year)

    years = [r.year for r in records if r.year is not None]
    year_extent = (min(years), max(years)) if years else None

    peak = _peak_record(records)

    return TimelineData(
        series=series,
        year_extent=year_extent,
        max_contacts=_finite_max(r.contacts for r in records),
        sorted_by_year=sort_by_year,
        peak_country=peak.country if peak else None,
        peak_year=peak.year if peak else None,
    )


# =============================================================================
# HIERARCHY BUILDER
# =============================================================================


def build_hierarchy(
    records: Sequence[ContactRecord],
    grouping: GroupingConfig,
    *,
    name: str = "root",
) -> HierarchyNode:
    """Group rows by the configured keys and aggregate contacts bottom-up.

    Groups appear in first-appearance order. Leaves wrap the original records;
    a leaf's value is its contacts, with non-finite values counted as 0.

    Args:
        records: Dataset rows
        grouping: Key sequence, e.g. TREEMAP_GROUPING or SUNBURST_GROUPING
        name: Name of the root node

    Returns:
        Root HierarchyNode whose value is the total over all rows
    """
    return _build_level(records, grouping, depth=0, name=name, key=None)


def _build_level(
    records: Sequence[ContactRecord],
    grouping: GroupingConfig,
    *,
    depth: int,
    name: str,
    key: str | None,
) -> HierarchyNode:
    if depth < len(grouping.keys):
        attribute = grouping.attribute_for(depth)
        groups = _group_in_order(records, lambda r: getattr(r, attribute))
        children = [
            _build_level(
                rows,
                grouping,
                depth=depth + 1,
                name=_group_label(value),
                key=grouping.keys[depth],
            )
            for value, rows in groups.items()
        ]
    else:
        children = [_leaf(record, depth + 1) for record in records]

    return HierarchyNode(
        name=name,
        depth=depth,
        value=math.fsum(child.value for child in children),
        key=key,
        children=children,
    )


def _leaf(record: ContactRecord, depth: int) -> HierarchyNode:
    value = record.contacts if math.isfinite(record.contacts) else 0.0
    return HierarchyNode(name=record.country, depth=depth, value=value, record=record)


def _group_label(value: Any) -> str:
    return "Unknown" if value is None else str(value)


def query_hierarchy_data(
    records: Sequence[ContactRecord],
    grouping: GroupingConfig,
) -> HierarchyData:
    """Build an aggregated hierarchy plus summary statistics."""
    root = build_hierarchy(records, grouping)

    largest = max(root.children, key=lambda c: c.value, default=None)
    share = largest.value / root.value if largest is not None and root.value > 0 else 0.0

    return HierarchyData(
        root=root,
        grouping=grouping,
        group_count=len(root.children),
        leaf_count=len(root.leaves()),
        largest_group=largest.name if largest is not None else None,
        largest_group_share=share,
    )


# =============================================================================
# BUNDLE
# =============================================================================


@dataclass
class ChartDataBundle:
    """Reshaped data for every chart."""

    graph: GraphData
    choropleth: ChoroplethData
    timeline: TimelineData
    treemap: HierarchyData
    sunburst: HierarchyData

    # Metadata
    record_count: int = 0
    country_count: int = 0
    region_count: int = 0
    year_range: tuple[int, int] | None = None


def query_all_chart_data(
    records: Sequence[ContactRecord],
    features: Sequence[dict[str, Any]] | None = None,
    *,
    sort_timeline: bool = True,
    map_year: int | None = None,
    treemap_grouping: GroupingConfig = TREEMAP_GROUPING,
    sunburst_grouping: GroupingConfig = SUNBURST_GROUPING,
) -> ChartDataBundle:
    """Query all chart data from the dataset.

    Args:
        records: Dataset rows
        features: Boundary features for the map
        sort_timeline: Sort each country's series by year
        map_year: Optional year filter for the map
        treemap_grouping: Grouping keys for the treemap
        sunburst_grouping: Grouping keys for the sunburst

    Returns:
        ChartDataBundle with all chart data
    """
    timeline = query_timeline_data(records, sort_by_year=sort_timeline)

    bundle = ChartDataBundle(
        graph=query_graph_data(records),
        choropleth=query_choropleth_data(records, features, year=map_year),
        timeline=timeline,
        treemap=query_hierarchy_data(records, treemap_grouping),
        sunburst=query_hierarchy_data(records, sunburst_grouping),
        record_count=len(records),
        country_count=timeline.country_count,
        region_count=len({r.who_region for r in records}),
        year_range=timeline.year_extent,
    )

    logger.debug(
        f"Reshaped {bundle.record_count} rows: {bundle.graph.link_count} links, "
        f"{bundle.country_count} series, {bundle.treemap.group_count} regions"
    )
    return bundle


# =============================================================================
# HELPERS
# =============================================================================


def _group_in_order(
    records: Sequence[ContactRecord],
    key: Callable[[ContactRecord], Any],
) -> dict[Any, list[ContactRecord]]:
    groups: dict[Any, list[ContactRecord]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def _finite_values(values: Any) -> np.ndarray:
    array = np.fromiter(values, dtype=float)
    return array[np.isfinite(array)]


def _finite_max(values: Any) -> float:
    finite = _finite_values(values)
    return float(finite.max()) if finite.size else 0.0


def _finite_sum(values: Any) -> float:
    return float(_finite_values(values).sum())


def _top_entry(lookup: dict[str, float]) -> tuple[str | None, float]:
    finite = {k: v for k, v in lookup.items() if math.isfinite(v)}
    if not finite:
        return None, 0.0
    top = max(finite, key=finite.__getitem__)
    return top, finite[top]


def _peak_record(records: Sequence[ContactRecord]) -> ContactRecord | None:
    finite = [r for r in records if math.isfinite(r.contacts)]
    return max(finite, key=lambda r: r.contacts, default=None)
