"""
Scene-description values for the contact dashboard.

Every chart builder returns plain values; nothing here touches the DOM.
- ChartNarrative: generated title and captions, each overridable from YAML
- ChartSpec: what the D3 renderer needs for one chart
- DashboardSection: a chart panel (spec + narrative + key metrics)
- Dashboard: the whole page, sections in display order
- DashboardConfig: page-level rendering options
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

NARRATIVE_PARTS = ("headline", "insight", "callout")


@dataclass
class ChartNarrative:
    """Generated text for one chart.

    ``headline`` is shown as the chart title, ``insight`` and ``callout`` as
    captions. An ``override_*`` value that is not None wins, including "".
    """

    chart_id: str

    auto_headline: str = ""  # "Timeline: Estimated Household Contacts Over Time"
    auto_insight: str = ""  # "India peaks at 2.1M contacts in 2019"
    auto_callout: str = ""  # "Hover a line to see the country"

    override_headline: str | None = None
    override_insight: str | None = None
    override_callout: str | None = None

    def _resolve(self, part: str) -> str:
        override = getattr(self, f"override_{part}")
        return getattr(self, f"auto_{part}") if override is None else override

    @property
    def headline(self) -> str:
        return self._resolve("headline")

    @property
    def insight(self) -> str:
        return self._resolve("insight")

    @property
    def callout(self) -> str:
        return self._resolve("callout")

    @property
    def has_overrides(self) -> bool:
        return any(getattr(self, f"override_{part}") is not None for part in NARRATIVE_PARTS)

    def to_dict(self) -> dict[str, Any]:
        resolved = {part: self._resolve(part) for part in NARRATIVE_PARTS}
        generated = {f"auto_{part}": getattr(self, f"auto_{part}") for part in NARRATIVE_PARTS}
        return {
            "chart_id": self.chart_id,
            **resolved,
            **generated,
            "has_overrides": self.has_overrides,
        }


@dataclass
class ChartSpec:
    """Data and options for one D3 chart.

    ``interactions`` lists pointer behaviours as
    ``{"event": ..., "action": ..., "params": {...}}``; ``annotations`` holds
    extra text such as notes about synthetic data. The whole spec is embedded
    in the page as JSON.
    """

    chart_id: str
    chart_type: str  # force_graph | choropleth | timeline | treemap | sunburst
    data: dict[str, Any] = field(default_factory=dict)
    config: dict[str, Any] = field(default_factory=dict)
    interactions: list[dict[str, Any]] = field(default_factory=list)
    annotations: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DashboardSection:
    """A single chart panel of the dashboard."""

    section_id: str  # DOM id of the panel, e.g. "force-directed-graph"
    chart: ChartSpec
    narrative: ChartNarrative
    key_metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.narrative.headline

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_id": self.section_id,
            "title": self.title,
            "chart": self.chart.to_dict(),
            "narrative": self.narrative.to_dict(),
            "key_metrics": dict(self.key_metrics),
        }


@dataclass
class Dashboard:
    """The composed page: sections plus dataset metadata for the header."""

    dashboard_id: str
    title: str
    subtitle: str
    sections: list[DashboardSection]

    generated_at: datetime = field(default_factory=datetime.now)
    record_count: int = 0
    country_count: int = 0
    region_count: int = 0
    year_range: tuple[int, int] | None = None

    # Filled from the sections when left empty
    toc_entries: list[dict[str, str]] = field(default_factory=list)

    def __post_init__(self):
        if not self.toc_entries:
            self.toc_entries = [{"id": s.section_id, "title": s.title} for s in self.sections]

    def get_section(self, section_id: str) -> DashboardSection | None:
        return next((s for s in self.sections if s.section_id == section_id), None)

    def chart_specs(self) -> dict[str, dict[str, Any]]:
        """Map chart_id to serialized chart spec, in section order."""
        return {s.chart.chart_id: s.chart.to_dict() for s in self.sections}

    def to_dict(self) -> dict[str, Any]:
        return {
            "dashboard_id": self.dashboard_id,
            "title": self.title,
            "subtitle": self.subtitle,
            "generated_at": self.generated_at.isoformat(),
            "record_count": self.record_count,
            "country_count": self.country_count,
            "region_count": self.region_count,
            "year_range": list(self.year_range) if self.year_range else None,
            "toc_entries": self.toc_entries,
            "sections": [s.to_dict() for s in self.sections],
        }


@dataclass
class DashboardConfig:
    """Page-level rendering options."""

    title: str = "Tuberculosis Household Contacts"
    subtitle: str = "Estimated household contacts of TB patients and preventive treatment coverage"
    show_metrics: bool = True  # key metrics table under each chart
    show_captions: bool = True  # insight and callout paragraphs
    cdn_base: str = "https://cdn.jsdelivr.net/npm"  # D3 is loaded from here

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
