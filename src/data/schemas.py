"""
Module: schemas

Purpose: Pydantic models for the contact dataset and the structures derived from it.

All models use Pydantic v2 for validation with strict type hints. Rows are immutable
once loaded; derived models (links, nodes, hierarchy nodes) are rebuilt on every call.
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# COLUMN NAMES
# =============================================================================

COUNTRY = "Country"
ISO3 = "ISO3"
WHO_REGION = "WHO_Region"
YEAR = "Year"
CONTACTS = "Estimated_Household_Contacts"
CONTACTS_PCT = "Prev_Treatment_Contacts_Pct"
KIDS_PCT = "Prev_Treatment_Kids_Pct"

REQUIRED_COLUMNS: tuple[str, ...] = (
    COUNTRY,
    ISO3,
    YEAR,
    WHO_REGION,
    CONTACTS,
    CONTACTS_PCT,
    KIDS_PCT,
)

NUMERIC_COLUMNS: tuple[str, ...] = (YEAR, CONTACTS, CONTACTS_PCT, KIDS_PCT)

# Dataset column -> ContactRecord attribute, for the columns a hierarchy can group by
GROUPABLE_FIELDS: dict[str, str] = {
    WHO_REGION: "who_region",
    COUNTRY: "country",
    ISO3: "iso3",
    YEAR: "year",
}


# =============================================================================
# BASE MODELS
# =============================================================================


class BaseSchema(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        populate_by_name=True,
    )


def coerce_number(value: Any) -> float:
    """Coerce a CSV cell to float, yielding NaN when it is not numeric."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


# =============================================================================
# DATASET ROW
# =============================================================================


class ContactRecord(BaseSchema):
    """One country-year observation from the LTBI household-contact dataset."""

    country: str = Field(alias=COUNTRY)
    iso3: str = Field(alias=ISO3)
    who_region: str = Field(alias=WHO_REGION)
    year: int | None = Field(default=None, alias=YEAR)
    estimated_household_contacts: float = Field(default=math.nan, alias=CONTACTS)
    prev_treatment_contacts_pct: float = Field(default=math.nan, alias=CONTACTS_PCT)
    prev_treatment_kids_pct: float = Field(default=math.nan, alias=KIDS_PCT)

    # Passthrough columns not used by any chart
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> int | None:
        number = coerce_number(value)
        if not math.isfinite(number) or not number.is_integer():
            return None
        return int(number)

    @field_validator(
        "estimated_household_contacts",
        "prev_treatment_contacts_pct",
        "prev_treatment_kids_pct",
        mode="before",
    )
    @classmethod
    def _coerce_numeric(cls, value: Any) -> float:
        return coerce_number(value)

    @property
    def contacts(self) -> float:
        """Shorthand for the household contact estimate."""
        return self.estimated_household_contacts

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary keyed by the dataset column names."""
        data = self.model_dump(by_alias=True, exclude={"extra"})
        data.update(self.extra)
        return data

    def __repr__(self) -> str:
        return (
            f"ContactRecord(country={self.country!r}, iso3={self.iso3!r}, "
            f"region={self.who_region!r}, year={self.year!r}, "
            f"contacts={self.estimated_household_contacts!r})"
        )


# =============================================================================
# GRAPH SCHEMAS
# =============================================================================


class Link(BaseSchema):
    """Edge of the synthetic ring topology between two countries."""

    source: str
    target: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target, "value": self.value}


class Node(BaseSchema):
    """Unique country appearing as a link endpoint."""

    id: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id}


# =============================================================================
# HIERARCHY SCHEMAS
# =============================================================================


class GroupingConfig(BaseSchema):
    """Column sequence a hierarchy is grouped by, outermost level first."""

    keys: tuple[str, ...] = Field(min_length=1)

    @field_validator("keys")
    @classmethod
    def _known_keys(cls, keys: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [k for k in keys if k not in GROUPABLE_FIELDS]
        if unknown:
            raise ValueError(
                f"Unknown grouping keys {unknown}; expected any of {sorted(GROUPABLE_FIELDS)}"
            )
        if len(set(keys)) != len(keys):
            raise ValueError(f"Grouping keys must be unique, got {list(keys)}")
        return keys

    def attribute_for(self, depth: int) -> str:
        """ContactRecord attribute used for grouping at a given depth (0-based)."""
        return GROUPABLE_FIELDS[self.keys[depth]]


TREEMAP_GROUPING = GroupingConfig(keys=(WHO_REGION,))
SUNBURST_GROUPING = GroupingConfig(keys=(WHO_REGION, COUNTRY))


class HierarchyNode(BaseSchema):
    """Node of an aggregated group tree.

    Internal nodes are groups named by a key value; leaves wrap a single record.
    The value of an internal node is the sum of its children's values.
    """

    name: str
    depth: int = Field(ge=0)
    value: float = 0.0
    key: str | None = None
    children: list["HierarchyNode"] = Field(default_factory=list)
    record: ContactRecord | None = None

    @property
    def is_leaf(self) -> bool:
        return self.record is not None

    def descendants(self) -> list["HierarchyNode"]:
        """All nodes in pre-order, starting with this one."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.descendants())
        return nodes

    def leaves(self) -> list["HierarchyNode"]:
        """Record leaves in dataset order within each group."""
        return [n for n in self.descendants() if n.is_leaf]

    def find(self, *path: str) -> "HierarchyNode | None":
        """Follow child names from this node, e.g. ``root.find("EUR", "France")``."""
        node: HierarchyNode | None = self
        for name in path:
            if node is None:
                return None
            node = next((c for c in node.children if c.name == name), None)
        return node

    def to_dict(self) -> dict[str, Any]:
        """Convert to a nested dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "name": self.name,
            "depth": self.depth,
            "value": self.value,
        }
        if self.key is not None:
            data["key"] = self.key
        if self.record is not None:
            data["country"] = self.record.country
            data["iso3"] = self.record.iso3
            data["region"] = self.record.who_region
            data["year"] = self.record.year
        else:
            data["children"] = [c.to_dict() for c in self.children]
        return data
