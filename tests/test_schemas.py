"""
Tests for the Pydantic schemas.

Tests cover:
- Numeric coercion of CSV cells
- ContactRecord aliases, coercion and immutability
- Link / Node serialization
- GroupingConfig validation
- HierarchyNode traversal and serialization
"""

import math

import pytest
from pydantic import ValidationError

from src.data.schemas import (
    COUNTRY,
    SUNBURST_GROUPING,
    TREEMAP_GROUPING,
    WHO_REGION,
    YEAR,
    ContactRecord,
    GroupingConfig,
    HierarchyNode,
    Link,
    Node,
    coerce_number,
)


def make_record(**overrides) -> ContactRecord:
    data = {
        "Country": "Kenya",
        "ISO3": "KEN",
        "WHO_Region": "AFR",
        "Year": 2020,
        "Estimated_Household_Contacts": 1500.0,
        "Prev_Treatment_Contacts_Pct": 12.5,
        "Prev_Treatment_Kids_Pct": 40.0,
    }
    data.update(overrides)
    return ContactRecord.model_validate(data)


# =============================================================================
# COERCION
# =============================================================================


class TestCoerceNumber:
    """Tests for coerce_number."""

    def test_numeric_string(self):
        assert coerce_number("12.5") == 12.5

    def test_padded_string(self):
        assert coerce_number("  7 ") == 7.0

    def test_int_passthrough(self):
        assert coerce_number(3) == 3.0

    @pytest.mark.parametrize("value", ["", "   ", "n/a", None, True, object()])
    def test_non_numeric_is_nan(self, value):
        assert math.isnan(coerce_number(value))


# =============================================================================
# CONTACT RECORD
# =============================================================================


class TestContactRecord:
    """Tests for ContactRecord model."""

    def test_fields_from_column_names(self):
        record = make_record()
        assert record.country == "Kenya"
        assert record.iso3 == "KEN"
        assert record.who_region == "AFR"
        assert record.year == 2020
        assert record.contacts == 1500.0

    def test_populate_by_field_name(self):
        record = ContactRecord(country="Peru", iso3="PER", who_region="AMR")
        assert record.country == "Peru"
        assert record.year is None
        assert math.isnan(record.contacts)

    def test_strips_whitespace(self):
        record = make_record(Country="  Kenya ", ISO3=" KEN")
        assert record.country == "Kenya"
        assert record.iso3 == "KEN"

    def test_non_numeric_contacts_become_nan(self):
        record = make_record(Estimated_Household_Contacts="unknown")
        assert math.isnan(record.contacts)

    def test_float_year_string_is_integer(self):
        assert make_record(Year="2019.0").year == 2019

    @pytest.mark.parametrize("value", ["", "abc", "2019.5", float("nan"), None])
    def test_unusable_year_is_none(self, value):
        assert make_record(Year=value).year is None

    def test_is_frozen(self):
        record = make_record()
        with pytest.raises(ValidationError):
            record.country = "Uganda"

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            make_record(Population=1000)

    def test_missing_country_rejected(self):
        with pytest.raises(ValidationError):
            ContactRecord.model_validate({"ISO3": "KEN", "WHO_Region": "AFR"})

    def test_to_dict_uses_column_names_and_extra(self):
        record = make_record(extra={"Source": "WHO"})
        data = record.to_dict()
        assert data[COUNTRY] == "Kenya"
        assert data[YEAR] == 2020
        assert data["Source"] == "WHO"
        assert "extra" not in data

    def test_repr_mentions_country(self):
        assert "Kenya" in repr(make_record())


# =============================================================================
# GRAPH SCHEMAS
# =============================================================================


class TestGraphSchemas:
    """Tests for Link and Node."""

    def test_link_to_dict(self):
        link = Link(source="A", target="B", value=10.0)
        assert link.to_dict() == {"source": "A", "target": "B", "value": 10.0}

    def test_link_accepts_nan_weight(self):
        link = Link(source="A", target="B", value=float("nan"))
        assert math.isnan(link.value)

    def test_node_to_dict(self):
        assert Node(id="A").to_dict() == {"id": "A"}

    def test_nodes_compare_by_value(self):
        assert Node(id="A") == Node(id="A")


# =============================================================================
# GROUPING CONFIG
# =============================================================================


class TestGroupingConfig:
    """Tests for GroupingConfig validation."""

    def test_presets(self):
        assert TREEMAP_GROUPING.keys == (WHO_REGION,)
        assert SUNBURST_GROUPING.keys == (WHO_REGION, COUNTRY)

    def test_attribute_for_depth(self):
        assert SUNBURST_GROUPING.attribute_for(0) == "who_region"
        assert SUNBURST_GROUPING.attribute_for(1) == "country"

    def test_accepts_list(self):
        config = GroupingConfig(keys=["WHO_Region", "Year"])
        assert config.keys == ("WHO_Region", "Year")

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError, match="Unknown grouping keys"):
            GroupingConfig(keys=("Continent",))

    def test_empty_keys_rejected(self):
        with pytest.raises(ValidationError):
            GroupingConfig(keys=())

    def test_duplicate_keys_rejected(self):
        with pytest.raises(ValidationError, match="unique"):
            GroupingConfig(keys=("Country", "Country"))


# =============================================================================
# HIERARCHY NODE
# =============================================================================


@pytest.fixture
def small_tree() -> HierarchyNode:
    leaf_a = HierarchyNode(name="A", depth=2, value=10.0, record=make_record(Country="A"))
    leaf_b = HierarchyNode(name="B", depth=2, value=20.0, record=make_record(Country="B"))
    region = HierarchyNode(name="R1", depth=1, value=30.0, key=WHO_REGION, children=[leaf_a, leaf_b])
    return HierarchyNode(name="root", depth=0, value=30.0, children=[region])


class TestHierarchyNode:
    """Tests for HierarchyNode traversal and serialization."""

    def test_descendants_pre_order(self, small_tree):
        assert [n.name for n in small_tree.descendants()] == ["root", "R1", "A", "B"]

    def test_leaves(self, small_tree):
        assert [n.name for n in small_tree.leaves()] == ["A", "B"]

    def test_is_leaf(self, small_tree):
        assert not small_tree.is_leaf
        assert small_tree.children[0].children[0].is_leaf

    def test_find_path(self, small_tree):
        assert small_tree.find("R1").value == 30.0
        assert small_tree.find("R1", "B").value == 20.0
        assert small_tree.find("R2") is None
        assert small_tree.find("R2", "A") is None

    def test_negative_depth_rejected(self):
        with pytest.raises(ValidationError):
            HierarchyNode(name="x", depth=-1)

    def test_to_dict_internal_nodes_have_children(self, small_tree):
        data = small_tree.to_dict()
        assert data["name"] == "root"
        assert data["value"] == 30.0
        assert data["children"][0]["key"] == WHO_REGION

    def test_to_dict_leaves_carry_row_fields(self, small_tree):
        leaf = small_tree.to_dict()["children"][0]["children"][0]
        assert "children" not in leaf
        assert leaf["country"] == "A"
        assert leaf["iso3"] == "KEN"
        assert leaf["region"] == "AFR"
        assert leaf["year"] == 2020
