"""
DataGrid Criteria -- Builder Tests

Covers:
  - add() chains, upper-cases operators, rejects unknown ones
  - Marker entries (SORT, FACET, HIGHLIGHT) never count as filters
  - Sort entries keep declaration order and validate the order value
  - Control features: offset, limit, fetch policy, case sensitivity, search, suggest
  - from_params request mapping, with and without a schema
  - to_grid / from_grid round trip
"""

import pytest

from datagrid.criteria import (
    FETCH_PAGING,
    FETCH_VIRTUAL,
    Criteria,
)
from datagrid.doc import DataDoc
from datagrid.item import make_item
from datagrid.types import (
    ASCENDING,
    DESCENDING,
    DOUBLE,
    INTEGER,
    TEXT,
    DataTypeError,
    ValidationError,
)


def _schema():
    return DataDoc(items=[
        make_item("employee_id", INTEGER, primary=True),
        make_item("name"),
        make_item("salary", DOUBLE),
    ])


# ============================================================================
# 1. Entries
# ============================================================================


class TestEntries:
    def test_add_chains(self):
        criteria = Criteria().add("name", "equal", "Ada").add("salary", "GREATER_THAN", 1, type=DOUBLE)
        assert [(e.name, e.operator) for e in criteria] == [
            ("name", "EQUAL"),
            ("salary", "GREATER_THAN"),
        ]
        assert criteria.entries[1].values == [1.0]

    def test_unknown_operator(self):
        with pytest.raises(ValidationError):
            Criteria().add("name", "LIKE", "A%")

    def test_typed_values_coerced_on_add(self):
        with pytest.raises(DataTypeError):
            Criteria().add("salary", "EQUAL", "lots", type=DOUBLE)

    def test_case_sensitivity_flag(self):
        entry = Criteria().add("name", "CONTAINS", "ada", case_sensitive=False).entries[0]
        assert entry.case_sensitive is False

    def test_markers_are_not_filters(self):
        criteria = (
            Criteria()
            .add("dept", "FACET")
            .add("name", "HIGHLIGHT")
            .sort("salary", DESCENDING)
            .add("name", "NOT_EMPTY")
        )
        assert [e.operator for e in criteria.filter_entries()] == ["NOT_EMPTY"]
        assert criteria.facet_names() == ["dept"]

    def test_empty(self):
        assert Criteria().is_empty()
        assert not Criteria().add("name", "EMPTY").is_empty()


# ============================================================================
# 2. Sorting
# ============================================================================


class TestSortEntries:
    def test_declaration_order(self):
        criteria = Criteria().sort("dept").sort("salary", "descending")
        assert criteria.sort_entries() == [("dept", ASCENDING), ("salary", DESCENDING)]

    def test_bad_order_rejected(self):
        with pytest.raises(ValidationError):
            Criteria().sort("salary", "SIDEWAYS")


# ============================================================================
# 3. Control features
# ============================================================================


class TestFeatures:
    def test_defaults(self):
        criteria = Criteria()
        assert criteria.offset == 0
        assert criteria.limit == 0
        assert criteria.fetch_policy == FETCH_VIRTUAL
        assert criteria.search_term is None
        assert criteria.case_sensitive is True

    def test_string_values_parsed(self):
        criteria = Criteria(features={"_offset": "20", "_limit": "10", "_fetch_policy": "PAGING", "_case_sensitive": "no"})
        assert criteria.offset == 20
        assert criteria.limit == 10
        assert criteria.fetch_policy == FETCH_PAGING
        assert criteria.case_sensitive is False

    @pytest.mark.parametrize("key,value", [
        ("_offset", -1),
        ("_limit", "ten"),
        ("_fetch_policy", "scroll"),
        ("_case_sensitive", "maybe"),
    ])
    def test_invalid_features(self, key, value):
        with pytest.raises(ValidationError):
            Criteria().set_feature(key, value)

    def test_terms(self):
        criteria = Criteria()
        criteria.search_term = "alan"
        criteria.suggest_term = "al"
        assert criteria.features == {"_search": "alan", "_suggest": "al"}

    def test_copy_is_independent(self):
        criteria = Criteria().add("name", "IN", "a")
        dup = criteria.copy()
        dup.entries[0].item.add_value("b")
        dup.limit = 5
        assert criteria.entries[0].values == ["a"]
        assert criteria.limit == 0

    def test_case_insensitive_criteria_folds_every_filter(self):
        criteria = Criteria(features={"_case_sensitive": False}).add("name", "EQUAL", "ada").sort("name")
        assert [e.case_sensitive for e in criteria.filter_entries()] == [False]
        assert criteria.entries[0].case_sensitive is True


# ============================================================================
# 4. Request mapping
# ============================================================================


class TestFromParams:
    def test_plain_key_is_equal(self):
        criteria = Criteria.from_params({"name": "Ada"})
        entry = criteria.entries[0]
        assert (entry.name, entry.operator, entry.values) == ("name", "EQUAL", ["Ada"])

    def test_pipe_splits_values(self):
        entry = Criteria.from_params({"name:IN": "Ada|Grace"}).entries[0]
        assert entry.values == ["Ada", "Grace"]

    def test_schema_types_values(self):
        criteria = Criteria.from_params({"salary:BETWEEN": "1|2"}, _schema())
        assert criteria.entries[0].item.type == DOUBLE
        assert criteria.entries[0].values == [1.0, 2.0]

    def test_uncoercible_value_stays_text(self):
        entry = Criteria.from_params({"salary": "lots"}, _schema()).entries[0]
        assert entry.item.type == TEXT
        assert entry.values == ["lots"]

    def test_field_operator_stays_text(self):
        entry = Criteria.from_params({"salary:GREATER_THAN_FIELD": "employee_id"}, _schema()).entries[0]
        assert entry.item.type == TEXT

    def test_sort_and_controls(self):
        criteria = Criteria.from_params({
            "salary:SORT": "DESCENDING",
            "_offset": "5",
            "_search": "alan",
        })
        assert criteria.sort_entries() == [("salary", DESCENDING)]
        assert criteria.offset == 5
        assert criteria.search_term == "alan"


# ============================================================================
# 5. Grid form
# ============================================================================


class TestGridForm:
    def test_to_grid_columns(self):
        grid = Criteria().add("salary", "BETWEEN", 1, 2, type=DOUBLE).add("name", "EMPTY").to_grid()
        assert grid.columns.names() == [
            "logical_operator",
            "item_name",
            "item_type",
            "case_sensitive",
            "item_value_1",
            "item_value_2",
        ]
        first = grid.row(0)
        assert first.value("item_value_2") == "2.0"
        assert grid.row(1).value("item_value_1") is None

    def test_round_trip(self):
        criteria = (
            Criteria(features={"_limit": 3})
            .add("salary", "BETWEEN", 1, 2, type=DOUBLE)
            .add("name", "CONTAINS", "ad", case_sensitive=False)
            .sort("salary", DESCENDING)
        )
        restored = Criteria.from_grid(criteria.to_grid())
        assert [(e.name, e.operator, e.values, e.case_sensitive) for e in restored] == [
            ("salary", "BETWEEN", [1.0, 2.0], True),
            ("name", "CONTAINS", ["ad"], False),
            ("salary", "SORT", [DESCENDING], True),
        ]
        assert restored.limit == 3
