"""
GridDS -- Schema Update Tests

Covers:
  - update_schema() replaces a column's features and optionally its title
  - Boolean is_* flags are kept only when true
  - Rebuild signal: True only when an index-relevant flag changed
  - Primary key and suggest flags stay unique across columns
  - Item type cannot change; text-only flags rejected on other types
  - Stored rows follow the new column metadata
  - schema_grid() rows feed straight back into update_schema()
"""

import pytest

from datagrid.doc import DataDoc
from datagrid.grid_ds import SCHEMA_FLAGS, MemoryListener
from datagrid.item import make_item
from datagrid.types import (
    IS_FACET,
    IS_PRIMARY,
    IS_SEARCH,
    IS_SUGGEST,
    PRIMARY_KEY,
    DataTypeError,
    NotFoundError,
    ValidationError,
)


def _schema_row(name, **features):
    items = [make_item("item_name", value=name)]
    for key, value in features.items():
        items.append(make_item(key, value=value))
    return DataDoc(items=items)


def _schema_rows(ds):
    return {row.value("item_name"): row for row in ds.schema_grid()}


# ============================================================================
# 1. Features and title
# ============================================================================


class TestFeatures:
    def test_features_replaced(self, staff_ds):
        rebuild = staff_ds.update_schema(_schema_row("dept", item_title="Department"))
        column = staff_ds.grid.column("dept")
        assert column.title == "Department"
        assert column.features == {}
        assert rebuild is True

    def test_false_flags_dropped(self, staff_ds):
        staff_ds.update_schema(_schema_row("dept", is_search="true", is_facet="false"))
        assert staff_ds.grid.column("dept").features == {IS_SEARCH: True}

    def test_extra_features_kept(self, staff_ds):
        rebuild = staff_ds.update_schema(_schema_row("salary", ui_format="{:,.0f}"))
        assert staff_ds.grid.column("salary").get_feature("ui_format") == "{:,.0f}"
        assert rebuild is False

    def test_rows_follow_schema(self, staff_ds):
        staff_ds.update_schema(_schema_row("salary", item_title="Pay", ui_format="{:,.0f}"))
        row = staff_ds.grid.row(0)
        assert row.item("salary").title == "Pay"
        assert row.item("salary").get_feature("ui_format") == "{:,.0f}"

    def test_listener_gets_rebuild_flag(self, staff_ds):
        listener = MemoryListener()
        staff_ds.listeners.append(listener)
        staff_ds.update_schema(_schema_row("dept", is_search="true", is_facet="true"))
        staff_ds.update_schema(_schema_row("dept"))
        assert listener.events == [("schema", False), ("schema", True)]


# ============================================================================
# 2. Uniqueness and type rules
# ============================================================================


class TestRules:
    def test_suggest_moves(self, staff_ds):
        staff_ds.update_schema(_schema_row("dept", is_suggest="true", is_search="true"))
        assert [c.name for c in staff_ds.grid.columns.items_with_feature(IS_SUGGEST)] == ["dept"]
        assert [r.value("dept") for r in staff_ds.suggest("e")] == ["eng"]

    def test_primary_moves(self, staff_ds):
        staff_ds.update_schema(_schema_row("name", is_primary="true", is_required="true"))
        assert staff_ds.grid.primary_column().name == "name"
        assert staff_ds.grid.features[PRIMARY_KEY] == "name"
        assert not staff_ds.grid.column("employee_id").is_feature_true(IS_PRIMARY)

    def test_type_is_fixed(self, staff_ds):
        with pytest.raises(DataTypeError):
            staff_ds.update_schema(_schema_row("dept", item_type="Integer"))

    def test_matching_type_accepted(self, staff_ds):
        staff_ds.update_schema(_schema_row("salary", item_type="Double"))
        assert staff_ds.grid.column("salary").type == "Double"

    def test_text_only_flag(self, staff_ds):
        with pytest.raises(ValidationError):
            staff_ds.update_schema(_schema_row("salary", is_search="true"))
        assert staff_ds.grid.column("salary").features == {}

    def test_unknown_column(self, staff_ds):
        with pytest.raises(NotFoundError):
            staff_ds.update_schema(_schema_row("bonus", is_facet="true"))

    def test_item_name_required(self, staff_ds):
        with pytest.raises(ValidationError):
            staff_ds.update_schema(DataDoc(items=[make_item("item_title", value="X")]))


# ============================================================================
# 3. schema_grid
# ============================================================================


class TestSchemaGrid:
    def test_one_row_per_column(self, staff_ds):
        grid = staff_ds.schema_grid()
        assert grid.name == "staff_schema"
        assert [r.value("item_name") for r in grid] == staff_ds.grid.columns.names()
        for flag in SCHEMA_FLAGS:
            assert flag in grid.columns

    def test_flags_reported(self, staff_ds):
        dept = _schema_rows(staff_ds)["dept"]
        assert dept.value(IS_SEARCH) is True
        assert dept.value(IS_FACET) is True
        assert dept.value(IS_PRIMARY) is False
        assert dept.value("item_type") == "Text"

    def test_row_round_trips(self, staff_ds):
        before = staff_ds.grid.column("dept").features
        row = _schema_rows(staff_ds)["dept"]
        row.set_value("item_title", "Department")
        assert staff_ds.update_schema(row) is False
        assert staff_ds.grid.column("dept").features == before
        assert staff_ds.grid.column("dept").title == "Department"

    def test_extra_feature_column(self, staff_ds):
        staff_ds.update_schema(_schema_row("salary", ui_format="{:,.0f}"))
        rows = _schema_rows(staff_ds)
        assert rows["salary"].value("ui_format") == "{:,.0f}"
        assert rows["dept"].value("ui_format") is None
