"""
DataGrid — GridDS Executor

Runs Criteria against a DataGrid and applies CRUD with primary-key
resolution.

Reads (fetch, count, search, suggest) never mutate the source grid; they
return a new result grid whose rows are independent copies. Writes (add,
update, load_apply_update, delete, update_schema) hold the grid's lock
for the whole locate-then-mutate sequence, then notify listeners.

Paging precedence: when the criteria's fetch policy is "paging" its
_offset/_limit features win; otherwise the call's offset/limit arguments
window the result.

Result grids carry paging features:
  total_documents, cur_offset, cur_limit, next_offset
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from datagrid.analyzer import describe
from datagrid.config import settings
from datagrid.criteria import FETCH_PAGING, Criteria
from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import DataItem, make_item
from datagrid.query import filter_rows, paginate, sort_rows
from datagrid.types import (
    BOOLEAN,
    INDEX_FEATURES,
    INTEGRAL_TYPES,
    IS_FACET,
    IS_HIDDEN,
    IS_PRIMARY,
    IS_REQUIRED,
    IS_SEARCH,
    IS_SUGGEST,
    NUMERIC_TYPES,
    PRIMARY_KEY,
    TEXT,
    TEXT_ONLY_FEATURES,
    DataTypeError,
    NotFoundError,
    QueryError,
    ValidationError,
    coerce_value,
)
from datagrid.validation import raise_for_errors, validate_row, validate_schema

logger = logging.getLogger(__name__)

TOTAL_DOCUMENTS = "total_documents"
CUR_OFFSET = "cur_offset"
CUR_LIMIT = "cur_limit"
NEXT_OFFSET = "next_offset"

SUGGEST_OPERATORS: set[str] = {"STARTS_WITH", "CONTAINS"}

# Boolean flags exposed as columns of the schema grid
SCHEMA_FLAGS: tuple[str, ...] = (IS_PRIMARY, IS_REQUIRED, IS_SEARCH, IS_SUGGEST, IS_FACET, IS_HIDDEN)


# ---------------------------------------------------------------------------
# Change listeners
# ---------------------------------------------------------------------------

class ChangeListener:
    """
    Receives mutation notices from a GridDS.
    Implement to keep an external search index in step with the grid.
    """

    def on_add(self, row: DataDoc) -> None:
        raise NotImplementedError

    def on_update(self, row: DataDoc) -> None:
        raise NotImplementedError

    def on_delete(self, row: DataDoc) -> None:
        raise NotImplementedError

    def on_schema_change(self, rebuild: bool) -> None:
        raise NotImplementedError


class MemoryListener(ChangeListener):
    """In-memory listener for testing."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def on_add(self, row: DataDoc) -> None:
        self.events.append(("add", row))

    def on_update(self, row: DataDoc) -> None:
        self.events.append(("update", row))

    def on_delete(self, row: DataDoc) -> None:
        self.events.append(("delete", row))

    def on_schema_change(self, rebuild: bool) -> None:
        self.events.append(("schema", rebuild))


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class GridDS:
    """Query and CRUD front end for one DataGrid."""

    def __init__(
        self,
        grid: DataGrid,
        *,
        strict: bool | None = None,
        listeners: list[ChangeListener] | None = None,
    ) -> None:
        self._grid = grid
        self.strict = settings.STRICT_CRITERIA if strict is None else strict
        self.listeners: list[ChangeListener] = list(listeners or [])

    @property
    def grid(self) -> DataGrid:
        return self._grid

    # -- reads --

    def fetch(self, criteria: Criteria | None = None, offset: int = 0, limit: int = 0) -> DataGrid:
        """
        Filter, sort and window the grid.
        Returns a new grid: same schema, copied rows, paging features set.
        """
        criteria = Criteria() if criteria is None else criteria
        if criteria.fetch_policy == FETCH_PAGING:
            offset = criteria.offset
            limit = criteria.limit or settings.PAGE_LIMIT

        matched = self._matching_rows(criteria)
        term = criteria.search_term
        if term is not None and term.strip():
            matched = self._search_rows(matched, term)

        sort_keys = criteria.sort_entries()
        if sort_keys:
            matched = sort_rows(matched, sort_keys)

        return self._result(matched, offset, limit)

    def count(self, criteria: Criteria | None = None) -> int:
        return len(self._matching_rows(Criteria() if criteria is None else criteria))

    def search(
        self,
        term: str | None,
        criteria: Criteria | None = None,
        offset: int = 0,
        limit: int = 0,
    ) -> DataGrid:
        """
        Rows where any is_search item contains `term`, case-insensitively,
        in original order. A blank term matches nothing.
        """
        if term is None or not term.strip():
            return self._result([], offset, limit)
        rows = self._matching_rows(Criteria() if criteria is None else criteria)
        return self._result(self._search_rows(rows, term), offset, limit)

    def suggest(self, term: str | None, operator: str = "STARTS_WITH", limit: int | None = None) -> DataGrid:
        """
        Autocomplete over the single is_suggest item.
        Prefix match by default, substring with CONTAINS. Results are
        deduplicated by the suggest value and capped at `limit`.
        """
        operator = operator.upper()
        if operator not in SUGGEST_OPERATORS:
            raise QueryError(f"suggest supports {sorted(SUGGEST_OPERATORS)}, not {operator}")
        limit = settings.SUGGEST_LIMIT if limit is None else limit
        flagged = self._grid.columns.items_with_feature(IS_SUGGEST)
        if not flagged:
            raise QueryError("No item is flagged is_suggest")
        if term is None or not term.strip():
            return self._result([], 0, limit)

        name = flagged[0].name
        needle = term.strip().casefold()
        picked: list[DataDoc] = []
        seen: set[Any] = set()
        for row in self._grid.stored_rows():
            item = row.item(name)
            for value, text in zip(item.values, item.strings()):
                folded = text.casefold()
                hit = folded.startswith(needle) if operator == "STARTS_WITH" else needle in folded
                if hit and value not in seen:
                    seen.add(value)
                    picked.append(row)
                    break
            if limit and len(picked) >= limit:
                break
        return self._result(picked, 0, 0)

    # -- writes --

    def add(self, doc: DataDoc) -> DataDoc:
        """
        Append a row. Applies default values, assigns a missing primary key,
        checks required items and key uniqueness.
        """
        grid = self._grid
        with grid.lock:
            row = doc.copy()
            if grid.needs_schema():
                grid.adopt_schema(row)
            self._apply_defaults(row)
            primary = grid.primary_column()
            if primary is not None:
                key_item = row.get(primary.name)
                if key_item is None:
                    key_item = row.add(primary.copy(with_values=False))
                if key_item.is_empty():
                    key_item.set_value(self._next_key(primary))
                key = coerce_value(primary.type, key_item.value)
                if self._find_index(primary.name, key) is not None:
                    raise ValidationError(f"{primary.name}: duplicate primary key {key!r}")
            raise_for_errors(validate_row(row, grid.columns))
            stored = grid.add_row(row)
        logger.debug("grid_ds %s: add", grid.name)
        self._notify("on_add", stored)
        return stored

    def update(self, doc: DataDoc) -> DataDoc:
        """
        Overwrite the items present in `doc` on the row with the same
        primary key. Items not present are preserved; position is unchanged.
        """
        grid = self._grid
        with grid.lock:
            index, primary = self._locate(doc)
            merged = grid.row(index)
            for item in doc:
                if item.name == primary.name:
                    continue
                if item.name not in merged:
                    raise ValidationError(f"Unknown item: {item.name!r}")
                merged.item(item.name).set_values(list(item.values))
            raise_for_errors(validate_row(merged, grid.columns))
            stored = grid.update_row(index, merged)
        logger.debug("grid_ds %s: update row %d", grid.name, index)
        self._notify("on_update", stored)
        return stored

    def load_apply_update(self, partial: DataDoc) -> DataDoc:
        """Load the row by primary key, merge `partial` into it, save, return the full row."""
        with self._grid.lock:
            index, _ = self._locate(partial)
            loaded = self._grid.row(index)
            for item in partial:
                if item.name not in loaded:
                    raise ValidationError(f"Unknown item: {item.name!r}")
                loaded.item(item.name).set_values(list(item.values))
            return self.update(loaded)

    def delete(self, target: DataDoc | int) -> DataDoc:
        """Remove a row by index or by primary key. Returns the removed row."""
        grid = self._grid
        with grid.lock:
            if isinstance(target, int) and not isinstance(target, bool):
                index = target
            else:
                index, _ = self._locate(target)
            removed = grid.delete_row(index)
        logger.debug("grid_ds %s: delete row %d", grid.name, index)
        self._notify("on_delete", removed)
        return removed

    def update_schema(self, schema_row: DataDoc) -> bool:
        """
        Apply one schema row (item_name, item_title, feature items) to the
        live column of the same name. The row's features replace the
        column's; boolean is_* flags are kept only when true.

        Returns True when an index-relevant flag changed anywhere in the
        schema, i.e. an external index would need rebuilding.
        """
        name_item = schema_row.get("item_name")
        if name_item is None or name_item.is_empty():
            raise ValidationError("item_name: A value must be assigned.")
        name = name_item.value_as_string()

        grid = self._grid
        with grid.lock:
            column = grid.column(name)
            before = self._index_flags()
            features, title = self._schema_row_features(schema_row, column)

            if features.get(IS_PRIMARY):
                for other in grid.columns:
                    other.disable_feature(IS_PRIMARY)
                grid.features[PRIMARY_KEY] = name
            elif grid.features.get(PRIMARY_KEY) == name:
                grid.features.pop(PRIMARY_KEY)
            if features.get(IS_SUGGEST):
                for other in grid.columns:
                    other.disable_feature(IS_SUGGEST)

            column.features = features
            if title:
                column.title = title
            raise_for_errors(validate_schema(grid.columns))
            grid.sync_rows_to_schema()
            rebuild = before != self._index_flags()

        logger.info("grid_ds %s: schema update on %s (rebuild=%s)", grid.name, name, rebuild)
        self._notify("on_schema_change", rebuild)
        return rebuild

    def schema_grid(self) -> DataGrid:
        """The schema as rows, one per column, in the shape update_schema() accepts."""
        columns = self._grid.columns
        extra = sorted(
            {k for c in columns for k in c.features if k not in SCHEMA_FLAGS}
        )
        layout = DataDoc(name=f"{self._grid.name}_schema", items=(
            [make_item("item_name", primary=True), make_item("item_type"), make_item("item_title")]
            + [make_item(flag, BOOLEAN) for flag in SCHEMA_FLAGS]
            + [make_item(key) for key in extra]
        ))
        grid = DataGrid(name=layout.name, columns=layout)
        for column in columns:
            row = grid.new_row()
            row.set_value("item_name", column.name)
            row.set_value("item_type", column.type)
            row.set_value("item_title", column.title)
            for flag in SCHEMA_FLAGS:
                row.set_value(flag, column.is_feature_true(flag))
            for key in extra:
                row.set_value(key, column.get_feature(key))
            grid.add_row(row)
        return grid

    def snapshot(self) -> DataGrid:
        """Copy-on-write clone for readers that must not see a mutation in flight."""
        return self._grid.copy()

    def describe(self) -> DataGrid:
        return describe(self._grid)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _degrade(self, message: str) -> None:
        if self.strict:
            raise QueryError(message)
        logger.warning("grid_ds %s: %s", self._grid.name, message)

    def _matching_rows(self, criteria: Criteria) -> list[DataDoc]:
        columns = self._grid.columns
        for entry in criteria:
            if entry.name not in columns:
                self._degrade(f"Unknown field: {entry.name!r}")
        return filter_rows(self._grid.stored_rows(), criteria, self.strict)

    def _search_rows(self, rows: list[DataDoc], term: str) -> list[DataDoc]:
        names = [c.name for c in self._grid.columns.items_with_feature(IS_SEARCH)]
        if not names:
            self._degrade("No items are flagged is_search")
            return []
        needle = term.strip().casefold()
        return [
            r for r in rows
            if any(needle in s.casefold() for n in names for s in r.item(n).strings())
        ]

    def _result(self, matched: list[DataDoc], offset: int, limit: int) -> DataGrid:
        page = paginate(matched, offset, limit)
        result = self._grid.empty_copy()
        result.add_rows(page)
        total = len(matched)
        step = limit or total
        result.features.update({
            TOTAL_DOCUMENTS: total,
            CUR_OFFSET: offset,
            CUR_LIMIT: limit,
            NEXT_OFFSET: min(total - 1, offset + step) if total else 0,
        })
        return result

    def _locate(self, doc: DataDoc) -> tuple[int, DataItem]:
        primary = self._grid.primary_column()
        if primary is None:
            raise NotFoundError("No primary key item is defined")
        key_item = doc.get(primary.name)
        if key_item is None or key_item.is_empty():
            raise NotFoundError(f"{primary.name}: no primary key value given")
        key = coerce_value(primary.type, key_item.value)
        index = self._find_index(primary.name, key)
        if index is None:
            raise NotFoundError(f"No row with {primary.name} = {key!r}")
        return index, primary

    def _find_index(self, name: str, key: Any) -> int | None:
        for i, row in enumerate(self._grid.stored_rows()):
            if row.value(name) == key:
                return i
        return None

    def _next_key(self, primary: DataItem) -> Any:
        if primary.type in NUMERIC_TYPES:
            existing = [v for v in self._grid.column_values(primary.name) if v is not None]
            top = max(existing) if existing else 0
            nxt = top + 1
            return int(nxt) if primary.type in INTEGRAL_TYPES else float(nxt)
        if primary.type == TEXT:
            return uuid.uuid4().hex
        raise ValidationError(f"{primary.name}: cannot assign a {primary.type} primary key")

    def _apply_defaults(self, row: DataDoc) -> None:
        for column in self._grid.columns:
            if column.default_value is None:
                continue
            item = row.get(column.name)
            if item is None:
                item = row.add(column.copy(with_values=False))
            if item.is_empty():
                item.set_value(column.default_value)

    def _index_flags(self) -> dict[str, tuple[bool, ...]]:
        return {
            c.name: tuple(c.is_feature_true(k) for k in sorted(INDEX_FEATURES))
            for c in self._grid.columns
        }

    def _schema_row_features(self, schema_row: DataDoc, column: DataItem) -> tuple[dict[str, Any], str | None]:
        features: dict[str, Any] = {}
        title: str | None = None
        for item in schema_row:
            if item.name == "item_name" or item.is_empty():
                continue
            if item.name == "item_type":
                if item.value_as_string() != column.type:
                    raise DataTypeError(f"Item {column.name!r}: type is fixed after creation")
                continue
            if item.name == "item_title":
                title = item.value_as_string()
                continue
            if item.name.startswith("is_"):
                if _truthy(item.value):
                    features[item.name] = True
                continue
            features[item.name] = item.value

        if column.type != TEXT:
            for key in sorted(TEXT_ONLY_FEATURES):
                if features.get(key):
                    raise ValidationError(f"{column.name}: {key} is only allowed on Text items")
        return features, title

    def _notify(self, method: str, payload: Any) -> None:
        for listener in self.listeners:
            getattr(listener, method)(payload)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)
