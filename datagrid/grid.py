"""
DataGrid — Grids

A DataGrid is a named set of row documents sharing one schema document
(the "columns"). Rows are stored normalized: every stored row carries
every column, in column order, with values coerced to the column type.

Concurrency model: one RLock per grid guards the row list. Mutations run
inside it; readers take a shallow snapshot of the list under it and scan
outside it. Stored rows are never handed out; row(), rows() and iteration
return deep copies.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Iterator
from typing import Any

from datagrid.doc import DataDoc
from datagrid.item import DataItem
from datagrid.query import sort_rows
from datagrid.types import (
    ASCENDING,
    IS_PRIMARY,
    PRIMARY_KEY,
    NotFoundError,
    ValidationError,
)
from datagrid.validation import raise_for_errors, validate_schema

logger = logging.getLogger(__name__)


class DataGrid:
    """Schema document plus an ordered list of conforming row documents."""

    def __init__(
        self,
        name: str = "",
        columns: DataDoc | None = None,
        title: str = "",
        features: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.title = title
        self.features: dict[str, Any] = copy.deepcopy(features or {})
        self.columns: DataDoc = columns.schema_copy() if columns is not None else DataDoc(name=name)
        if not self.columns.name:
            self.columns.name = name
        self._rows: list[DataDoc] = []
        self.lock = threading.RLock()
        raise_for_errors(validate_schema(self.columns))

    # -- container protocol --

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[DataDoc]:
        for row in self.stored_rows():
            yield row.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataGrid):
            return NotImplemented
        return (
            self.name == other.name
            and self.columns.items() == other.columns.items()
            and [r.items() for r in self.stored_rows()] == [r.items() for r in other.stored_rows()]
        )

    def __deepcopy__(self, memo: dict[int, Any]) -> DataGrid:
        return self.copy()

    def __repr__(self) -> str:  # pragma: no cover
        return f"DataGrid(name={self.name!r}, columns={self.columns.names()!r}, rows={len(self._rows)})"

    @property
    def row_count(self) -> int:
        return len(self._rows)

    # -- reads --

    def stored_rows(self) -> list[DataDoc]:
        """
        Shallow snapshot of the stored row list, for read-only scans.
        The documents themselves are live; callers must not mutate them.
        """
        with self.lock:
            return list(self._rows)

    def row(self, index: int) -> DataDoc:
        with self.lock:
            self._check_index(index)
            return self._rows[index].copy()

    def rows(self) -> list[DataDoc]:
        return [r.copy() for r in self.stored_rows()]

    def column(self, name: str) -> DataItem:
        """The live schema item for a column."""
        return self.columns.item(name)

    def column_values(self, name: str) -> list[Any]:
        """One entry per row: the value, or the value list for multi-valued columns."""
        self.column(name)
        return [r.as_values()[name] for r in self.stored_rows()]

    def new_row(self) -> DataDoc:
        """An empty row document shaped like the schema."""
        row = self.columns.schema_copy()
        row.name = self.name
        return row

    # -- primary key --

    def primary_column(self) -> DataItem | None:
        """
        The single is_primary column, or None when no column is flagged.
        More than one flagged column is a schema error.
        """
        flagged = self.columns.items_with_feature(IS_PRIMARY)
        if len(flagged) > 1:
            raise ValidationError("There must be exactly one primary key item defined.")
        return flagged[0] if flagged else None

    def set_primary(self, name: str) -> None:
        target = self.column(name)
        for column in self.columns:
            column.disable_feature(IS_PRIMARY)
        target.enable_feature(IS_PRIMARY)
        self.features[PRIMARY_KEY] = name
        self.sync_rows_to_schema()

    # -- mutation --

    def add_row(self, row: DataDoc) -> DataDoc:
        """Append a row; returns a copy of the stored (normalized) row."""
        with self.lock:
            if self.needs_schema():
                self.adopt_schema(row)
            stored = self._conform(row)
            self._rows.append(stored)
            logger.debug("grid %s: added row %d", self.name, len(self._rows) - 1)
            return stored.copy()

    def add_rows(self, rows: list[DataDoc], skip_duplicates: bool = False) -> int:
        """
        Append several rows. With skip_duplicates, rows whose primary key
        value is already present (in the grid or earlier in the batch) are
        dropped. Returns the number of rows added.
        """
        added = 0
        with self.lock:
            seen: set[Any] = set()
            primary = self.primary_column() if skip_duplicates else None
            if primary is not None:
                seen = {r.value(primary.name) for r in self._rows}
            for row in rows:
                if primary is not None:
                    source = row.get(primary.name)
                    key = source.value if source is not None else None
                    if key is not None and key in seen:
                        logger.debug("grid %s: skipping duplicate key %r", self.name, key)
                        continue
                    seen.add(key)
                self.add_row(row)
                added += 1
        return added

    def insert_row(self, index: int, row: DataDoc) -> DataDoc:
        with self.lock:
            if not 0 <= index <= len(self._rows):
                raise NotFoundError(f"Row index out of range: {index}")
            stored = self._conform(row)
            self._rows.insert(index, stored)
            logger.debug("grid %s: inserted row at %d", self.name, index)
            return stored.copy()

    def update_row(self, index: int, row: DataDoc) -> DataDoc:
        """Replace the row at index wholesale."""
        with self.lock:
            self._check_index(index)
            stored = self._conform(row)
            self._rows[index] = stored
            logger.debug("grid %s: replaced row %d", self.name, index)
            return stored.copy()

    def delete_row(self, index: int) -> DataDoc:
        with self.lock:
            self._check_index(index)
            removed = self._rows.pop(index)
            logger.debug("grid %s: deleted row %d", self.name, index)
            return removed

    def clear_rows(self) -> None:
        with self.lock:
            self._rows = []

    def sort(self, name: str, order: str = ASCENDING) -> None:
        """Stable in-place sort on one column."""
        self.column(name)
        with self.lock:
            self._rows = sort_rows(self._rows, [(name, order)])

    def sync_rows_to_schema(self) -> None:
        """Copy current column titles and features onto every stored row."""
        with self.lock:
            for row in self._rows:
                for item in row:
                    column = self.columns.item(item.name)
                    item.title = column.title
                    item.features = copy.deepcopy(column.features)

    # -- copies --

    def copy(self) -> DataGrid:
        """Fully independent clone (copy-on-write snapshot)."""
        dup = self.empty_copy()
        dup._rows = [r.copy() for r in self.stored_rows()]
        return dup

    def empty_copy(self) -> DataGrid:
        """Same name, schema and features; no rows."""
        return DataGrid(
            name=self.name,
            columns=self.columns,
            title=self.title,
            features=self.features,
        )

    def needs_schema(self) -> bool:
        """True for a grid with no columns and no rows; its first row supplies the schema."""
        return not len(self.columns) and not self._rows

    def adopt_schema(self, row: DataDoc) -> None:
        columns = row.schema_copy()
        columns.name = self.name
        raise_for_errors(validate_schema(columns))
        self.columns = columns
        logger.debug("grid %s: adopted schema %s", self.name, columns.names())

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._rows):
            raise NotFoundError(f"Row index out of range: {index}")

    def _conform(self, row: DataDoc) -> DataDoc:
        """Build the stored form of a row: every column, column types, column features."""
        unknown = [n for n in row.names() if n not in self.columns]
        if unknown:
            raise ValidationError([f"Unknown item: {n!r}" for n in unknown])

        stored = DataDoc(name=row.name or self.name, title=row.title, features=copy.deepcopy(row.features))
        for column in self.columns:
            item = column.copy(with_values=False)
            source = row.get(column.name)
            if source is not None and source.values:
                item.set_values(list(source.values))
            stored.add(item)
        return stored
