"""
DataGrid — Diff

Field-level comparison of two documents. Every field name present on
either side lands in exactly one bucket:
- added:     only in the new document
- deleted:   only in the old document
- updated:   in both, with different values or type
             (or title/features, when compare_features=True)
- unchanged: everything else

Grid diffs are row-by-row under an alignment the caller supplies (a key
column). There is no heuristic row matching.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import DataItem, make_item
from datagrid.types import format_value, infer_type

ADDED = "added"
UPDATED = "updated"
DELETED = "deleted"
UNCHANGED = "unchanged"

DIFF_STATUSES: tuple[str, ...] = (ADDED, UPDATED, DELETED, UNCHANGED)


@dataclass
class DiffEntry:
    name: str
    status: str
    old_values: list[Any] = field(default_factory=list)
    new_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DiffResult:
    """Classification of every field name across two documents."""

    entries: list[DiffEntry] = field(default_factory=list)

    def is_equal(self) -> bool:
        return all(e.status == UNCHANGED for e in self.entries)

    def changed(self, status: str | None = None) -> list[DiffEntry]:
        """Entries with the given status, or every non-unchanged entry."""
        if status is None:
            return [e for e in self.entries if e.status != UNCHANGED]
        return [e for e in self.entries if e.status == status]

    def names(self, status: str) -> list[str]:
        return [e.name for e in self.entries if e.status == status]

    def counts(self) -> dict[str, int]:
        out = {s: 0 for s in DIFF_STATUSES}
        for e in self.entries:
            out[e.status] += 1
        return out

    def to_grid(self, name: str = "diff") -> DataGrid:
        """Columns: name, old_value, new_value, status, description."""
        columns = DataDoc(name=name, items=[
            make_item("name"),
            make_item("old_value", multi_value=True),
            make_item("new_value", multi_value=True),
            make_item("status"),
            make_item("description"),
        ])
        grid = DataGrid(name=name, columns=columns)
        for e in self.entries:
            row = grid.new_row()
            row.set_value("name", e.name)
            row.set_values("old_value", [_as_text(v) for v in e.old_values])
            row.set_values("new_value", [_as_text(v) for v in e.new_values])
            row.set_value("status", e.status)
            row.set_value("description", e.description)
            grid.add_row(row)
        return grid


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compare(old: DataDoc, new: DataDoc, compare_features: bool = False) -> DiffResult:
    """Name-aligned comparison. Entry order: old document order, then additions."""
    result = DiffResult()

    for old_item in old:
        new_item = new.get(old_item.name)
        if new_item is None:
            result.entries.append(DiffEntry(
                name=old_item.name,
                status=DELETED,
                old_values=list(old_item.values),
                description=f"Item '{old_item.name}' was removed.",
            ))
            continue
        reasons = _differences(old_item, new_item, compare_features)
        result.entries.append(DiffEntry(
            name=old_item.name,
            status=UPDATED if reasons else UNCHANGED,
            old_values=list(old_item.values),
            new_values=list(new_item.values),
            description=" ".join(reasons),
        ))

    for new_item in new:
        if new_item.name not in old:
            result.entries.append(DiffEntry(
                name=new_item.name,
                status=ADDED,
                new_values=list(new_item.values),
                description=f"Item '{new_item.name}' was added.",
            ))

    return result


def compare_grids(old: DataGrid, new: DataGrid, key: str) -> list[tuple[Any, DiffResult]]:
    """
    Row-by-row diff aligned on the `key` column.
    Rows present on one side only diff against an empty document, so all
    their fields come out deleted or added. Order: old rows, then new-only rows.
    """
    old.column(key)
    new.column(key)
    new_by_key: dict[Any, DataDoc] = {}
    for row in new.stored_rows():
        new_by_key.setdefault(row.value(key), row)

    results: list[tuple[Any, DiffResult]] = []
    seen: set[Any] = set()
    for row in old.stored_rows():
        k = row.value(key)
        seen.add(k)
        results.append((k, compare(row, new_by_key.get(k, DataDoc()))))
    for k, row in new_by_key.items():
        if k not in seen:
            results.append((k, compare(DataDoc(), row)))
    return results


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _differences(old: DataItem, new: DataItem, compare_features: bool) -> list[str]:
    reasons: list[str] = []
    if old.type != new.type:
        reasons.append(f"Type changed from {old.type} to {new.type}.")
    if old.values != new.values:
        reasons.append(
            f"Value changed from '{old.values_as_string()}' to '{new.values_as_string()}'."
        )
    if compare_features:
        if old.title != new.title:
            reasons.append(f"Title changed from '{old.title}' to '{new.title}'.")
        for key in sorted(set(old.features) | set(new.features)):
            if old.features.get(key) != new.features.get(key):
                reasons.append(f"Feature '{key}' changed.")
    return reasons


def _as_text(value: Any) -> str:
    return format_value(infer_type(value), value)
