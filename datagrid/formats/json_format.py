"""
DataGrid Formats — JSON

Grid document:
  {
    "name": "...", "title": "...", "features": {...},
    "columns": [ {name, type, title, multi_value?, default_value?, features?} ],
    "rows": [ {item_name: value | [values] | null} ]
  }

Single record:  {"document_name": "...", item_name: value, ...}
Record arrays:  [ record, record, ... ]

Numbers and booleans are written natively; dates and times as ISO-8601
strings. Values are read back through the column type, so the schema
decides how each JSON scalar is interpreted.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import DataItem, make_item
from datagrid.types import (
    BOOLEAN,
    NUMERIC_TYPES,
    ValidationError,
    format_value,
    infer_type,
)

DOCUMENT_NAME = "document_name"


# ---------------------------------------------------------------------------
# Grids
# ---------------------------------------------------------------------------


def grid_to_dict(grid: DataGrid) -> dict[str, Any]:
    return {
        "name": grid.name,
        "title": grid.title,
        "features": dict(grid.features),
        "columns": [c.to_dict(with_values=False) for c in grid.columns],
        "rows": [_row_to_dict(row) for row in grid.stored_rows()],
    }


def grid_from_dict(d: dict[str, Any]) -> DataGrid:
    if not isinstance(d, dict) or "columns" not in d:
        raise ValidationError("Grid document must be an object with a columns list")
    columns = DataDoc(name=d.get("name", ""), items=[DataItem.from_dict(c) for c in d["columns"]])
    grid = DataGrid(
        name=d.get("name", ""),
        columns=columns,
        title=d.get("title", ""),
        features=d.get("features", {}),
    )
    for record in d.get("rows", []):
        row = grid.new_row()
        _fill(row, record)
        grid.add_row(row)
    return grid


def dumps_json(grid: DataGrid, indent: int | None = 2) -> str:
    return json.dumps(grid_to_dict(grid), indent=indent)


def loads_json(text: str) -> DataGrid:
    return grid_from_dict(json.loads(text))


def save_json(grid: DataGrid, path: str | Path) -> None:
    Path(path).write_text(dumps_json(grid), encoding="utf-8")


def load_json(path: str | Path) -> DataGrid:
    return loads_json(Path(path).read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def doc_to_record(doc: DataDoc) -> dict[str, Any]:
    record: dict[str, Any] = {DOCUMENT_NAME: doc.name}
    record.update(_row_to_dict(doc))
    return record


def record_to_doc(record: dict[str, Any], columns: DataDoc | None = None) -> DataDoc:
    """
    Build a document from a record. With a schema, items take the column
    types; without one, types are inferred from the JSON values.
    """
    doc = DataDoc(name=str(record.get(DOCUMENT_NAME, "")))
    for name, raw in record.items():
        if name == DOCUMENT_NAME:
            continue
        column = columns.get(name) if columns is not None else None
        if column is not None:
            item = column.copy(with_values=False)
        else:
            sample = raw[0] if isinstance(raw, list) and raw else raw
            item = make_item(name, infer_type(sample), multi_value=isinstance(raw, list))
        doc.add(item)
    _fill(doc, record)
    return doc


def dumps_doc(doc: DataDoc, indent: int | None = 2) -> str:
    return json.dumps(doc_to_record(doc), indent=indent)


def loads_doc(text: str, columns: DataDoc | None = None) -> DataDoc:
    return record_to_doc(json.loads(text), columns)


def dumps_docs(docs: list[DataDoc], indent: int | None = 2) -> str:
    return json.dumps([doc_to_record(d) for d in docs], indent=indent)


def loads_docs(text: str, columns: DataDoc | None = None) -> list[DataDoc]:
    records = json.loads(text)
    if not isinstance(records, list):
        raise ValidationError("Expected a JSON array of records")
    return [record_to_doc(r, columns) for r in records]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _to_json(item: DataItem, value: Any) -> Any:
    if item.type in NUMERIC_TYPES or item.type == BOOLEAN:
        return value
    return format_value(item.type, value, item.get_feature("data_format"))


def _row_to_dict(row: DataDoc) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for item in row:
        if item.multi_value:
            out[item.name] = [_to_json(item, v) for v in item.values]
        else:
            out[item.name] = None if item.is_empty() else _to_json(item, item.value)
    return out


def _fill(doc: DataDoc, record: dict[str, Any]) -> None:
    for name, raw in record.items():
        if name == DOCUMENT_NAME:
            continue
        item = doc.item(name)
        if isinstance(raw, list):
            item.set_values(raw)
        else:
            item.set_value(raw)
