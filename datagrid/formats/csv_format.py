"""
DataGrid Formats — Delimited Text

Header cells describe the column:  name[Type](Title)
A multi-valued column marks its type with a star:  tags[Text*](Tags)
Type and title are optional on load; a bare header cell is a Text column
titled from its name. Multi-valued cells join their values with
settings.MV_DELIMITER.

Cells hold the canonical string form of each value (ISO dates, whatever
the column's data_format).

Feature flags are not persisted in this format.
"""

from __future__ import annotations

import csv
import io
import re
from pathlib import Path

from datagrid.config import settings
from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import DataItem, make_item
from datagrid.types import LONG, TEXT, ValidationError, coerce_value, format_value, is_valid_type

HEADER_PATTERN = re.compile(
    r"^(?P<name>[^\[\(]+?)\s*(?:\[(?P<type>[A-Za-z]+)(?P<mv>\*)?\])?\s*(?:\((?P<title>.*)\))?$"
)

ROW_ID = "row_id"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def dumps_csv(grid: DataGrid, header: bool = True, delimiter: str | None = None) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter or settings.CSV_DELIMITER, lineterminator="\n")
    columns = grid.columns.items()
    if header:
        writer.writerow([header_cell(c) for c in columns])
    for row in grid.stored_rows():
        writer.writerow([_cell(row.item(c.name)) for c in columns])
    return buf.getvalue()


def loads_csv(
    text: str,
    name: str = "",
    columns: DataDoc | None = None,
    header: bool = True,
    with_row_id: bool = False,
    delimiter: str | None = None,
) -> DataGrid:
    """
    Parse delimited text into a grid.

    With header=False the column layout comes from `columns`, or is
    generated as column_1..column_N Text columns. with_row_id adds a hidden
    primary Long column numbering the rows from 1.
    """
    records = list(csv.reader(io.StringIO(text), delimiter=delimiter or settings.CSV_DELIMITER))

    if header and records:
        parsed = [parse_header_cell(cell) for cell in records.pop(0)]
        names = [item.name for item in parsed]
        if columns is None:
            columns = DataDoc(name=name, items=parsed)
    elif columns is not None:
        names = columns.names()
    else:
        width = max((len(r) for r in records), default=0)
        names = [f"column_{n}" for n in range(1, width + 1)]
        columns = DataDoc(name=name, items=[make_item(n) for n in names])

    if with_row_id and ROW_ID not in columns:
        layout = DataDoc(name=columns.name, items=[make_item(ROW_ID, LONG, primary=True, hidden=True)])
        for item in columns:
            layout.add(item.copy(with_values=False))
        columns = layout

    grid = DataGrid(name=name, columns=columns)
    for number, record in enumerate(r for r in records if any(cell.strip() for cell in r)):
        row = grid.new_row()
        for column_name, cell in zip(names, record):
            item = row.item(column_name)
            item.set_values(_cell_values(item, cell))
        if with_row_id and row.get(ROW_ID).is_empty():
            row.set_value(ROW_ID, number + 1)
        grid.add_row(row)
    return grid


def save_csv(grid: DataGrid, path: str | Path, header: bool = True) -> None:
    Path(path).write_text(dumps_csv(grid, header=header), encoding="utf-8")


def load_csv(path: str | Path, **kwargs) -> DataGrid:
    path = Path(path)
    kwargs.setdefault("name", path.stem)
    return loads_csv(path.read_text(encoding="utf-8"), **kwargs)


# ---------------------------------------------------------------------------
# Header cells
# ---------------------------------------------------------------------------


def header_cell(column: DataItem) -> str:
    star = "*" if column.multi_value else ""
    return f"{column.name}[{column.type}{star}]({column.title})"


def parse_header_cell(cell: str) -> DataItem:
    match = HEADER_PATTERN.match(cell.strip())
    if match is None:
        raise ValidationError(f"Malformed header cell: {cell!r}")
    type = match.group("type") or TEXT
    if not is_valid_type(type):
        raise ValidationError(f"Unknown item type in header: {cell!r}")
    return make_item(
        match.group("name").strip(),
        type,
        title=match.group("title") or "",
        multi_value=bool(match.group("mv")),
    )


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


def _cell(item: DataItem) -> str:
    return settings.MV_DELIMITER.join(format_value(item.type, v) for v in item.values)


def _cell_values(item: DataItem, cell: str) -> list:
    parts = cell.split(settings.MV_DELIMITER) if item.multi_value else [cell]
    return [coerce_value(item.type, p) for p in parts if p != ""]
