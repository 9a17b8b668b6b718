"""
DataGrid — Descriptive Statistics

describe() summarizes every column of a grid into a details grid, one row
per column. Counting statistics apply to every type; minimum and maximum
to any orderable type; mean, standard deviation and median to numeric
columns only (median also for temporal columns, as the lower middle).
"""

from __future__ import annotations

import statistics
from typing import Any

from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import make_item
from datagrid.types import (
    BOOLEAN,
    DOUBLE,
    LONG,
    NUMERIC_TYPES,
    TEMPORAL_TYPES,
    format_value,
)

DETAILS_COLUMNS: tuple[str, ...] = (
    "name",
    "type",
    "total_count",
    "unique_count",
    "null_count",
    "minimum",
    "maximum",
    "mean",
    "standard_deviation",
    "median",
)


def locate_median(values: list[Any]) -> Any:
    """
    Median of the non-empty values. Numbers average the two middle values
    on an even count; other orderable values take the lower middle.
    """
    present = sorted(v for v in values if v is not None)
    if not present:
        return None
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in present):
        return statistics.median(present)
    return present[(len(present) - 1) // 2]


def describe(grid: DataGrid) -> DataGrid:
    columns = DataDoc(name=f"{grid.name}_details", items=[
        make_item("name", primary=True),
        make_item("type"),
        make_item("total_count", LONG),
        make_item("unique_count", LONG),
        make_item("null_count", LONG),
        make_item("minimum"),
        make_item("maximum"),
        make_item("mean", DOUBLE),
        make_item("standard_deviation", DOUBLE),
        make_item("median"),
    ])
    details = DataGrid(name=columns.name, columns=columns)
    rows = grid.stored_rows()

    for column in grid.columns:
        values: list[Any] = []
        nulls = 0
        for row in rows:
            item = row.item(column.name)
            if item.is_empty():
                nulls += 1
            values.extend(item.values)

        out = details.new_row()
        out.set_value("name", column.name)
        out.set_value("type", column.type)
        out.set_value("total_count", len(rows))
        out.set_value("unique_count", len(set(values)))
        out.set_value("null_count", nulls)

        fmt = column.get_feature("data_format")
        if values and column.type != BOOLEAN:
            out.set_value("minimum", format_value(column.type, min(values), fmt))
            out.set_value("maximum", format_value(column.type, max(values), fmt))
        if values and column.type in NUMERIC_TYPES:
            out.set_value("mean", statistics.fmean(values))
            out.set_value("standard_deviation", statistics.stdev(values) if len(values) > 1 else 0.0)
            out.set_value("median", format_value(DOUBLE, float(locate_median(values))))
        elif values and column.type in TEMPORAL_TYPES:
            out.set_value("median", format_value(column.type, locate_median(values), fmt))
        details.add_row(out)

    return details
