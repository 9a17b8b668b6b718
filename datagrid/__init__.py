"""
DataGrid — an in-memory tabular document engine.

Data model:
  DataItem  — one named, typed, possibly multi-valued field
  DataDoc   — ordered, name-unique items; a schema or a row
  DataGrid  — a schema document plus conforming rows

Query and mutation:
  Criteria  — filter / sort / paginate / search request
  GridDS    — runs criteria against a grid; CRUD by primary key
  compare   — field-level diff of two documents

Persistence lives in datagrid.formats, rendering in datagrid.renderer,
the paging-UI adapter in datagrid.paging.
"""

from datagrid.analyzer import describe
from datagrid.criteria import Criteria, CriterionEntry
from datagrid.diff import DiffResult, compare, compare_grids
from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.grid_ds import ChangeListener, GridDS
from datagrid.item import DataItem, DataRange, make_item
from datagrid.types import (
    DataTypeError,
    GridError,
    NotFoundError,
    QueryError,
    ValidationError,
)

__all__ = [
    "DataItem",
    "DataRange",
    "make_item",
    "DataDoc",
    "DataGrid",
    "Criteria",
    "CriterionEntry",
    "GridDS",
    "ChangeListener",
    "compare",
    "compare_grids",
    "DiffResult",
    "describe",
    "GridError",
    "ValidationError",
    "NotFoundError",
    "QueryError",
    "DataTypeError",
]
