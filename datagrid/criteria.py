"""
DataGrid — Criteria

A Criteria is an ordered list of criterion entries plus a map of control
features. Entries are ANDed in declaration order; an empty Criteria
matches every row.

Control features use a leading underscore so they can travel in the same
request mapping as field constraints:
  _offset, _limit, _fetch_policy ("paging" | "virtual"), _case_sensitive,
  _search, _suggest, _highlight, _facet_value_count

_case_sensitive=false folds case for every entry, whatever its own flag.

Built per request, consumed once by the executor, then thrown away.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any

from datagrid.config import settings
from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import DataItem, make_item
from datagrid.types import (
    ASCENDING,
    BOOLEAN,
    MARKER_OPERATORS,
    OPERATORS,
    SORT_ORDERS,
    TEXT,
    DataTypeError,
    ValidationError,
    coerce_value,
    is_empty_value,
)

logger = logging.getLogger(__name__)

OFFSET = "_offset"
LIMIT = "_limit"
FETCH_POLICY = "_fetch_policy"
CASE_SENSITIVE = "_case_sensitive"
SEARCH = "_search"
SUGGEST = "_suggest"
HIGHLIGHT = "_highlight"
FACET_VALUE_COUNT = "_facet_value_count"

FETCH_PAGING = "paging"
FETCH_VIRTUAL = "virtual"
FETCH_POLICIES: set[str] = {FETCH_PAGING, FETCH_VIRTUAL}

_INT_FEATURES: set[str] = {OFFSET, LIMIT, FACET_VALUE_COUNT}


@dataclass
class CriterionEntry:
    """One (field, operator, values) clause."""

    item: DataItem
    operator: str
    case_sensitive: bool = True

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def values(self) -> list[Any]:
        return self.item.values

    @property
    def is_marker(self) -> bool:
        return self.operator in MARKER_OPERATORS


class Criteria:
    """Declarative filter / sort / paginate / search request."""

    def __init__(
        self,
        name: str = "",
        entries: list[CriterionEntry] | None = None,
        features: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.entries: list[CriterionEntry] = list(entries or [])
        self.features: dict[str, Any] = {}
        for key, value in (features or {}).items():
            self.set_feature(key, value)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[CriterionEntry]:
        return iter(self.entries)

    def __repr__(self) -> str:  # pragma: no cover
        clauses = [f"{e.name} {e.operator} {e.values!r}" for e in self.entries]
        return f"Criteria({clauses!r}, features={self.features!r})"

    # -- building --

    def add(
        self,
        name: str,
        operator: str,
        *values: Any,
        type: str = TEXT,
        case_sensitive: bool = True,
    ) -> Criteria:
        """Append an entry. Returns self so calls can be chained."""
        item = make_item(name, type, values=list(values), multi_value=True)
        return self.add_item(item, operator, case_sensitive)

    def add_item(self, item: DataItem, operator: str, case_sensitive: bool = True) -> Criteria:
        operator = operator.upper()
        if operator not in OPERATORS:
            raise ValidationError(f"Unknown operator: {operator!r}")
        if operator == "SORT":
            order = (item.value_as_string() or ASCENDING).upper()
            if order not in SORT_ORDERS:
                raise ValidationError(f"Unknown sort order: {order!r}")
        self.entries.append(CriterionEntry(item=item, operator=operator, case_sensitive=case_sensitive))
        return self

    def sort(self, name: str, order: str = ASCENDING) -> Criteria:
        return self.add(name, "SORT", order.upper())

    # -- reading --

    def is_empty(self) -> bool:
        return not self.entries

    def filter_entries(self) -> list[CriterionEntry]:
        entries = [e for e in self.entries if not e.is_marker]
        if not self.case_sensitive:
            entries = [replace(e, case_sensitive=False) for e in entries]
        return entries

    def sort_entries(self) -> list[tuple[str, str]]:
        """(name, order) pairs in declaration order."""
        return [
            (e.name, (e.item.value_as_string() or ASCENDING).upper())
            for e in self.entries
            if e.operator == "SORT"
        ]

    def facet_names(self) -> list[str]:
        return [e.name for e in self.entries if e.operator == "FACET"]

    def copy(self) -> Criteria:
        return copy.deepcopy(self)

    # -- features --

    def get_feature(self, key: str, default: Any = None) -> Any:
        return self.features.get(key, default)

    def set_feature(self, key: str, value: Any) -> None:
        if key in _INT_FEATURES:
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{key} must be an integer, got {value!r}") from None
            if value < 0:
                raise ValidationError(f"{key} must be >= 0")
        elif key == FETCH_POLICY:
            value = str(value).lower()
            if value not in FETCH_POLICIES:
                raise ValidationError(f"Unknown fetch policy: {value!r}")
        elif key == CASE_SENSITIVE:
            try:
                value = coerce_value(BOOLEAN, value)
            except DataTypeError:
                raise ValidationError(f"{key} must be a boolean, got {value!r}") from None
        self.features[key] = value

    @property
    def offset(self) -> int:
        return self.features.get(OFFSET, 0)

    @offset.setter
    def offset(self, value: int) -> None:
        self.set_feature(OFFSET, value)

    @property
    def limit(self) -> int:
        return self.features.get(LIMIT, 0)

    @limit.setter
    def limit(self, value: int) -> None:
        self.set_feature(LIMIT, value)

    @property
    def fetch_policy(self) -> str:
        return self.features.get(FETCH_POLICY, FETCH_VIRTUAL)

    @fetch_policy.setter
    def fetch_policy(self, value: str) -> None:
        self.set_feature(FETCH_POLICY, value)

    @property
    def case_sensitive(self) -> bool:
        return self.features.get(CASE_SENSITIVE, True)

    @case_sensitive.setter
    def case_sensitive(self, value: bool) -> None:
        self.set_feature(CASE_SENSITIVE, value)

    @property
    def search_term(self) -> str | None:
        return self.features.get(SEARCH)

    @search_term.setter
    def search_term(self, value: str | None) -> None:
        self.features[SEARCH] = value

    @property
    def suggest_term(self) -> str | None:
        return self.features.get(SUGGEST)

    @suggest_term.setter
    def suggest_term(self, value: str | None) -> None:
        self.features[SUGGEST] = value

    @property
    def facet_value_count(self) -> int:
        return self.features.get(FACET_VALUE_COUNT, 0)

    # -- grid form --

    def to_grid(self) -> DataGrid:
        """
        One row per entry, for display or persistence.
        Columns: logical_operator, item_name, item_type, case_sensitive,
        item_value_1 .. item_value_N (N = widest entry, at least 1).
        """
        width = max([len(e.values) for e in self.entries] + [1])
        columns = DataDoc(name=self.name or "criteria", items=[
            make_item("logical_operator"),
            make_item("item_name"),
            make_item("item_type"),
            make_item("case_sensitive", BOOLEAN),
        ] + [make_item(f"item_value_{n}") for n in range(1, width + 1)])

        grid = DataGrid(name=columns.name, columns=columns, features=self.features)
        for entry in self.entries:
            row = grid.new_row()
            row.set_value("logical_operator", entry.operator)
            row.set_value("item_name", entry.name)
            row.set_value("item_type", entry.item.type)
            row.set_value("case_sensitive", entry.case_sensitive)
            for n, text in enumerate(entry.item.strings(), start=1):
                row.set_value(f"item_value_{n}", text)
            grid.add_row(row)
        return grid

    @classmethod
    def from_grid(cls, grid: DataGrid) -> Criteria:
        criteria = cls(name=grid.name, features=grid.features)
        value_columns = [n for n in grid.columns.names() if n.startswith("item_value_")]
        for row in grid:
            values = [row.value(n) for n in value_columns if row.value(n) is not None]
            criteria.add(
                row.value("item_name"),
                row.value("logical_operator"),
                *values,
                type=row.value("item_type") or TEXT,
                case_sensitive=row.value("case_sensitive") is not False,
            )
        return criteria

    # -- request form --

    @classmethod
    def from_params(cls, params: Mapping[str, Any], columns: DataDoc | None = None) -> Criteria:
        """
        Build from a request-style mapping.

          {"name": "Ada"}                      -> name EQUAL "Ada"
          {"salary:GREATER_THAN": "50000"}     -> salary GREATER_THAN 50000
          {"dept:IN": "eng|ops"}               -> dept IN ["eng", "ops"]
          {"salary:SORT": "DESCENDING"}        -> sort entry
          {"_offset": "20", "_limit": "10"}    -> control features

        Value types come from the schema when one is given; unknown
        fields stay Text and are left for the executor to judge.
        """
        criteria = cls()
        for key, raw in params.items():
            if key.startswith("_"):
                criteria.set_feature(key, raw)
                continue
            name, _, operator = key.partition(":")
            operator = (operator or "EQUAL").upper()
            values = _split_values(raw)
            column = columns.get(name) if columns is not None else None
            if operator == "SORT":
                criteria.sort(name, values[0] if values else ASCENDING)
            elif column is None or operator.endswith("_FIELD"):
                criteria.add(name, operator, *values)
            else:
                try:
                    criteria.add(name, operator, *values, type=column.type)
                except DataTypeError:
                    # leave the mismatch for the executor's strict/lenient policy
                    logger.debug("criteria: %s values %r kept as Text", name, values)
                    criteria.add(name, operator, *values)
        return criteria


def _split_values(raw: Any) -> list[Any]:
    if is_empty_value(raw):
        return []
    if isinstance(raw, str):
        return [v for v in raw.split(settings.MV_DELIMITER) if v != ""]
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]
