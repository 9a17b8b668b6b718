"""
DataGrid — Query Evaluation

Pure functions that evaluate a Criteria against row documents:
filter, stable multi-key sort, and offset/limit windowing.

Every filter operator is a handler in _OPERATORS with the signature
(target_item, entry, row) -> bool. A handler raises QueryError when the
entry cannot be evaluated (missing operands, uncoercible value, bad
pattern, unknown other field). matches() turns that into "entry never
matches" unless strict evaluation was requested.

A multi-valued row item satisfies an entry when any of its values does.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from datagrid.doc import DataDoc
from datagrid.item import DataItem
from datagrid.types import (
    DESCENDING,
    DataTypeError,
    QueryError,
    coerce_value,
)

if TYPE_CHECKING:
    from datagrid.criteria import Criteria, CriterionEntry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def matches(row: DataDoc, criteria: Criteria, strict: bool = False) -> bool:
    """True when the row satisfies every filter entry (logical AND)."""
    for entry in criteria.filter_entries():
        if not entry_matches(row, entry, strict):
            return False
    return True


def entry_matches(row: DataDoc, entry: CriterionEntry, strict: bool = False) -> bool:
    try:
        target = row.get(entry.name)
        if target is None:
            raise QueryError(f"Unknown field: {entry.name!r}")
        handler = _OPERATORS.get(entry.operator)
        if handler is None:
            raise QueryError(f"Operator {entry.operator} cannot filter rows")
        return handler(target, entry, row)
    except QueryError as e:
        if strict:
            raise
        logger.debug("query: entry %s %s never matches: %s", entry.name, entry.operator, e)
        return False


def filter_rows(rows: list[DataDoc], criteria: Criteria, strict: bool = False) -> list[DataDoc]:
    if not criteria.filter_entries():
        return list(rows)
    return [r for r in rows if matches(r, criteria, strict)]


def sort_rows(rows: list[DataDoc], keys: list[tuple[str, str]]) -> list[DataDoc]:
    """
    Stable multi-key sort. keys are (name, order) pairs, most significant
    first. Rows with no value sort first ascending and last descending.
    """
    ordered = list(rows)
    for name, order in reversed(keys):
        ordered.sort(key=lambda r, n=name: _sort_key(r, n), reverse=(order == DESCENDING))
    return ordered


def paginate(rows: list[DataDoc], offset: int = 0, limit: int = 0) -> list[DataDoc]:
    """Window rows by offset/limit. limit 0 means everything after offset."""
    if offset < 0 or limit < 0:
        raise QueryError(f"offset and limit must be >= 0 (got {offset}, {limit})")
    if limit == 0:
        return rows[offset:]
    return rows[offset:offset + limit]


def compare_values(a: Any, b: Any) -> int:
    """
    Three-way comparison. Numbers compare numerically, same-typed values
    natively, anything else by string form.
    """
    if _is_number(a) and _is_number(b):
        pass
    elif type(a) is not type(b):
        a, b = str(a), str(b)
    try:
        return (a > b) - (a < b)
    except TypeError as e:
        raise QueryError(f"Cannot order {a!r} against {b!r}") from e


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _sort_key(row: DataDoc, name: str) -> tuple:
    item = row.get(name)
    if item is None or item.is_empty():
        return (0,)
    return (1, item.value)


def _fold(value: Any, case_sensitive: bool) -> Any:
    if not case_sensitive and isinstance(value, str):
        return value.casefold()
    return value


def _operands(target: DataItem, entry: CriterionEntry, minimum: int = 1) -> list[Any]:
    """Criterion values coerced into the target's type, case-folded if asked."""
    if len(entry.values) < minimum:
        raise QueryError(f"{entry.operator} on {entry.name!r} needs at least {minimum} value(s)")
    try:
        coerced = [coerce_value(target.type, v) for v in entry.values]
    except DataTypeError as e:
        raise QueryError(f"{entry.name!r}: {e}") from e
    return [_fold(v, entry.case_sensitive) for v in coerced]


def _row_values(target: DataItem, entry: CriterionEntry) -> list[Any]:
    return [_fold(v, entry.case_sensitive) for v in target.values]


def _row_strings(target: DataItem, entry: CriterionEntry) -> list[str]:
    return [_fold(s, entry.case_sensitive) for s in target.strings()]


def _entry_strings(entry: CriterionEntry) -> list[str]:
    if not entry.values:
        raise QueryError(f"{entry.operator} on {entry.name!r} needs a value")
    return [_fold(s, entry.case_sensitive) for s in entry.item.strings()]


def _ordered(target: DataItem, entry: CriterionEntry, test: Callable[[int], bool]) -> bool:
    bound = _operands(target, entry)[0]
    return any(test(compare_values(v, bound)) for v in _row_values(target, entry))


# ---------------------------------------------------------------------------
# Value comparison handlers
# ---------------------------------------------------------------------------


def _equal(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    wanted = _operands(target, entry)
    return any(v in wanted for v in _row_values(target, entry))


def _not_equal(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return not _equal(target, entry, row)


def _greater_than(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return _ordered(target, entry, lambda c: c > 0)


def _greater_than_equal(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return _ordered(target, entry, lambda c: c >= 0)


def _less_than(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return _ordered(target, entry, lambda c: c < 0)


def _less_than_equal(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return _ordered(target, entry, lambda c: c <= 0)


def _between(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    low, high = _operands(target, entry, minimum=2)[:2]
    return any(
        compare_values(v, low) > 0 and compare_values(v, high) < 0
        for v in _row_values(target, entry)
    )


def _between_inclusive(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    low, high = _operands(target, entry, minimum=2)[:2]
    return any(
        compare_values(v, low) >= 0 and compare_values(v, high) <= 0
        for v in _row_values(target, entry)
    )


# ---------------------------------------------------------------------------
# String representation handlers
# ---------------------------------------------------------------------------


def _starts_with(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    needles = _entry_strings(entry)
    return any(s.startswith(n) for s in _row_strings(target, entry) for n in needles)


def _ends_with(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    needles = _entry_strings(entry)
    return any(s.endswith(n) for s in _row_strings(target, entry) for n in needles)


def _contains(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    needles = _entry_strings(entry)
    return any(n in s for s in _row_strings(target, entry) for n in needles)


def _not_contains(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return not _contains(target, entry, row)


def _regex(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    if not entry.values:
        raise QueryError(f"REGEX on {entry.name!r} needs a pattern")
    flags = 0 if entry.case_sensitive else re.IGNORECASE
    try:
        pattern = re.compile(entry.item.strings()[0], flags)
    except re.error as e:
        raise QueryError(f"Invalid pattern for {entry.name!r}: {e}") from e
    return any(pattern.search(s) for s in target.strings())


# ---------------------------------------------------------------------------
# Membership handlers
# ---------------------------------------------------------------------------


def _in(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    wanted = _operands(target, entry, minimum=0)
    return any(v in wanted for v in _row_values(target, entry))


def _not_in(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return not _in(target, entry, row)


def _empty(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return target.is_empty()


def _not_empty(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return not target.is_empty()


# ---------------------------------------------------------------------------
# Field-to-field handlers
# ---------------------------------------------------------------------------


def _make_field_handler(test: Callable[[int], bool]):
    def _handler(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
        if not entry.values:
            raise QueryError(f"{entry.operator} on {entry.name!r} needs another field name")
        other_name = entry.item.strings()[0]
        other = row.get(other_name)
        if other is None:
            raise QueryError(f"Unknown field: {other_name!r}")
        return any(
            test(compare_values(_fold(a, entry.case_sensitive), _fold(b, entry.case_sensitive)))
            for a in target.values
            for b in other.values
        )

    return _handler


_equal_field = _make_field_handler(lambda c: c == 0)


def _not_equal_field(target: DataItem, entry: CriterionEntry, row: DataDoc) -> bool:
    return not _equal_field(target, entry, row)


_OPERATORS: dict[str, Callable[[DataItem, CriterionEntry, DataDoc], bool]] = {
    "EQUAL": _equal,
    "NOT_EQUAL": _not_equal,
    "GREATER_THAN": _greater_than,
    "GREATER_THAN_EQUAL": _greater_than_equal,
    "LESS_THAN": _less_than,
    "LESS_THAN_EQUAL": _less_than_equal,
    "BETWEEN": _between,
    "BETWEEN_INCLUSIVE": _between_inclusive,
    "STARTS_WITH": _starts_with,
    "ENDS_WITH": _ends_with,
    "CONTAINS": _contains,
    "NOT_CONTAINS": _not_contains,
    "REGEX": _regex,
    "IN": _in,
    "NOT_IN": _not_in,
    "EMPTY": _empty,
    "NOT_EMPTY": _not_empty,
    "EQUAL_FIELD": _equal_field,
    "NOT_EQUAL_FIELD": _not_equal_field,
    "GREATER_THAN_FIELD": _make_field_handler(lambda c: c > 0),
    "GREATER_THAN_EQUAL_FIELD": _make_field_handler(lambda c: c >= 0),
    "LESS_THAN_FIELD": _make_field_handler(lambda c: c < 0),
    "LESS_THAN_EQUAL_FIELD": _make_field_handler(lambda c: c <= 0),
}
