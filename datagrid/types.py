"""
DataGrid — Shared Types

Type registry, operator registry, feature keys, errors, and the value
coercion helpers every other module leans on.

Values are always stored in their canonical Python form:
- Text            -> str
- Integer, Long   -> int (range-checked)
- Float, Double   -> float
- Boolean         -> bool
- Date            -> datetime.date
- DateTime        -> datetime.datetime
- Time            -> datetime.time

Raw input (strings from CSV, JSON scalars, native objects) goes through
coerce_value(); anything it cannot represent raises DataTypeError at the
moment of assignment.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,127}$")


# ---------------------------------------------------------------------------
# Item type registry
# ---------------------------------------------------------------------------

TEXT = "Text"
INTEGER = "Integer"
LONG = "Long"
FLOAT = "Float"
DOUBLE = "Double"
BOOLEAN = "Boolean"
DATE = "Date"
DATETIME = "DateTime"
TIME = "Time"

ITEM_TYPES: set[str] = {TEXT, INTEGER, LONG, FLOAT, DOUBLE, BOOLEAN, DATE, DATETIME, TIME}

INTEGRAL_TYPES: set[str] = {INTEGER, LONG}
NUMERIC_TYPES: set[str] = {INTEGER, LONG, FLOAT, DOUBLE}
TEMPORAL_TYPES: set[str] = {DATE, DATETIME, TIME}

# Signed ranges for the integral types
_INT_BOUNDS: dict[str, tuple[int, int]] = {
    INTEGER: (-(2**31), 2**31 - 1),
    LONG: (-(2**63), 2**63 - 1),
}

_TRUE_STRINGS: set[str] = {"true", "yes", "y", "t", "1"}
_FALSE_STRINGS: set[str] = {"false", "no", "n", "f", "0"}


# ---------------------------------------------------------------------------
# Operator registry
# ---------------------------------------------------------------------------

OPERATORS: set[str] = {
    # Value comparison
    "EQUAL",
    "NOT_EQUAL",
    "GREATER_THAN",
    "GREATER_THAN_EQUAL",
    "LESS_THAN",
    "LESS_THAN_EQUAL",
    "BETWEEN",
    "BETWEEN_INCLUSIVE",
    # String representation
    "STARTS_WITH",
    "ENDS_WITH",
    "CONTAINS",
    "NOT_CONTAINS",
    "REGEX",
    # Membership
    "IN",
    "NOT_IN",
    "EMPTY",
    "NOT_EMPTY",
    # Field-to-field
    "EQUAL_FIELD",
    "NOT_EQUAL_FIELD",
    "GREATER_THAN_FIELD",
    "GREATER_THAN_EQUAL_FIELD",
    "LESS_THAN_FIELD",
    "LESS_THAN_EQUAL_FIELD",
    # Markers (never filter)
    "SORT",
    "FACET",
    "HIGHLIGHT",
}

MARKER_OPERATORS: set[str] = {"SORT", "FACET", "HIGHLIGHT"}

ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"
SORT_ORDERS: set[str] = {ASCENDING, DESCENDING}


# ---------------------------------------------------------------------------
# Feature keys
# ---------------------------------------------------------------------------

IS_PRIMARY = "is_primary"
IS_REQUIRED = "is_required"
IS_SEARCH = "is_search"
IS_SUGGEST = "is_suggest"
IS_FACET = "is_facet"
IS_HIDDEN = "is_hidden"
IS_SECRET = "is_secret"
IS_STORED = "is_stored"
IS_CURRENCY = "is_currency"
IS_EDITABLE = "is_editable"
DATA_FORMAT = "data_format"
UI_FORMAT = "ui_format"
DISPLAY_SIZE = "display_size"
SORT_ORDER = "sort_order"

# Flags that an external search index would need to be rebuilt for
INDEX_FEATURES: set[str] = {IS_PRIMARY, IS_SEARCH, IS_SUGGEST, IS_FACET}

# Flags that only make sense on Text items
TEXT_ONLY_FEATURES: set[str] = {IS_SEARCH, IS_SUGGEST}

# Grid-level feature naming the primary key column
PRIMARY_KEY = "primary_key"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class GridError(Exception):
    """Base class for every error raised by the engine."""
    pass


class ValidationError(GridError):
    """Builder input or row content failed validation."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(GridError):
    """A CRUD operation could not resolve its target row or item."""
    pass


class QueryError(GridError):
    """A criterion references an unknown field or an incompatible value."""
    pass


class DataTypeError(GridError):
    """A value cannot be represented in an item's declared type."""
    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_valid_name(name: Any) -> bool:
    """Check an item, document or grid name."""
    return isinstance(name, str) and bool(NAME_PATTERN.match(name))


def is_valid_type(type: Any) -> bool:
    return type in ITEM_TYPES


def name_to_title(name: str) -> str:
    """employee_id -> Employee Id"""
    words = [w for w in re.split(r"[_\s]+", name) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def is_empty_value(raw: Any) -> bool:
    """None and the empty string both mean 'no value assigned'."""
    return raw is None or (isinstance(raw, str) and raw == "")


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------


def coerce_value(type: str, raw: Any, fmt: str | None = None) -> Any:
    """
    Convert raw input into the canonical value for `type`.
    Raises DataTypeError when the value is not representable.
    Callers skip empty values before calling this.
    """
    coercer = _COERCERS.get(type)
    if coercer is None:
        raise DataTypeError(f"Unknown item type: {type}")
    try:
        return coercer(raw, fmt)
    except DataTypeError:
        raise
    except (TypeError, ValueError, OverflowError) as e:
        raise DataTypeError(f"Cannot convert {raw!r} to {type}: {e}") from e


def _coerce_text(raw: Any, fmt: str | None) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float, date, time)):
        return str(raw)
    raise DataTypeError(f"Cannot convert {type(raw).__name__} to Text")


def _make_integral(type_name: str):
    low, high = _INT_BOUNDS[type_name]

    def _coerce(raw: Any, fmt: str | None) -> int:
        if isinstance(raw, bool):
            raise DataTypeError(f"Cannot convert bool to {type_name}")
        if isinstance(raw, int):
            value = raw
        elif isinstance(raw, float):
            if not raw.is_integer():
                raise DataTypeError(f"Cannot convert {raw!r} to {type_name} without losing precision")
            value = int(raw)
        elif isinstance(raw, str):
            text = raw.strip().replace(",", "")
            try:
                value = int(text)
            except ValueError:
                as_float = float(text)
                if not as_float.is_integer():
                    raise DataTypeError(f"Cannot convert {raw!r} to {type_name} without losing precision")
                value = int(as_float)
        else:
            raise DataTypeError(f"Cannot convert {type(raw).__name__} to {type_name}")
        if not low <= value <= high:
            raise DataTypeError(f"{value} is out of range for {type_name}")
        return value

    return _coerce


def _coerce_real(raw: Any, fmt: str | None) -> float:
    if isinstance(raw, bool):
        raise DataTypeError("Cannot convert bool to a floating point type")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        return float(raw.strip().replace(",", ""))
    raise DataTypeError(f"Cannot convert {type(raw).__name__} to a floating point type")


def _coerce_boolean(raw: Any, fmt: str | None) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise DataTypeError(f"Cannot convert {raw!r} to Boolean")


def _coerce_date(raw: Any, fmt: str | None) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if fmt:
            return datetime.strptime(text, fmt).date()
        if "T" in text or " " in text:
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text)
    raise DataTypeError(f"Cannot convert {type(raw).__name__} to Date")


def _coerce_datetime(raw: Any, fmt: str | None) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if isinstance(raw, str):
        text = raw.strip()
        if fmt:
            return datetime.strptime(text, fmt)
        return datetime.fromisoformat(text)
    raise DataTypeError(f"Cannot convert {type(raw).__name__} to DateTime")


def _coerce_time(raw: Any, fmt: str | None) -> time:
    if isinstance(raw, datetime):
        return raw.time()
    if isinstance(raw, time):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if fmt:
            return datetime.strptime(text, fmt).time()
        return time.fromisoformat(text)
    raise DataTypeError(f"Cannot convert {type(raw).__name__} to Time")


_COERCERS = {
    TEXT: _coerce_text,
    INTEGER: _make_integral(INTEGER),
    LONG: _make_integral(LONG),
    FLOAT: _coerce_real,
    DOUBLE: _coerce_real,
    BOOLEAN: _coerce_boolean,
    DATE: _coerce_date,
    DATETIME: _coerce_datetime,
    TIME: _coerce_time,
}


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def format_value(type: str, value: Any, fmt: str | None = None) -> str:
    """
    Canonical string form of a stored value.
    Used for text matching (STARTS_WITH, CONTAINS, ...) and persistence,
    so it must parse back through coerce_value() unchanged.
    """
    if value is None:
        return ""
    if type == BOOLEAN:
        return "true" if value else "false"
    if type in (FLOAT, DOUBLE):
        return repr(float(value))
    if type in TEMPORAL_TYPES:
        if fmt:
            return value.strftime(fmt)
        return value.isoformat()
    return str(value)


def infer_type(value: Any) -> str:
    """Pick an item type for a native Python value (used for feature maps)."""
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return LONG
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, datetime):
        return DATETIME
    if isinstance(value, date):
        return DATE
    if isinstance(value, time):
        return TIME
    return TEXT
