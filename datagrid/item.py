"""
DataGrid — Items

A DataItem is a single named, typed field: one value, several values, or
none. Items double as column definitions when they live in a schema
document, in which case their features (is_primary, is_search, ...) carry
the column metadata and their values are usually empty.

The type is fixed at construction. Every path that assigns values goes
through coerce_value(), so a DataItem never holds a value its type cannot
represent.

An optional DataRange limits the values a column accepts: exclusive
min/max bounds, or a list of choices. Rows are checked against it by
validate_row(), not on assignment.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from datagrid.types import (
    DATA_FORMAT,
    IS_FACET,
    IS_HIDDEN,
    IS_PRIMARY,
    IS_REQUIRED,
    IS_SEARCH,
    IS_SUGGEST,
    TEXT,
    DataTypeError,
    ValidationError,
    coerce_value,
    format_value,
    is_empty_value,
    is_valid_name,
    is_valid_type,
    name_to_title,
)


@dataclass
class DataRange:
    """Allowed values: exclusive min/max bounds (either may be None) or a choice list."""

    minimum: Any = None
    maximum: Any = None
    choices: list[Any] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.choices and (self.minimum is not None or self.maximum is not None):
            raise ValidationError("A range takes either choices or min/max bounds, not both")

    def is_valid(self, value: Any) -> bool:
        if self.choices:
            return value in self.choices
        if self.minimum is not None and not value > self.minimum:
            return False
        if self.maximum is not None and not value < self.maximum:
            return False
        return True

    def coerced(self, type: str, fmt: str | None = None) -> DataRange:
        """Copy with bounds and choices converted to `type`."""

        def _convert(raw: Any) -> Any:
            return None if is_empty_value(raw) else coerce_value(type, raw, fmt)

        return DataRange(
            minimum=_convert(self.minimum),
            maximum=_convert(self.maximum),
            choices=[_convert(c) for c in self.choices if not is_empty_value(c)],
        )

    def to_dict(self, type: str, fmt: str | None = None) -> dict[str, Any]:
        if self.choices:
            return {"choices": [format_value(type, c, fmt) for c in self.choices]}
        d: dict[str, Any] = {}
        if self.minimum is not None:
            d["min"] = format_value(type, self.minimum, fmt)
        if self.maximum is not None:
            d["max"] = format_value(type, self.maximum, fmt)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DataRange:
        return cls(minimum=d.get("min"), maximum=d.get("max"), choices=list(d.get("choices", [])))


@dataclass
class DataItem:
    """
    One named, typed field with an open feature map.

    values is always a list; single-valued items hold at most one entry.
    Assign through set_value / set_values / add_value rather than mutating
    the list directly.
    """

    name: str
    type: str = TEXT
    title: str = ""
    values: list[Any] = field(default_factory=list)
    features: dict[str, Any] = field(default_factory=dict)
    multi_value: bool = False
    default_value: Any = None
    data_range: DataRange | None = None

    def __post_init__(self) -> None:
        if not is_valid_name(self.name):
            raise ValidationError(f"Invalid item name: {self.name!r}")
        if not self.title:
            self.title = name_to_title(self.name)
        raw = self.values
        self.values = []
        self.set_values(raw)
        if not is_empty_value(self.default_value):
            self.default_value = self._coerce(self.default_value)
        self.set_range(self.data_range)

    def __setattr__(self, key: str, value: Any) -> None:
        if key == "type":
            if "type" in self.__dict__:
                raise DataTypeError(f"Item {self.name!r}: type is fixed after creation")
            if not is_valid_type(value):
                raise DataTypeError(f"Unknown item type: {value!r}")
        super().__setattr__(key, value)

    # -- values --

    @property
    def value(self) -> Any:
        """First value, or None when nothing is assigned."""
        return self.values[0] if self.values else None

    def set_value(self, raw: Any) -> None:
        """Replace all values with a single value (None/"" clears)."""
        self.values = [] if is_empty_value(raw) else [self._coerce(raw)]

    def set_values(self, raws: Any) -> None:
        if raws is None:
            raws = []
        elif isinstance(raws, (str, bytes)) or not isinstance(raws, (list, tuple, set, frozenset)):
            raws = [raws]
        coerced = [self._coerce(r) for r in raws if not is_empty_value(r)]
        if len(coerced) > 1 and not self.multi_value:
            raise DataTypeError(f"Item {self.name!r} is not multi-valued; got {len(coerced)} values")
        self.values = coerced

    def add_value(self, raw: Any) -> None:
        if is_empty_value(raw):
            return
        if self.values and not self.multi_value:
            raise DataTypeError(f"Item {self.name!r} is not multi-valued")
        self.values.append(self._coerce(raw))

    def clear_values(self) -> None:
        self.values = []

    def is_empty(self) -> bool:
        return not self.values

    def value_as_string(self) -> str:
        return format_value(self.type, self.value, self.get_feature(DATA_FORMAT))

    def values_as_string(self, delimiter: str = "|") -> str:
        fmt = self.get_feature(DATA_FORMAT)
        return delimiter.join(format_value(self.type, v, fmt) for v in self.values)

    def strings(self) -> list[str]:
        """Canonical string form of each value."""
        fmt = self.get_feature(DATA_FORMAT)
        return [format_value(self.type, v, fmt) for v in self.values]

    # -- range --

    def set_range(self, data_range: DataRange | None) -> None:
        fmt = self.get_feature(DATA_FORMAT)
        self.data_range = None if data_range is None else data_range.coerced(self.type, fmt)

    def in_range(self, values: list[Any] | None = None) -> bool:
        """
        True when every value (this item's own by default) falls inside the
        range, or no range is set. Values are converted to this item's type first.
        """
        if self.data_range is None:
            return True
        values = self.values if values is None else [self._coerce(v) for v in values]
        return all(self.data_range.is_valid(v) for v in values)

    def _coerce(self, raw: Any) -> Any:
        return coerce_value(self.type, raw, self.get_feature(DATA_FORMAT))

    # -- features --

    def get_feature(self, key: str, default: Any = None) -> Any:
        return self.features.get(key, default)

    def set_feature(self, key: str, value: Any) -> None:
        self.features[key] = value

    def enable_feature(self, key: str) -> None:
        self.features[key] = True

    def disable_feature(self, key: str) -> None:
        self.features.pop(key, None)

    def is_feature_true(self, key: str) -> bool:
        value = self.features.get(key)
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return bool(value)

    def feature_as_int(self, key: str, default: int = 0) -> int:
        value = self.features.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def feature_as_str(self, key: str, default: str = "") -> str:
        value = self.features.get(key)
        return default if value is None else str(value)

    def clear_features(self) -> None:
        self.features = {}

    # -- copies --

    def copy(self, with_values: bool = True) -> DataItem:
        """Deep copy. with_values=False yields a schema (column) copy."""
        dup = copy.deepcopy(self)
        if not with_values:
            dup.values = []
        return dup

    # -- serialization --

    def to_dict(self, with_values: bool = True) -> dict[str, Any]:
        fmt = self.get_feature(DATA_FORMAT)
        d: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "title": self.title,
        }
        if self.multi_value:
            d["multi_value"] = True
        if self.default_value is not None:
            d["default_value"] = format_value(self.type, self.default_value, fmt)
        if self.data_range is not None:
            d["range"] = self.data_range.to_dict(self.type, fmt)
        if self.features:
            d["features"] = dict(self.features)
        if with_values:
            d["values"] = self.strings()
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DataItem:
        return cls(
            name=d["name"],
            type=d.get("type", TEXT),
            title=d.get("title", ""),
            values=list(d.get("values", [])),
            features=dict(d.get("features", {})),
            multi_value=d.get("multi_value", False),
            default_value=d.get("default_value"),
            data_range=DataRange.from_dict(d["range"]) if "range" in d else None,
        )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def make_item(
    name: str,
    type: str = TEXT,
    *,
    title: str = "",
    value: Any = None,
    values: list[Any] | None = None,
    primary: bool = False,
    required: bool = False,
    search: bool = False,
    suggest: bool = False,
    facet: bool = False,
    hidden: bool = False,
    multi_value: bool = False,
    default_value: Any = None,
    data_format: str | None = None,
    data_range: DataRange | None = None,
    features: dict[str, Any] | None = None,
) -> DataItem:
    """
    Build a DataItem from keyword options.

    Flags only land in the feature map when true, so a plain
    make_item("name") carries no features at all.
    """
    feats: dict[str, Any] = dict(features or {})
    for key, enabled in (
        (IS_PRIMARY, primary),
        (IS_REQUIRED, required),
        (IS_SEARCH, search),
        (IS_SUGGEST, suggest),
        (IS_FACET, facet),
        (IS_HIDDEN, hidden),
    ):
        if enabled:
            feats[key] = True
    if data_format:
        feats[DATA_FORMAT] = data_format

    if values is None:
        values = [] if value is None else [value]
    elif value is not None:
        raise ValidationError("Pass either value or values, not both")

    return DataItem(
        name=name,
        type=type,
        title=title,
        values=list(values),
        features=feats,
        multi_value=multi_value,
        default_value=default_value,
        data_range=data_range,
    )
