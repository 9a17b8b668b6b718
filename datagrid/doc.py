"""
DataGrid — Documents

A DataDoc is an ordered, name-unique collection of DataItems. The same
class plays two roles:
- schema: items carry type and feature metadata, usually no values
- row:    items carry values and conform to a grid's schema by name

Documents handed out by a grid are always independent copies.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from typing import Any

from datagrid.item import DataItem
from datagrid.types import (
    IS_PRIMARY,
    NotFoundError,
    ValidationError,
)


class DataDoc:
    """Ordered collection of uniquely named items, plus a feature map."""

    def __init__(
        self,
        name: str = "",
        title: str = "",
        items: list[DataItem] | None = None,
        features: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.title = title
        self.features: dict[str, Any] = dict(features or {})
        self._items: dict[str, DataItem] = {}
        for item in items or []:
            self.add(item)

    # -- container protocol --

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[DataItem]:
        return iter(list(self._items.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataDoc):
            return NotImplemented
        return (
            self.name == other.name
            and self.title == other.title
            and self.features == other.features
            and list(self._items.values()) == list(other._items.values())
        )

    def __repr__(self) -> str:  # pragma: no cover
        return f"DataDoc(name={self.name!r}, items={self.names()!r})"

    # -- items --

    def add(self, item: DataItem) -> DataItem:
        """Append an item. Duplicate names are rejected."""
        if item.name in self._items:
            raise ValidationError(f"Duplicate item name: {item.name!r}")
        self._items[item.name] = item
        return item

    def put(self, item: DataItem) -> DataItem:
        """Replace the same-named item in place, or append it."""
        self._items[item.name] = item
        return item

    def remove(self, name: str) -> DataItem:
        try:
            return self._items.pop(name)
        except KeyError:
            raise NotFoundError(f"Item not found: {name!r}") from None

    def get(self, name: str) -> DataItem | None:
        return self._items.get(name)

    def item(self, name: str) -> DataItem:
        found = self._items.get(name)
        if found is None:
            raise NotFoundError(f"Item not found: {name!r}")
        return found

    def names(self) -> list[str]:
        return list(self._items)

    def items(self) -> list[DataItem]:
        return list(self._items.values())

    def items_with_feature(self, key: str) -> list[DataItem]:
        return [i for i in self._items.values() if i.is_feature_true(key)]

    def primary_item(self) -> DataItem | None:
        """The first item flagged is_primary, if any."""
        for item in self._items.values():
            if item.is_feature_true(IS_PRIMARY):
                return item
        return None

    # -- values --

    def value(self, name: str) -> Any:
        return self.item(name).value

    def values(self, name: str) -> list[Any]:
        return list(self.item(name).values)

    def set_value(self, name: str, raw: Any) -> None:
        self.item(name).set_value(raw)

    def set_values(self, name: str, raws: list[Any]) -> None:
        self.item(name).set_values(raws)

    def clear_values(self) -> None:
        for item in self._items.values():
            item.clear_values()

    def as_values(self) -> dict[str, Any]:
        """Plain {name: value} mapping; multi-valued items map to a list."""
        out: dict[str, Any] = {}
        for item in self._items.values():
            out[item.name] = list(item.values) if item.multi_value else item.value
        return out

    # -- copies --

    def copy(self) -> DataDoc:
        return copy.deepcopy(self)

    def schema_copy(self) -> DataDoc:
        """Copy with every item's values cleared."""
        return DataDoc(
            name=self.name,
            title=self.title,
            items=[i.copy(with_values=False) for i in self._items.values()],
            features=copy.deepcopy(self.features),
        )

    # -- serialization --

    def to_dict(self, with_values: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "title": self.title,
            "items": [i.to_dict(with_values=with_values) for i in self._items.values()],
        }
        if self.features:
            d["features"] = dict(self.features)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DataDoc:
        return cls(
            name=d.get("name", ""),
            title=d.get("title", ""),
            items=[DataItem.from_dict(i) for i in d.get("items", [])],
            features=d.get("features", {}),
        )
