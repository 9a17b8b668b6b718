"""
DataGrid — Validation

Structural checks for schema and row documents.
Every validator returns a list of error strings. Empty list = valid.

This checks structure only:
- Are names well-formed?
- Is there at most one primary key and one suggest column?
- Are text-only flags on text columns?
- Do rows name only known columns, fill the required ones, and stay
  inside each column's range?

Hidden columns are exempt from the required and range checks.

Type compatibility is not checked here; DataItem enforces it on
assignment.
"""

from __future__ import annotations

from datagrid.doc import DataDoc
from datagrid.types import (
    IS_HIDDEN,
    IS_PRIMARY,
    IS_REQUIRED,
    IS_SUGGEST,
    TEXT,
    TEXT_ONLY_FEATURES,
    ValidationError,
    is_valid_name,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_schema(columns: DataDoc) -> list[str]:
    """Validate a schema document."""
    errors: list[str] = []

    for column in columns:
        if not is_valid_name(column.name):
            errors.append(f"Invalid column name: {column.name!r}")
        for key in sorted(TEXT_ONLY_FEATURES):
            if column.is_feature_true(key) and column.type != TEXT:
                errors.append(f"{column.name}: {key} is only allowed on Text items")

    if len(columns.items_with_feature(IS_PRIMARY)) > 1:
        errors.append("There must be exactly one primary key item defined.")
    if len(columns.items_with_feature(IS_SUGGEST)) > 1:
        errors.append("At most one item may be flagged is_suggest.")

    return errors


def validate_row(row: DataDoc, columns: DataDoc) -> list[str]:
    """Validate a row document against a schema."""
    errors: list[str] = []

    for name in row.names():
        if name not in columns:
            errors.append(f"Unknown item: {name!r}")

    for column in columns:
        if column.is_feature_true(IS_HIDDEN):
            continue
        item = row.get(column.name)
        if item is None or item.is_empty():
            if column.is_feature_true(IS_REQUIRED):
                errors.append(f"{column.name}: A value must be assigned.")
        elif not column.in_range(item.values):
            errors.append(f"{column.name}: The value is out of range.")

    return errors


def raise_for_errors(errors: list[str]) -> None:
    if errors:
        raise ValidationError(errors)
