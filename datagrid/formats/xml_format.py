"""
DataGrid Formats — XML

  <DataGrid name="..." title="...">
    <Features>
      <Feature name="primary_key" type="Text">employee_id</Feature>
    </Features>
    <Columns>
      <Item name="employee_id" type="Integer" title="Employee Id">
        <Feature name="is_primary" type="Boolean">true</Feature>
      </Item>
      <Item name="salary" type="Double" title="Salary">
        <Range min="0.0" max="1000000.0"/>
      </Item>
      <Item name="dept" type="Text" title="Dept">
        <Range><Choice>eng</Choice><Choice>ops</Choice></Range>
      </Item>
    </Columns>
    <Rows>
      <DataDoc name="...">
        <Item name="employee_id"><Value>1</Value></Item>
      </DataDoc>
    </Rows>
  </DataGrid>

Features carry their own type so they read back as the same Python value.
Row items list only assigned values; empty items are omitted.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import DataItem, DataRange
from datagrid.types import (
    TEXT,
    ValidationError,
    coerce_value,
    format_value,
    infer_type,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def grid_to_element(grid: DataGrid) -> ET.Element:
    root = ET.Element("DataGrid", {"name": grid.name, "title": grid.title})
    _append_features(root, grid.features)

    columns = ET.SubElement(root, "Columns")
    for column in grid.columns:
        columns.append(_column_element(column))

    rows = ET.SubElement(root, "Rows")
    for row in grid.stored_rows():
        doc_el = ET.SubElement(rows, "DataDoc", {"name": row.name})
        for item in row:
            if item.is_empty():
                continue
            item_el = ET.SubElement(doc_el, "Item", {"name": item.name})
            for text in item.strings():
                ET.SubElement(item_el, "Value").text = text
    return root


def grid_from_element(root: ET.Element) -> DataGrid:
    if root.tag != "DataGrid":
        raise ValidationError(f"Expected <DataGrid>, got <{root.tag}>")
    name = root.get("name", "")
    columns_el = root.find("Columns")
    columns = DataDoc(name=name, items=[
        _column_from_element(el) for el in (columns_el if columns_el is not None else [])
    ])
    grid = DataGrid(
        name=name,
        columns=columns,
        title=root.get("title", ""),
        features=_read_features(root),
    )
    rows_el = root.find("Rows")
    for doc_el in rows_el if rows_el is not None else []:
        row = grid.new_row()
        row.name = doc_el.get("name", name)
        for item_el in doc_el.findall("Item"):
            row.item(item_el.get("name", "")).set_values(
                [v.text for v in item_el.findall("Value") if v.text is not None]
            )
        grid.add_row(row)
    return grid


def dumps_xml(grid: DataGrid) -> str:
    root = grid_to_element(grid)
    ET.indent(root)
    return ET.tostring(root, encoding="unicode")


def loads_xml(text: str) -> DataGrid:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ValidationError(f"Malformed XML: {e}") from e
    return grid_from_element(root)


def save_xml(grid: DataGrid, path: str | Path) -> None:
    Path(path).write_text(dumps_xml(grid), encoding="utf-8")


def load_xml(path: str | Path) -> DataGrid:
    return loads_xml(Path(path).read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _column_element(column: DataItem) -> ET.Element:
    attrs = {"name": column.name, "type": column.type, "title": column.title}
    if column.multi_value:
        attrs["multi_value"] = "true"
    if column.default_value is not None:
        attrs["default_value"] = format_value(column.type, column.default_value, column.get_feature("data_format"))
    el = ET.Element("Item", attrs)
    _append_features(el, column.features, wrap=False)
    if column.data_range is not None:
        _append_range(el, column.data_range.to_dict(column.type, column.get_feature("data_format")))
    return el


def _column_from_element(el: ET.Element) -> DataItem:
    return DataItem(
        name=el.get("name", ""),
        type=el.get("type", TEXT),
        title=el.get("title", ""),
        features=_read_features(el),
        multi_value=el.get("multi_value") == "true",
        default_value=el.get("default_value"),
        data_range=_read_range(el),
    )


def _append_range(parent: ET.Element, spec: dict[str, Any]) -> None:
    bounds = {k: spec[k] for k in ("min", "max") if k in spec}
    range_el = ET.SubElement(parent, "Range", bounds)
    for choice in spec.get("choices", []):
        ET.SubElement(range_el, "Choice").text = choice


def _read_range(parent: ET.Element) -> DataRange | None:
    el = parent.find("Range")
    if el is None:
        return None
    return DataRange(
        minimum=el.get("min"),
        maximum=el.get("max"),
        choices=[c.text or "" for c in el.findall("Choice")],
    )


def _append_features(parent: ET.Element, features: dict[str, Any], wrap: bool = True) -> None:
    if not features:
        return
    target = ET.SubElement(parent, "Features") if wrap else parent
    for key, value in features.items():
        type = infer_type(value)
        feature = ET.SubElement(target, "Feature", {"name": key, "type": type})
        feature.text = format_value(type, value)


def _read_features(parent: ET.Element) -> dict[str, Any]:
    wrapper = parent.find("Features")
    source = wrapper if wrapper is not None else parent
    features: dict[str, Any] = {}
    for el in source.findall("Feature"):
        type = el.get("type", TEXT)
        text = el.text or ""
        features[el.get("name", "")] = text if type == TEXT else coerce_value(type, text)
    return features
