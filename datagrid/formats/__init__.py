"""
DataGrid Formats — persistence for grids.

  csv_format   delimited text with typed header cells
  json_format  grid documents and single/array records
  xml_format   markup document with typed features

save() and load() pick the format from the file extension.
"""

from __future__ import annotations

from pathlib import Path

from datagrid.formats.csv_format import dumps_csv, load_csv, loads_csv, save_csv
from datagrid.formats.json_format import dumps_json, load_json, loads_json, save_json
from datagrid.formats.xml_format import dumps_xml, load_xml, loads_xml, save_xml
from datagrid.grid import DataGrid
from datagrid.types import ValidationError

_SAVERS = {
    ".csv": save_csv,
    ".json": save_json,
    ".xml": save_xml,
}

_LOADERS = {
    ".csv": load_csv,
    ".json": load_json,
    ".xml": load_xml,
}


def save(grid: DataGrid, path: str | Path) -> None:
    saver = _SAVERS.get(Path(path).suffix.lower())
    if saver is None:
        raise ValidationError(f"Unsupported file type: {path}")
    saver(grid, path)


def load(path: str | Path) -> DataGrid:
    loader = _LOADERS.get(Path(path).suffix.lower())
    if loader is None:
        raise ValidationError(f"Unsupported file type: {path}")
    return loader(path)


__all__ = [
    "save",
    "load",
    "dumps_csv",
    "loads_csv",
    "save_csv",
    "load_csv",
    "dumps_json",
    "loads_json",
    "save_json",
    "load_json",
    "dumps_xml",
    "loads_xml",
    "save_xml",
    "load_xml",
]
