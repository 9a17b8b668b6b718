"""
DataGrid — Renderer

Pure functions: grid or document -> HTML or plain text.
No IO. Deterministic: same input, same output.

HTML goes through a mustache template (chevron escapes every value);
callers may pass their own template, which receives the same context:
  name, caption{text} (absent when untitled), columns[{name, title}],
  rows[{cells[{name, text}]}]

Hidden and secret columns are left out unless include_hidden is set.
Columns with a ui_format feature format their values with it.
"""

from __future__ import annotations

import logging
from html import escape as _html_escape
from typing import Any

import chevron

from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.item import DataItem
from datagrid.types import IS_HIDDEN, IS_SECRET, UI_FORMAT

logger = logging.getLogger(__name__)

GRID_HTML_TEMPLATE = """<table class="datagrid" data-name="{{name}}">
{{#caption}}  <caption>{{text}}</caption>
{{/caption}}  <thead>
    <tr>{{#columns}}<th data-name="{{name}}">{{title}}</th>{{/columns}}</tr>
  </thead>
  <tbody>
{{#rows}}    <tr>{{#cells}}<td data-name="{{name}}">{{text}}</td>{{/cells}}</tr>
{{/rows}}  </tbody>
</table>"""

EMPTY_CELL = ""

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_grid(
    grid: DataGrid,
    channel: str = "html",
    include_hidden: bool = False,
    template: str | None = None,
) -> str:
    """Render a grid as an HTML table or a fixed-width text table."""
    columns = visible_columns(grid.columns, include_hidden)
    rows = grid.stored_rows()
    if channel == "text":
        return _render_grid_text(grid, columns, rows)
    return chevron.render(template or GRID_HTML_TEMPLATE, grid_context(grid, columns, rows))


def render_doc(doc: DataDoc, channel: str = "html", include_hidden: bool = False) -> str:
    """Render one document as a definition list, or name: value pairs."""
    items = visible_columns(doc, include_hidden)
    if channel == "text":
        fields = [f"{i.title}: {display_value(i)}" for i in items]
        return " | ".join(fields) if fields else doc.name

    if not items:
        return f'<div class="datagrid-doc" data-name="{escape(doc.name)}"></div>'
    body = "".join(f"<dt>{escape(i.title)}</dt><dd>{escape(display_value(i))}</dd>" for i in items)
    return f'<div class="datagrid-doc" data-name="{escape(doc.name)}"><dl>{body}</dl></div>'


def visible_columns(columns: DataDoc, include_hidden: bool = False) -> list[DataItem]:
    if include_hidden:
        return columns.items()
    return [
        c for c in columns
        if not c.is_feature_true(IS_HIDDEN) and not c.is_feature_true(IS_SECRET)
    ]


def grid_context(grid: DataGrid, columns: list[DataItem], rows: list[DataDoc]) -> dict[str, Any]:
    return {
        "name": grid.name,
        "caption": {"text": grid.title} if grid.title else None,
        "columns": [{"name": c.name, "title": c.title} for c in columns],
        "rows": [
            {"cells": [{"name": c.name, "text": display_value(row.item(c.name))} for c in columns]}
            for row in rows
        ],
    }


def display_value(item: DataItem) -> str:
    """
    Values joined with ', ', each formatted with ui_format when set.
    ui_format is either a format spec (",.2f") or a template ("{:,.0f} USD").
    """
    if item.is_empty():
        return EMPTY_CELL
    fmt = item.get_feature(UI_FORMAT)
    if fmt:
        try:
            if "{" in fmt:
                return ", ".join(fmt.format(v) for v in item.values)
            return ", ".join(format(v, fmt) for v in item.values)
        except (TypeError, ValueError, IndexError, KeyError) as e:
            logger.debug("renderer: ui_format %r does not fit %s: %s", fmt, item.name, e)
    return ", ".join(item.strings())


def escape(text: str) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


# ---------------------------------------------------------------------------
# Text rendering
# ---------------------------------------------------------------------------


def _render_grid_text(grid: DataGrid, columns: list[DataItem], rows: list[DataDoc]) -> str:
    """Fixed-width table, with the grid title underlined when present."""
    parts: list[str] = []
    if grid.title:
        parts.append(grid.title)
        parts.append("=" * len(grid.title))
        parts.append("")

    if not columns:
        return "\n".join(parts).rstrip()

    table = [[c.title for c in columns]]
    for row in rows:
        table.append([display_value(row.item(c.name)) for c in columns])
    widths = [max(len(line[i]) for line in table) for i in range(len(columns))]

    def _line(cells: list[str]) -> str:
        return "  ".join(cell.ljust(w) for cell, w in zip(cells, widths)).rstrip()

    parts.append(_line(table[0]))
    parts.append("  ".join("-" * w for w in widths))
    parts.extend(_line(cells) for cells in table[1:])
    return "\n".join(parts)
