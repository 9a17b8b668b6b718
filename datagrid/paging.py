"""Paging adapter models: a UI grid widget's page request and response."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from datagrid.criteria import FETCH_PAGING, Criteria
from datagrid.doc import DataDoc
from datagrid.grid_ds import TOTAL_DOCUMENTS, GridDS
from datagrid.types import ASCENDING


class PageRequest(BaseModel):
    """What a paging widget sends: a row window plus sort, search and filters."""

    model_config = {"extra": "forbid"}

    # Either start_row/end_row (end exclusive) or offset/limit
    start_row: int | None = Field(default=None, ge=0)
    end_row: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=1)

    sort_field: str | None = None
    sort_order: Literal["ASCENDING", "DESCENDING"] = ASCENDING
    search: str | None = Field(default=None, max_length=1000)
    filters: dict[str, str] = Field(default_factory=dict)  # "field" or "field:OPERATOR" -> value

    @model_validator(mode="after")
    def _check_window(self) -> PageRequest:
        if self.start_row is not None or self.end_row is not None:
            if self.offset is not None or self.limit is not None:
                raise ValueError("Use start_row/end_row or offset/limit, not both")
            if self.start_row is None or self.end_row is None:
                raise ValueError("start_row and end_row must be given together")
            if self.end_row <= self.start_row:
                raise ValueError("end_row must be greater than start_row")
        return self

    def window(self) -> tuple[int, int | None]:
        """(offset, limit); limit None means the engine default page size."""
        if self.start_row is not None and self.end_row is not None:
            return self.start_row, self.end_row - self.start_row
        return self.offset or 0, self.limit

    def to_criteria(self, columns: DataDoc | None = None) -> Criteria:
        criteria = Criteria.from_params(self.filters, columns)
        if self.sort_field:
            criteria.sort(self.sort_field, self.sort_order)
        if self.search:
            criteria.search_term = self.search
        offset, limit = self.window()
        criteria.fetch_policy = FETCH_PAGING
        criteria.offset = offset
        if limit is not None:
            criteria.limit = limit
        return criteria


class PageResponse(BaseModel):
    """What the paging widget gets back."""

    total_rows: int
    returned_rows: int
    first_row: int
    last_row: int
    rows: list[dict[str, Any]] = Field(default_factory=list)


def fetch_page(ds: GridDS, request: PageRequest) -> PageResponse:
    """
    Run a page request against an executor.
    first_row/last_row are 0-based and inclusive; both are -1 on an empty page.
    """
    criteria = request.to_criteria(ds.grid.columns)
    result = ds.fetch(criteria)
    returned = len(result)
    first = criteria.offset if returned else -1
    return PageResponse(
        total_rows=result.features[TOTAL_DOCUMENTS],
        returned_rows=returned,
        first_row=first,
        last_row=first + returned - 1 if returned else -1,
        rows=[row.as_values() for row in result],
    )
