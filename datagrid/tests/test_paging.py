"""
Paging adapter -- PageRequest / PageResponse tests.

Covers:
  - start_row/end_row and offset/limit windows
  - Request validation (exclusive windows, ordering, unknown fields)
  - Sort, search and filters translated into criteria
  - A search term alone still gets its window applied
  - first_row / last_row bookkeeping, including the empty page
"""

import pydantic
import pytest

from datagrid.config import settings
from datagrid.criteria import FETCH_PAGING
from datagrid.paging import PageRequest, fetch_page


def _ids(response):
    return [row["employee_id"] for row in response.rows]


# ============================================================================
# 1. Request validation
# ============================================================================


class TestPageRequest:
    def test_row_window(self):
        assert PageRequest(start_row=10, end_row=25).window() == (10, 15)

    def test_offset_window(self):
        assert PageRequest(offset=5, limit=5).window() == (5, 5)
        assert PageRequest().window() == (0, None)

    @pytest.mark.parametrize("kwargs", [
        {"start_row": 0, "end_row": 5, "offset": 0},
        {"start_row": 3},
        {"start_row": 5, "end_row": 5},
        {"limit": 0},
        {"sort_order": "UP"},
        {"page": 2},
    ])
    def test_rejected(self, kwargs):
        with pytest.raises(pydantic.ValidationError):
            PageRequest(**kwargs)

    def test_to_criteria(self, staff_grid):
        request = PageRequest(
            offset=2,
            limit=3,
            sort_field="salary",
            sort_order="DESCENDING",
            search="alan",
            filters={"dept": "eng"},
        )
        criteria = request.to_criteria(staff_grid.columns)
        assert criteria.fetch_policy == FETCH_PAGING
        assert (criteria.offset, criteria.limit) == (2, 3)
        assert criteria.sort_entries() == [("salary", "DESCENDING")]
        assert criteria.search_term == "alan"
        assert [(e.name, e.operator) for e in criteria.filter_entries()] == [("dept", "EQUAL")]


# ============================================================================
# 2. fetch_page
# ============================================================================


class TestFetchPage:
    def test_row_window(self, staff_ds):
        response = fetch_page(staff_ds, PageRequest(start_row=1, end_row=3))
        assert _ids(response) == [2, 3]
        assert response.total_rows == 5
        assert response.returned_rows == 2
        assert (response.first_row, response.last_row) == (1, 2)

    def test_last_partial_page(self, staff_ds):
        response = fetch_page(staff_ds, PageRequest(offset=4, limit=2))
        assert _ids(response) == [5]
        assert (response.first_row, response.last_row) == (4, 4)

    def test_empty_page(self, staff_ds):
        response = fetch_page(staff_ds, PageRequest(offset=10, limit=2))
        assert response.rows == []
        assert response.total_rows == 5
        assert (response.first_row, response.last_row) == (-1, -1)

    def test_default_page_size(self, staff_ds):
        response = fetch_page(staff_ds, PageRequest())
        assert response.returned_rows == min(5, settings.PAGE_LIMIT)

    def test_sorted(self, staff_ds):
        response = fetch_page(staff_ds, PageRequest(offset=0, limit=2, sort_field="salary", sort_order="DESCENDING"))
        assert _ids(response) == [5, 1]

    def test_search_only(self, staff_ds):
        response = fetch_page(staff_ds, PageRequest(search="alan", offset=0, limit=1))
        assert _ids(response) == [2]
        assert response.total_rows == 2
        assert response.returned_rows == 1

    def test_filtered_and_searched(self, staff_ds):
        request = PageRequest(filters={"salary:GREATER_THAN": "100000"}, search="a")
        response = fetch_page(staff_ds, request)
        assert _ids(response) == [1, 2, 5]
        assert response.total_rows == 3

    def test_rows_are_plain_values(self, staff_ds):
        response = fetch_page(staff_ds, PageRequest(offset=0, limit=1))
        assert response.rows[0]["skills"] == ["math", "python"]
        assert response.rows[0]["name"] == "Ada Lovelace"
