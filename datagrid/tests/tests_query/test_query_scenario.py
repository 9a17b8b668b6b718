"""
DataGrid Query -- End-to-End Scenario Tests

The salary grid (employee_id 1..3 with salaries 50000 / 75000 / 60000)
queried through GridDS.fetch().

Covers:
  - BETWEEN_INCLUSIVE on salary returns only the matching row
  - SORT salary DESCENDING reorders the full result
  - Filter then sort then window, in that order
  - Every returned row satisfies an EQUAL filter; no satisfying row is missing
  - Same criteria and window twice give the same rows
  - Source grid is untouched by reads
"""

from datagrid.criteria import Criteria
from datagrid.grid_ds import GridDS
from datagrid.types import DESCENDING, DOUBLE


def _ids(grid):
    return [r.value("employee_id") for r in grid]


# ============================================================================
# 1. Salary scenario
# ============================================================================


class TestSalaryScenario:
    def test_between_inclusive(self, salary_grid):
        criteria = Criteria().add("salary", "BETWEEN_INCLUSIVE", 55000, 70000, type=DOUBLE)
        result = GridDS(salary_grid).fetch(criteria)
        assert _ids(result) == [3]
        assert result.row(0).value("salary") == 60000.0

    def test_sort_descending(self, salary_grid):
        result = GridDS(salary_grid).fetch(Criteria().sort("salary", DESCENDING))
        assert _ids(result) == [2, 3, 1]

    def test_filter_sort_window(self, salary_grid):
        criteria = Criteria().add("salary", "GREATER_THAN", 55000, type=DOUBLE).sort("salary")
        result = GridDS(salary_grid).fetch(criteria, offset=1, limit=1)
        assert _ids(result) == [2]
        assert result.features["total_documents"] == 2

    def test_reads_leave_source_alone(self, salary_grid):
        before = salary_grid.copy()
        result = GridDS(salary_grid).fetch(Criteria().sort("salary", DESCENDING))
        result.delete_row(0)
        assert salary_grid == before


# ============================================================================
# 2. Properties over the staff grid
# ============================================================================


class TestProperties:
    def test_equal_filter_is_exact(self, staff_ds, staff_grid):
        result = staff_ds.fetch(Criteria().add("dept", "EQUAL", "eng"))
        returned = {r.value("employee_id") for r in result}
        expected = {r.value("employee_id") for r in staff_grid if r.value("dept") == "eng"}
        assert returned == expected

    def test_pagination_is_idempotent(self, staff_ds):
        criteria = Criteria().sort("name")
        first = staff_ds.fetch(criteria, offset=1, limit=2)
        second = staff_ds.fetch(criteria, offset=1, limit=2)
        assert first == second

    def test_pages_cover_the_result(self, staff_ds):
        criteria = Criteria().sort("hired")
        full = _ids(staff_ds.fetch(criteria))
        paged = []
        for offset in range(0, 5, 2):
            paged.extend(_ids(staff_ds.fetch(criteria, offset=offset, limit=2)))
        assert paged == full

    def test_sort_is_stable(self, staff_ds):
        result = staff_ds.fetch(Criteria().sort("salary"))
        # Grace (3) and Alan Kay (4) tie on salary
        assert _ids(result)[:2] == [3, 4]
