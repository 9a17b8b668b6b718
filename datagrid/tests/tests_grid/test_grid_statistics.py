"""
DataGrid Grids -- Descriptive Statistics Tests

Covers:
  - describe() yields one details row per column, keyed by column name
  - Counting statistics for every type
  - minimum / maximum skipped for Boolean columns
  - mean / standard deviation / median for numeric columns
  - median for temporal columns (lower middle)
  - locate_median on even and odd counts
"""

import statistics

import pytest

from datagrid.analyzer import DETAILS_COLUMNS, describe, locate_median


def _details_by_name(details):
    return {row.value("name"): row for row in details}


# ============================================================================
# 1. Details grid shape
# ============================================================================


class TestShape:
    def test_one_row_per_column(self, staff_grid):
        details = describe(staff_grid)
        assert details.name == "staff_details"
        assert tuple(details.columns.names()) == DETAILS_COLUMNS
        assert [r.value("name") for r in details] == staff_grid.columns.names()

    def test_name_is_primary(self, salary_grid):
        assert describe(salary_grid).primary_column().name == "name"

    def test_empty_grid(self, salary_grid):
        salary_grid.clear_rows()
        row = _details_by_name(describe(salary_grid))["salary"]
        assert row.value("total_count") == 0
        assert row.value("mean") is None
        assert row.value("minimum") is None


# ============================================================================
# 2. Numeric columns
# ============================================================================


class TestNumeric:
    def test_salary_statistics(self, salary_grid):
        row = _details_by_name(describe(salary_grid))["salary"]
        assert row.value("type") == "Double"
        assert row.value("total_count") == 3
        assert row.value("unique_count") == 3
        assert row.value("null_count") == 0
        assert row.value("minimum") == "50000.0"
        assert row.value("maximum") == "75000.0"
        assert row.value("mean") == pytest.approx(61666.666, rel=1e-6)
        assert row.value("standard_deviation") == pytest.approx(
            statistics.stdev([50000.0, 75000.0, 60000.0])
        )
        assert row.value("median") == "60000.0"

    def test_single_value_has_zero_deviation(self, salary_grid):
        salary_grid.delete_row(2)
        salary_grid.delete_row(1)
        row = _details_by_name(describe(salary_grid))["salary"]
        assert row.value("standard_deviation") == 0.0


# ============================================================================
# 3. Other types
# ============================================================================


class TestOtherTypes:
    def test_boolean_has_no_range(self, staff_grid):
        row = _details_by_name(describe(staff_grid))["active"]
        assert row.value("unique_count") == 2
        assert row.value("minimum") is None
        assert row.value("maximum") is None

    def test_text_range(self, staff_grid):
        row = _details_by_name(describe(staff_grid))["name"]
        assert row.value("minimum") == "Ada Lovelace"
        assert row.value("maximum") == "Grace Hopper"
        assert row.value("median") is None

    def test_date_median(self, staff_grid):
        row = _details_by_name(describe(staff_grid))["hired"]
        assert row.value("median") == "2019-03-01"
        assert row.value("minimum") == "2017-05-22"

    def test_multi_valued_counts(self, staff_grid):
        row = _details_by_name(describe(staff_grid))["skills"]
        assert row.value("null_count") == 1
        assert row.value("unique_count") == 4


# ============================================================================
# 4. locate_median
# ============================================================================


class TestLocateMedian:
    def test_odd_count(self):
        assert locate_median([3, 1, 2]) == 2

    def test_even_numeric_averages(self):
        assert locate_median([1, 2, 3, 4]) == 2.5

    def test_even_text_takes_lower_middle(self):
        assert locate_median(["d", "a", "c", "b"]) == "b"

    def test_ignores_none(self):
        assert locate_median([None, 5, None]) == 5
        assert locate_median([]) is None
