"""
DataGrid test configuration.

Shared fixtures: the two-column salary grid used by the query scenario and
a richer staff grid with search, suggest and primary key flags.
"""

import pytest

from datagrid.doc import DataDoc
from datagrid.grid import DataGrid
from datagrid.grid_ds import GridDS
from datagrid.item import make_item
from datagrid.types import BOOLEAN, DATE, DOUBLE, INTEGER


def _make_row(grid, **values):
    row = grid.new_row()
    for name, value in values.items():
        if isinstance(value, list):
            row.set_values(name, value)
        else:
            row.set_value(name, value)
    return row


@pytest.fixture
def salary_grid():
    columns = DataDoc(items=[
        make_item("employee_id", INTEGER, primary=True),
        make_item("salary", DOUBLE),
    ])
    grid = DataGrid(name="salaries", columns=columns)
    for employee_id, salary in [(1, 50000.0), (2, 75000.0), (3, 60000.0)]:
        grid.add_row(_make_row(grid, employee_id=employee_id, salary=salary))
    return grid


STAFF = [
    # employee_id, name, dept, salary, active, hired, skills
    (1, "Ada Lovelace", "eng", 120000.0, True, "2019-03-01", ["math", "python"]),
    (2, "Alan Turing", "eng", 110000.0, True, "2020-07-15", ["crypto"]),
    (3, "Grace Hopper", "ops", 95000.0, False, "2018-01-10", ["cobol", "python"]),
    (4, "Alan Kay", "design", 95000.0, True, "2021-11-30", []),
    (5, "Barbara Liskov", "eng", 130000.0, True, "2017-05-22", ["python"]),
]


@pytest.fixture
def staff_grid():
    columns = DataDoc(items=[
        make_item("employee_id", INTEGER, primary=True),
        make_item("name", required=True, search=True, suggest=True),
        make_item("dept", search=True, facet=True),
        make_item("salary", DOUBLE),
        make_item("active", BOOLEAN),
        make_item("hired", DATE),
        make_item("skills", multi_value=True),
    ])
    grid = DataGrid(name="staff", columns=columns, title="Staff")
    for employee_id, name, dept, salary, active, hired, skills in STAFF:
        grid.add_row(_make_row(
            grid,
            employee_id=employee_id,
            name=name,
            dept=dept,
            salary=salary,
            active=active,
            hired=hired,
            skills=skills,
        ))
    return grid


@pytest.fixture
def staff_ds(staff_grid):
    return GridDS(staff_grid)
