"""SQLite traversal engine: real recursive CTEs over a projected schema.

Projects the store into an in-memory SQLite database shaped like the T-SQL
side of the comparison (``Department``, ``Employee`` with a ``ReportToId``
foreign key, ``Employs``) and answers hierarchy queries with
``WITH RECURSIVE``.
"""
from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager

from ..exceptions import CycleDetected, NotFound
from ..logging import get_logger
from ..models import Employee, EmploymentType, HierarchyHit
from ..store import EntityStore
from .base import check_max_depth

logger = get_logger(__name__)

# Path separator; sorts below every character an employee id may contain
# (see EMPLOYEE_ID_PATTERN) so a parent's path orders before its children
# and before longer sibling names.
_SEP = "\x01"

_SCHEMA = """
CREATE TABLE departments (
    department_id TEXT PRIMARY KEY,
    short_name TEXT NOT NULL,
    long_name TEXT NOT NULL
);

CREATE TABLE employees (
    employee_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    department_id TEXT NOT NULL,
    report_to_id TEXT,
    FOREIGN KEY (department_id) REFERENCES departments(department_id),
    FOREIGN KEY (report_to_id) REFERENCES employees(employee_id)
);

CREATE INDEX idx_employees_report_to ON employees(report_to_id);
CREATE INDEX idx_employees_department ON employees(department_id);

CREATE TABLE employs (
    company_id TEXT NOT NULL,
    employee_id TEXT PRIMARY KEY,
    employment_type TEXT NOT NULL,
    salary REAL NOT NULL,
    FOREIGN KEY (employee_id) REFERENCES employees(employee_id)
);
"""

_DESCENDANTS_SQL = """
WITH RECURSIVE reports(employee_id, depth, path) AS (
    SELECT employee_id, 0, '' FROM employees WHERE employee_id = :root
    UNION ALL
    SELECT e.employee_id, r.depth + 1,
           CASE WHEN r.depth = 0 THEN e.employee_id
                ELSE r.path || char(1) || e.employee_id END
    FROM employees e
    JOIN reports r ON e.report_to_id = r.employee_id
    WHERE r.depth < :limit
)
SELECT employee_id, depth, path FROM reports WHERE depth > 0 ORDER BY path
"""

_ANCESTORS_SQL = """
WITH RECURSIVE managers(employee_id, report_to_id, depth, path) AS (
    SELECT employee_id, report_to_id, 0, '' FROM employees WHERE employee_id = :root
    UNION ALL
    SELECT e.employee_id, e.report_to_id, m.depth + 1,
           CASE WHEN m.depth = 0 THEN e.employee_id
                ELSE m.path || char(1) || e.employee_id END
    FROM employees e
    JOIN managers m ON e.employee_id = m.report_to_id
    WHERE m.depth < :limit
)
SELECT employee_id, depth, path FROM managers WHERE depth > 0 ORDER BY depth
"""


class SQLiteTraversalEngine:
    """Recursive-CTE engine backed by an in-memory SQLite projection.

    One connection serves all queries, guarded by a lock, since an in-memory
    database lives and dies with its connection.
    """

    name = "sqlite"

    def __init__(self, store: EntityStore) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON;")
        self._init_schema()

    @contextmanager
    def _get_conn(self):
        with self._lock:
            yield self._conn

    def _init_schema(self) -> None:
        with self._get_conn() as conn:
            conn.executescript(_SCHEMA)
            conn.executemany(
                "INSERT INTO departments (department_id, short_name, long_name) VALUES (?, ?, ?)",
                [(d.department_id, d.short_name, d.long_name) for d in self.store.departments],
            )
            conn.executemany(
                "INSERT INTO employees (employee_id, name, department_id, report_to_id) VALUES (?, ?, ?, ?)",
                [tuple(row) for row in self._rows_managers_first()],
            )
            conn.executemany(
                "INSERT INTO employs (company_id, employee_id, employment_type, salary) VALUES (?, ?, ?, ?)",
                [
                    (r.company_id, r.employee_id, r.employment_type.value, r.salary)
                    for r in self.store.employs_rows
                ],
            )
            conn.commit()

    def _rows_managers_first(self):
        # The self-referencing foreign key needs managers inserted before reports
        ordered = []
        pending = [e for e in self.store.employees if e.manager_id is None]
        while pending:
            employee = pending.pop()
            ordered.append(employee)
            pending.extend(self.store.direct_reports(employee.employee_id))
        rows = {row.employee_id: row for row in self.store.employee_rows}
        return [rows[e.employee_id] for e in ordered]

    def close(self) -> None:
        with self._get_conn() as conn:
            conn.close()

    def __enter__(self) -> SQLiteTraversalEngine:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def ancestors(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        return self._recursive(_ANCESTORS_SQL, employee_id, max_depth, "ancestors")

    def descendants(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        return self._recursive(_DESCENDANTS_SQL, employee_id, max_depth, "descendants")

    def members_of_department(self, department_id: str) -> list[Employee]:
        self.store.department_by_id(department_id)
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT employee_id FROM employees WHERE department_id = ? ORDER BY employee_id",
                (department_id,),
            ).fetchall()
        return [self.store.employee_by_id(row["employee_id"]) for row in rows]

    def employees_by_company_attribute(
        self,
        employment_type: EmploymentType | None = None,
        min_salary: float | None = None,
        max_salary: float | None = None,
    ) -> list[Employee]:
        clauses = ["company_id = ?"]
        params: list[object] = [self.store.company.company_id]

        if employment_type is not None:
            clauses.append("employment_type = ?")
            params.append(employment_type.value)
        if min_salary is not None:
            clauses.append("salary >= ?")
            params.append(min_salary)
        if max_salary is not None:
            clauses.append("salary <= ?")
            params.append(max_salary)

        with self._get_conn() as conn:
            rows = conn.execute(
                f"SELECT employee_id FROM employs WHERE {' AND '.join(clauses)} ORDER BY employee_id",
                params,
            ).fetchall()
        return [self.store.employee_by_id(row["employee_id"]) for row in rows]

    def _recursive(
        self,
        sql: str,
        employee_id: str,
        max_depth: int | None,
        direction: str,
    ) -> list[HierarchyHit]:
        check_max_depth(max_depth)
        if employee_id not in self.store:
            raise NotFound("employee", employee_id)

        # The recursion cap doubles as the infinite-recursion guard
        bound = len(self.store)
        limit = bound if max_depth is None else min(max_depth, bound)

        with self._get_conn() as conn:
            rows = conn.execute(sql, {"root": employee_id, "limit": limit}).fetchall()

        if max_depth is None and any(row["depth"] >= bound for row in rows):
            logger.error("recursive_cte_bound_reached", employee_id=employee_id, direction=direction)
            raise CycleDetected(employee_id, bound, direction)

        hits = []
        for row in rows:
            path = tuple(row["path"].split(_SEP))
            hits.append(HierarchyHit(self.store.employee_by_id(row["employee_id"]), row["depth"], path))
        return hits
