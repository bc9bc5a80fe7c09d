"""Relational traversal engine: recursive-CTE semantics over flat rows.

Hierarchy queries run as an explicit fixed-point loop, the way a database
evaluates::

    WITH RECURSIVE reports AS (
        SELECT EmployeeId, 0 AS depth FROM Employee WHERE EmployeeId = @id
        UNION ALL
        SELECT e.EmployeeId, r.depth + 1
        FROM Employee e JOIN reports r ON e.ReportToId = r.EmployeeId
    )

Each iteration joins only the previous frontier against the full employee
relation. Like ``UNION ALL``, rows are never deduplicated, so a cycle in the
rows would loop forever; the iteration bound turns that into CycleDetected.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import NamedTuple

from ..exceptions import CycleDetected, NotFound
from ..logging import get_logger
from ..models import Employee, EmploymentType, HierarchyHit
from ..store import EmployeeRow, EmploysRow, EntityStore
from .base import check_max_depth, salary_in_range

logger = get_logger(__name__)


class _Reached(NamedTuple):
    row: EmployeeRow
    depth: int
    path: tuple[str, ...]


class RelationalTraversalEngine:
    """Fixed-point join engine over the store's relational view.

    The engine only reads rows; ``employees`` resolves result identifiers to
    the store's canonical records.
    """

    name = "relational"

    def __init__(
        self,
        rows: Sequence[EmployeeRow],
        employs_rows: Sequence[EmploysRow],
        employees: Mapping[str, Employee],
        department_ids: frozenset[str] | None = None,
    ) -> None:
        self.rows = tuple(rows)
        self.employs_rows = tuple(employs_rows)
        self._employees = employees
        self._department_ids = department_ids
        self._by_id = {row.employee_id: row for row in self.rows}

    @classmethod
    def from_store(cls, store: EntityStore) -> RelationalTraversalEngine:
        return cls(
            store.employee_rows,
            store.employs_rows,
            {e.employee_id: e for e in store.employees},
            frozenset(d.department_id for d in store.departments),
        )

    @property
    def iteration_bound(self) -> int:
        """No acyclic hierarchy needs more iterations than there are rows."""
        return len(self.rows)

    def ancestors(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        """Join frontier.report_to_id = employee.employee_id until fixed point."""
        reached = self._fixed_point(
            employee_id,
            max_depth,
            direction="ancestors",
            join=lambda frontier_row, row: frontier_row.report_to_id == row.employee_id,
        )
        reached.sort(key=lambda r: r.depth)
        return [self._to_hit(r) for r in reached]

    def descendants(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        """Join employee.report_to_id = frontier.employee_id until fixed point.

        Sorting on the accumulated path reproduces depth-first pre-order with
        siblings in ascending identifier order.
        """
        reached = self._fixed_point(
            employee_id,
            max_depth,
            direction="descendants",
            join=lambda frontier_row, row: row.report_to_id == frontier_row.employee_id,
        )
        reached.sort(key=lambda r: r.path)
        return [self._to_hit(r) for r in reached]

    def members_of_department(self, department_id: str) -> list[Employee]:
        if self._department_ids is not None and department_id not in self._department_ids:
            raise NotFound("department", department_id)
        selected = sorted(r.employee_id for r in self.rows if r.department_id == department_id)
        return [self._employees[employee_id] for employee_id in selected]

    def employees_by_company_attribute(
        self,
        employment_type: EmploymentType | None = None,
        min_salary: float | None = None,
        max_salary: float | None = None,
    ) -> list[Employee]:
        selected = sorted(
            r.employee_id
            for r in self.employs_rows
            if (employment_type is None or r.employment_type == employment_type)
            and salary_in_range(r.salary, min_salary, max_salary)
        )
        return [self._employees[employee_id] for employee_id in selected]

    def _fixed_point(self, employee_id, max_depth, direction, join) -> list[_Reached]:
        check_max_depth(max_depth)
        seed = self._by_id.get(employee_id)
        if seed is None:
            raise NotFound("employee", employee_id)

        accumulated: list[_Reached] = []
        frontier = [_Reached(seed, 0, ())]
        iterations = 0

        while frontier:
            if max_depth is not None and iterations >= max_depth:
                break
            if iterations >= self.iteration_bound:
                logger.error(
                    "fixed_point_bound_exceeded",
                    employee_id=employee_id,
                    direction=direction,
                    iterations=iterations,
                )
                raise CycleDetected(employee_id, iterations, direction)

            iterations += 1
            frontier = [
                _Reached(row, reached.depth + 1, reached.path + (row.employee_id,))
                for reached in frontier
                for row in self.rows
                if join(reached.row, row)
            ]
            accumulated.extend(frontier)

        return accumulated

    def _to_hit(self, reached: _Reached) -> HierarchyHit:
        return HierarchyHit(self._employees[reached.row.employee_id], reached.depth, reached.path)
