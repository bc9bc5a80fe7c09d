"""Capability interface shared by all traversal engines."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import Employee, EmploymentType, HierarchyHit


@runtime_checkable
class TraversalEngine(Protocol):
    """Answers hierarchy queries over a loaded store.

    Implementations must agree with each other on every query: same
    employees, same depths, same order for ``ancestors`` and ``descendants``.
    """

    name: str

    def ancestors(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        """Managers of ``employee_id``, nearest first."""
        ...

    def descendants(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        """Reports of ``employee_id`` in depth-first pre-order, ties by identifier."""
        ...

    def members_of_department(self, department_id: str) -> list[Employee]:
        ...

    def employees_by_company_attribute(
        self,
        employment_type: EmploymentType | None = None,
        min_salary: float | None = None,
        max_salary: float | None = None,
    ) -> list[Employee]:
        ...


def check_max_depth(max_depth: int | None) -> None:
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")


def salary_in_range(salary: float, min_salary: float | None, max_salary: float | None) -> bool:
    if min_salary is not None and salary < min_salary:
        return False
    if max_salary is not None and salary > max_salary:
        return False
    return True
