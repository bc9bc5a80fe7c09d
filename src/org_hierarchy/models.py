"""Domain models for the organizational hierarchy.

Employees, departments and the company are pydantic models so seed data can
be validated straight from JSON. They are frozen: once loaded, records never
change for the lifetime of a store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_COMPANY_ID = "company"

# NUL and \x01 are reserved: the SQLite engine joins paths with \x01
EMPLOYEE_ID_PATTERN = r"^[^\x00\x01]+$"


class EmploymentType(str, Enum):
    """How an employee is engaged by the company."""

    PERMANENT = "permanent"
    TEMPORARY = "temporary"


class Department(BaseModel):
    """An organizational unit employees are members of."""

    model_config = ConfigDict(frozen=True)

    department_id: str = Field(min_length=1)
    short_name: str
    long_name: str


class Employee(BaseModel):
    """A person in the reporting hierarchy.

    ``manager_id`` is None for top-level employees.
    """

    model_config = ConfigDict(frozen=True)

    employee_id: str = Field(min_length=1, pattern=EMPLOYEE_ID_PATTERN)
    name: str
    age: int = Field(ge=0)
    salary: float = Field(ge=0)
    employment_type: EmploymentType = EmploymentType.PERMANENT
    department_id: str
    manager_id: str | None = Field(default=None, pattern=EMPLOYEE_ID_PATTERN)

    @property
    def is_top_level(self) -> bool:
        return self.manager_id is None


class Company(BaseModel):
    """The singleton root that employs every employee."""

    model_config = ConfigDict(frozen=True)

    company_id: str = Field(default=DEFAULT_COMPANY_ID, min_length=1)
    name: str = "Company"


class EmploysEdge(BaseModel):
    """The EMPLOYS relation; attributes live on the edge, not the employee."""

    model_config = ConfigDict(frozen=True)

    company_id: str = DEFAULT_COMPANY_ID
    employee_id: str
    employment_type: EmploymentType
    salary: float = Field(ge=0)


@dataclass(frozen=True)
class HierarchyHit:
    """One employee reached by a hierarchy traversal.

    ``depth`` counts REPORTS_TO hops from the origin (1 = manager or direct
    report). ``path`` lists the identifiers walked, ending with this employee.
    """

    employee: Employee
    depth: int
    path: tuple[str, ...] = field(default=())

    @property
    def employee_id(self) -> str:
        return self.employee.employee_id

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "employee_id": self.employee.employee_id,
            "name": self.employee.name,
            "depth": self.depth,
            "path": list(self.path),
        }
