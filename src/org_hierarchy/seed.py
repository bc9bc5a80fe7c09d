"""Seed data: the in-memory input of a load, a JSON loader and the sample.

A seed file is a JSON document with ``company``, ``departments``,
``employees`` and ``employs`` keys, validated by :class:`SeedData`.
"""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field

from .models import Company, Department, Employee, EmploymentType, EmploysEdge
from .store import EntityStore


class SeedData(BaseModel):
    """Everything one load consumes."""
    company: Company | None = None
    departments: list[Department] = Field(default_factory=list)
    employees: list[Employee] = Field(default_factory=list)
    employs: list[EmploysEdge] = Field(default_factory=list)

    def build_store(self) -> EntityStore:
        """Validate and load into a new store; raises LoadError."""
        return EntityStore.load(self.employees, self.departments, self.employs, self.company)


def employs_edges_for(employees: Iterable[Employee], company_id: str) -> list[EmploysEdge]:
    """EMPLOYS edges mirroring each employee's own type and salary."""
    return [
        EmploysEdge(
            company_id=company_id,
            employee_id=e.employee_id,
            employment_type=e.employment_type,
            salary=e.salary,
        )
        for e in employees
    ]


def load_seed_file(path: str | Path) -> SeedData:
    """Parse a JSON seed file.

    Raises:
        FileNotFoundError: the file does not exist.
        pydantic.ValidationError: the document does not match SeedData.
    """
    return SeedData.model_validate_json(Path(path).read_text(encoding="utf-8"))


def sample_dataset() -> SeedData:
    """The README's organization: 9 employees in 2 departments.

    Dave Clark, the top-level employee, sits in IT rather than a separate
    Executive department so both paradigms share one dataset.
    """
    company = Company(company_id="acme", name="Acme Corp")
    departments = [
        Department(department_id="HR", short_name="HR", long_name="Human Resources"),
        Department(department_id="IT", short_name="IT", long_name="Information Technology"),
    ]

    permanent, temporary = EmploymentType.PERMANENT, EmploymentType.TEMPORARY
    rows = [
        # name, age, salary, type, department, manager
        ("Dave Clark", 55, 180000, permanent, "IT", None),
        ("Jenny Lane", 45, 120000, permanent, "IT", "Dave Clark"),
        ("James Lemmon", 38, 95000, permanent, "IT", "Jenny Lane"),
        ("Brad Jenkins", 29, 60000, temporary, "IT", "James Lemmon"),
        ("Lucy Hart", 33, 70000, temporary, "IT", "Jenny Lane"),
        ("Bob Jones", 50, 110000, permanent, "HR", "Dave Clark"),
        ("Josh Simmons", 31, 52000, temporary, "HR", "Bob Jones"),
        ("Julia Grant", 42, 78000, permanent, "HR", "Bob Jones"),
        ("Edward Simmons", 26, 45000, temporary, "HR", "Julia Grant"),
    ]
    employees = [
        Employee(
            employee_id=name,
            name=name,
            age=age,
            salary=salary,
            employment_type=employment_type,
            department_id=department_id,
            manager_id=manager_id,
        )
        for name, age, salary, employment_type, department_id, manager_id in rows
    ]

    return SeedData(
        company=company,
        departments=departments,
        employees=employees,
        employs=employs_edges_for(employees, company.company_id),
    )
