"""Load-time consistency validation for organizational datasets.

Every rule is checked and every violation collected before anything is
returned, so a rejected dataset is diagnosed in a single pass.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from .exceptions import LoadError, Violation, ViolationRule
from .logging import get_logger
from .models import DEFAULT_COMPANY_ID, Company, Department, Employee, EmploysEdge

logger = get_logger(__name__)

_ON_PATH = 1
_DONE = 2


def infer_company(company: Company | None, employs_edges: Sequence[EmploysEdge]) -> Company:
    """Return the company the dataset belongs to.

    When no company record is supplied, the first EMPLOYS edge names it.
    """
    if company is not None:
        return company
    company_id = employs_edges[0].company_id if employs_edges else DEFAULT_COMPANY_ID
    return Company(company_id=company_id, name=company_id)


def find_reporting_cycles(parent_of: dict[str, str]) -> list[tuple[str, ...]]:
    """Find every cycle in a child -> parent mapping.

    Each node has at most one parent, so walking parent chains with a
    per-walk path index finds each cycle exactly once. Nodes that only lead
    into a cycle are not part of it. Cycles come back with sorted members.
    """
    state: dict[str, int] = {}
    cycles: list[tuple[str, ...]] = []

    for start in sorted(parent_of):
        if start in state:
            continue

        path: list[str] = []
        position: dict[str, int] = {}
        node: str | None = start

        while node is not None and node not in state:
            state[node] = _ON_PATH
            position[node] = len(path)
            path.append(node)
            node = parent_of.get(node)

        if node is not None and state[node] == _ON_PATH:
            cycles.append(tuple(sorted(path[position[node]:])))

        for visited in path:
            state[visited] = _DONE

    return cycles


class ConsistencyValidator:
    """Checks structural invariants before a dataset is accepted.

    Rules:
    - every department and manager reference resolves
    - nobody is their own manager (reported apart from cycles)
    - the REPORTS_TO relation is acyclic; every cycle member is flagged
    - identifiers are unique
    - every employee has exactly one EMPLOYS edge from the dataset's company,
      and the edge agrees with the employee record
    """

    def validate(
        self,
        employees: Iterable[Employee],
        departments: Iterable[Department],
        employs_edges: Iterable[EmploysEdge],
        company: Company | None = None,
    ) -> list[Violation]:
        """Return all violations found; an empty list means the data is valid."""
        employees = list(employees)
        departments = list(departments)
        employs_edges = list(employs_edges)

        violations: list[Violation] = []
        violations.extend(self._check_duplicates(employees, departments))

        employee_index: dict[str, Employee] = {}
        for employee in employees:
            employee_index.setdefault(employee.employee_id, employee)
        department_ids = {d.department_id for d in departments}

        violations.extend(self._check_references(employee_index, department_ids))
        violations.extend(self._check_cycles(employee_index))
        violations.extend(
            self._check_employment(employee_index, employs_edges, infer_company(company, employs_edges))
        )
        return violations

    def check(
        self,
        employees: Iterable[Employee],
        departments: Iterable[Department],
        employs_edges: Iterable[EmploysEdge],
        company: Company | None = None,
    ) -> None:
        """Raise LoadError carrying every violation, if there are any."""
        violations = self.validate(employees, departments, employs_edges, company)
        if violations:
            logger.warning(
                "dataset_rejected",
                violation_count=len(violations),
                rules=sorted({v.rule.value for v in violations}),
            )
            raise LoadError(violations)

    def _check_duplicates(
        self,
        employees: list[Employee],
        departments: list[Department],
    ) -> list[Violation]:
        violations = []

        for employee_id, count in Counter(e.employee_id for e in employees).items():
            if count > 1:
                violations.append(Violation(
                    rule=ViolationRule.DUPLICATE_EMPLOYEE,
                    subject_id=employee_id,
                    message=f"employee identifier appears {count} times",
                ))

        for department_id, count in Counter(d.department_id for d in departments).items():
            if count > 1:
                violations.append(Violation(
                    rule=ViolationRule.DUPLICATE_DEPARTMENT,
                    subject_id=department_id,
                    message=f"department identifier appears {count} times",
                ))

        return violations

    def _check_references(
        self,
        employee_index: dict[str, Employee],
        department_ids: set[str],
    ) -> list[Violation]:
        violations = []

        for employee in employee_index.values():
            if employee.department_id not in department_ids:
                violations.append(Violation(
                    rule=ViolationRule.UNKNOWN_DEPARTMENT,
                    subject_id=employee.employee_id,
                    message=f"department {employee.department_id!r} does not exist",
                    related=(employee.department_id,),
                ))

            if employee.manager_id is None:
                continue
            if employee.manager_id == employee.employee_id:
                violations.append(Violation(
                    rule=ViolationRule.SELF_REPORT,
                    subject_id=employee.employee_id,
                    message="employee reports to themselves",
                ))
            elif employee.manager_id not in employee_index:
                violations.append(Violation(
                    rule=ViolationRule.UNKNOWN_MANAGER,
                    subject_id=employee.employee_id,
                    message=f"manager {employee.manager_id!r} does not exist",
                    related=(employee.manager_id,),
                ))

        return violations

    def _check_cycles(self, employee_index: dict[str, Employee]) -> list[Violation]:
        # Self-loops and dangling managers are reported by _check_references
        parent_of = {
            e.employee_id: e.manager_id
            for e in employee_index.values()
            if e.manager_id is not None
            and e.manager_id != e.employee_id
            and e.manager_id in employee_index
        }

        violations = []
        for cycle in find_reporting_cycles(parent_of):
            chain = " -> ".join(cycle)
            for member in cycle:
                violations.append(Violation(
                    rule=ViolationRule.REPORTING_CYCLE,
                    subject_id=member,
                    message=f"employee is part of a reporting cycle ({chain})",
                    related=cycle,
                ))
        return violations

    def _check_employment(
        self,
        employee_index: dict[str, Employee],
        employs_edges: list[EmploysEdge],
        company: Company,
    ) -> list[Violation]:
        violations = []
        edges_by_employee: dict[str, list[EmploysEdge]] = {}

        for edge in employs_edges:
            if edge.company_id != company.company_id:
                violations.append(Violation(
                    rule=ViolationRule.UNKNOWN_COMPANY,
                    subject_id=edge.employee_id,
                    message=(
                        f"EMPLOYS edge comes from {edge.company_id!r}, "
                        f"expected {company.company_id!r}"
                    ),
                    related=(edge.company_id,),
                ))
            if edge.employee_id not in employee_index:
                violations.append(Violation(
                    rule=ViolationRule.UNKNOWN_EMPLOYEE,
                    subject_id=edge.employee_id,
                    message="EMPLOYS edge points to an unknown employee",
                ))
                continue
            edges_by_employee.setdefault(edge.employee_id, []).append(edge)

        for employee_id, employee in employee_index.items():
            edges = edges_by_employee.get(employee_id, [])
            if not edges:
                violations.append(Violation(
                    rule=ViolationRule.MISSING_EMPLOYMENT,
                    subject_id=employee_id,
                    message="employee has no EMPLOYS edge",
                ))
                continue
            if len(edges) > 1:
                violations.append(Violation(
                    rule=ViolationRule.DUPLICATE_EMPLOYMENT,
                    subject_id=employee_id,
                    message=f"employee has {len(edges)} EMPLOYS edges",
                ))
                continue

            edge = edges[0]
            if edge.employment_type != employee.employment_type or edge.salary != employee.salary:
                violations.append(Violation(
                    rule=ViolationRule.EMPLOYMENT_MISMATCH,
                    subject_id=employee_id,
                    message=(
                        f"EMPLOYS edge ({edge.employment_type.value}, {edge.salary}) "
                        f"disagrees with employee record "
                        f"({employee.employment_type.value}, {employee.salary})"
                    ),
                ))

        return violations
