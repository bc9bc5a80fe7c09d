"""Entity store: the canonical, immutable snapshot of an organization.

The store owns every record. It exposes two read-only views over the same
snapshot:

- a graph view (typed edges and neighbour lookups) for edge-walking engines
- a relational view (flat rows with foreign-key columns) for join engines

All indices are built once in ``__init__`` and never mutated afterwards, so a
loaded store can be shared by any number of reader threads.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, NamedTuple

from .exceptions import NotFound
from .logging import get_logger
from .models import Company, Department, Employee, EmploymentType, EmploysEdge
from .validation import ConsistencyValidator, infer_company

logger = get_logger(__name__)


class EdgeType(str, Enum):
    """Relationship types in the graph view."""
    MEMBER_OF = "MEMBER_OF"  # Employee -> Department
    REPORTS_TO = "REPORTS_TO"  # Employee -> Employee
    EMPLOYS = "EMPLOYS"  # Company -> Employee


@dataclass(frozen=True)
class Edge:
    """A directed, typed relationship in the graph view."""
    edge_type: EdgeType
    source_id: str
    target_id: str
    properties: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "edge_type": self.edge_type.value,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "properties": dict(self.properties),
        }


class EmployeeRow(NamedTuple):
    """Employee table row, with the manager as a foreign-key column."""
    employee_id: str
    name: str
    department_id: str
    report_to_id: str | None


class EmploysRow(NamedTuple):
    """EMPLOYS table row."""
    company_id: str
    employee_id: str
    employment_type: EmploymentType
    salary: float


def _freeze(index: dict[str, list[Edge]]) -> MappingProxyType:
    return MappingProxyType({key: tuple(edges) for key, edges in index.items()})


class EntityStore:
    """Immutable snapshot of employees, departments and their relationships.

    Build one with :meth:`load`, which validates first and rejects the whole
    dataset on any violation.

    Example:
        >>> store = EntityStore.load(employees, departments, employs_edges)
        >>> store.manager("Brad Jenkins").name
        'James Lemmon'
    """

    def __init__(
        self,
        employees: Sequence[Employee],
        departments: Sequence[Department],
        employs_edges: Sequence[EmploysEdge],
        company: Company,
    ) -> None:
        self._company = company
        self._employees = MappingProxyType({e.employee_id: e for e in employees})
        self._departments = MappingProxyType({d.department_id: d for d in departments})
        self._employment = MappingProxyType({edge.employee_id: edge for edge in employs_edges})

        outgoing: dict[EdgeType, dict[str, list[Edge]]] = {t: {} for t in EdgeType}
        incoming: dict[EdgeType, dict[str, list[Edge]]] = {t: {} for t in EdgeType}

        def add(edge: Edge) -> None:
            outgoing[edge.edge_type].setdefault(edge.source_id, []).append(edge)
            incoming[edge.edge_type].setdefault(edge.target_id, []).append(edge)

        # Sorted insertion keeps every adjacency list in ascending far-end order
        for employee_id in sorted(self._employees):
            employee = self._employees[employee_id]
            add(Edge(EdgeType.MEMBER_OF, employee_id, employee.department_id))
            if employee.manager_id is not None:
                add(Edge(EdgeType.REPORTS_TO, employee_id, employee.manager_id))
            employment = self._employment[employee_id]
            add(Edge(
                EdgeType.EMPLOYS,
                employment.company_id,
                employee_id,
                MappingProxyType({
                    "employment_type": employment.employment_type,
                    "salary": employment.salary,
                }),
            ))

        self._outgoing = MappingProxyType({t: _freeze(index) for t, index in outgoing.items()})
        self._incoming = MappingProxyType({t: _freeze(index) for t, index in incoming.items()})

        # Relational view over the same records
        self._employee_rows = tuple(
            EmployeeRow(e.employee_id, e.name, e.department_id, e.manager_id)
            for e in self._employees.values()
        )
        self._employs_rows = tuple(
            EmploysRow(edge.company_id, edge.employee_id, edge.employment_type, edge.salary)
            for edge in self._employment.values()
        )

    @classmethod
    def load(
        cls,
        employees: Iterable[Employee],
        departments: Iterable[Department],
        employs_edges: Iterable[EmploysEdge],
        company: Company | None = None,
        validator: ConsistencyValidator | None = None,
    ) -> EntityStore:
        """Validate a dataset and build a store over it.

        Raises:
            LoadError: with every violation found; no store is created.
        """
        employees = list(employees)
        departments = list(departments)
        employs_edges = list(employs_edges)

        (validator or ConsistencyValidator()).check(employees, departments, employs_edges, company)

        store = cls(employees, departments, employs_edges, infer_company(company, employs_edges))
        logger.info(
            "dataset_loaded",
            company=store.company.company_id,
            employees=len(employees),
            departments=len(departments),
        )
        return store

    # ------------------------------ Entities ------------------------------

    @property
    def company(self) -> Company:
        return self._company

    @property
    def employees(self) -> tuple[Employee, ...]:
        """All employees, ordered by identifier."""
        return tuple(self._employees[k] for k in sorted(self._employees))

    @property
    def departments(self) -> tuple[Department, ...]:
        """All departments, ordered by identifier."""
        return tuple(self._departments[k] for k in sorted(self._departments))

    def __len__(self) -> int:
        return len(self._employees)

    def __contains__(self, employee_id: object) -> bool:
        return employee_id in self._employees

    def __iter__(self) -> Iterator[Employee]:
        return iter(self.employees)

    def employee_by_id(self, employee_id: str) -> Employee:
        try:
            return self._employees[employee_id]
        except KeyError:
            raise NotFound("employee", employee_id) from None

    def department_by_id(self, department_id: str) -> Department:
        try:
            return self._departments[department_id]
        except KeyError:
            raise NotFound("department", department_id) from None

    def employment(self, employee_id: str) -> EmploysEdge:
        self.employee_by_id(employee_id)
        return self._employment[employee_id]

    def manager(self, employee_id: str) -> Employee | None:
        """The employee's manager, or None for a top-level employee."""
        manager_id = self.employee_by_id(employee_id).manager_id
        return None if manager_id is None else self._employees[manager_id]

    def direct_reports(self, employee_id: str) -> frozenset[Employee]:
        self.employee_by_id(employee_id)
        edges = self._incoming[EdgeType.REPORTS_TO].get(employee_id, ())
        return frozenset(self._employees[edge.source_id] for edge in edges)

    def department_members(self, department_id: str) -> frozenset[Employee]:
        self.department_by_id(department_id)
        edges = self._incoming[EdgeType.MEMBER_OF].get(department_id, ())
        return frozenset(self._employees[edge.source_id] for edge in edges)

    # ----------------------------- Graph view -----------------------------

    def get_neighbors(
        self,
        node_id: str,
        edge_type: EdgeType,
        direction: str = "outgoing",
    ) -> tuple[Edge, ...]:
        """Edges of one type touching ``node_id``.

        Edges are ordered by the identifier at their far end. Unknown node
        identifiers simply have no edges.
        """
        if direction == "outgoing":
            return self._outgoing[edge_type].get(node_id, ())
        if direction == "incoming":
            return self._incoming[edge_type].get(node_id, ())
        raise ValueError(f"direction must be 'outgoing' or 'incoming', got {direction!r}")

    # -------------------------- Relational view ---------------------------

    @property
    def employee_rows(self) -> tuple[EmployeeRow, ...]:
        return self._employee_rows

    @property
    def employs_rows(self) -> tuple[EmploysRow, ...]:
        return self._employs_rows
