"""Query façade: one entry point, interchangeable backends, comparable results.

Callers build a request model, pick a backend and get back a QueryResult
whose shape does not depend on the engine that produced it, so results from
different backends can be diffed directly.
"""
from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, computed_field, model_validator

from .engines import (
    GraphTraversalEngine,
    RelationalTraversalEngine,
    SQLiteTraversalEngine,
    TraversalEngine,
)
from .logging import get_logger
from .models import Employee, EmploymentType, HierarchyHit
from .store import EntityStore

logger = get_logger(__name__)


class Backend(str, Enum):
    """Traversal backends a query can be dispatched to."""
    GRAPH = "graph"
    RELATIONAL = "relational"
    SQLITE = "sqlite"


class QueryKind(str, Enum):
    ANCESTORS = "ancestors"
    DESCENDANTS = "descendants"
    MEMBERS_OF_DEPARTMENT = "members_of_department"
    EMPLOYEES_BY_COMPANY_ATTRIBUTE = "employees_by_company_attribute"


# Results of these kinds are sequences; the others are sets
ORDERED_KINDS = frozenset({QueryKind.ANCESTORS, QueryKind.DESCENDANTS})


class AncestorsQuery(BaseModel):
    """Managers above an employee, nearest first."""
    kind: Literal[QueryKind.ANCESTORS] = QueryKind.ANCESTORS
    employee_id: str
    max_depth: int | None = Field(default=None, ge=0)


class DescendantsQuery(BaseModel):
    """Everyone reporting (transitively) to an employee."""
    kind: Literal[QueryKind.DESCENDANTS] = QueryKind.DESCENDANTS
    employee_id: str
    max_depth: int | None = Field(default=None, ge=0)


class MembersOfDepartmentQuery(BaseModel):
    kind: Literal[QueryKind.MEMBERS_OF_DEPARTMENT] = QueryKind.MEMBERS_OF_DEPARTMENT
    department_id: str


class EmployeesByCompanyAttributeQuery(BaseModel):
    """Filter on the attributes of the EMPLOYS relation."""
    kind: Literal[QueryKind.EMPLOYEES_BY_COMPANY_ATTRIBUTE] = QueryKind.EMPLOYEES_BY_COMPANY_ATTRIBUTE
    employment_type: EmploymentType | None = None
    min_salary: float | None = Field(default=None, ge=0)
    max_salary: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_filters(self) -> EmployeesByCompanyAttributeQuery:
        if self.employment_type is None and self.min_salary is None and self.max_salary is None:
            raise ValueError("at least one of employment_type, min_salary, max_salary is required")
        if (
            self.min_salary is not None
            and self.max_salary is not None
            and self.min_salary > self.max_salary
        ):
            raise ValueError("min_salary must not exceed max_salary")
        return self


QueryRequest = Annotated[
    Union[
        AncestorsQuery,
        DescendantsQuery,
        MembersOfDepartmentQuery,
        EmployeesByCompanyAttributeQuery,
    ],
    Field(discriminator="kind"),
]

query_request_adapter: TypeAdapter[QueryRequest] = TypeAdapter(QueryRequest)


class ResultEntry(BaseModel):
    """One employee in a normalized result; depth is set for traversals."""
    employee: Employee
    depth: int | None = None


class QueryResult(BaseModel):
    """Backend-independent answer to a query."""
    backend: Backend
    kind: QueryKind
    entries: list[ResultEntry] = Field(default_factory=list)
    duration_ms: float | None = None

    @property
    def employee_ids(self) -> list[str]:
        return [entry.employee.employee_id for entry in self.entries]

    def matches(self, other: QueryResult) -> bool:
        """Compare answers, ignoring backend and timing.

        Traversal results must agree in order and depth; membership and
        filter results are compared as sets.
        """
        if self.kind != other.kind:
            return False
        if self.kind in ORDERED_KINDS:
            return [(e.employee, e.depth) for e in self.entries] == [
                (e.employee, e.depth) for e in other.entries
            ]
        return set(self.employee_ids) == set(other.employee_ids)


class QueryTiming(BaseModel):
    backend: Backend
    kind: QueryKind
    duration_ms: float


class Comparison(BaseModel):
    """The same query answered by several backends."""
    kind: QueryKind
    results: dict[Backend, QueryResult]

    @computed_field
    @property
    def mismatched(self) -> list[Backend]:
        """Backends whose answer differs from the first backend's."""
        results = list(self.results.values())
        if not results:
            return []
        reference = results[0]
        return [r.backend for r in results[1:] if not r.matches(reference)]

    @computed_field
    @property
    def consistent(self) -> bool:
        return not self.mismatched


def _hits(hits: list[HierarchyHit]) -> list[ResultEntry]:
    return [ResultEntry(employee=hit.employee, depth=hit.depth) for hit in hits]


def _employees(employees: list[Employee]) -> list[ResultEntry]:
    return [ResultEntry(employee=employee) for employee in employees]


_ENGINE_FACTORIES: dict[Backend, Callable[[EntityStore], TraversalEngine]] = {
    Backend.GRAPH: GraphTraversalEngine,
    Backend.RELATIONAL: RelationalTraversalEngine.from_store,
    Backend.SQLITE: SQLiteTraversalEngine,
}


class QueryFacade:
    """Dispatches hierarchy queries to a chosen backend.

    Engines are created on first use and reused; each only reads the shared
    store, so one façade can serve concurrent callers.

    Example:
        >>> facade = QueryFacade(store, record_timings=True)
        >>> result = facade.query(AncestorsQuery(employee_id="Brad Jenkins"), Backend.RELATIONAL)
        >>> result.employee_ids
        ['James Lemmon', 'Jenny Lane', 'Dave Clark']
    """

    def __init__(
        self,
        store: EntityStore,
        record_timings: bool = False,
        engines: dict[Backend, TraversalEngine] | None = None,
    ) -> None:
        self.store = store
        self.record_timings = record_timings
        self._engines: dict[Backend, TraversalEngine] = dict(engines or {})
        self._timings: list[QueryTiming] = []
        self._lock = threading.Lock()

    @property
    def timings(self) -> list[QueryTiming]:
        with self._lock:
            return list(self._timings)

    def engine(self, backend: Backend | str) -> TraversalEngine:
        backend = Backend(backend)
        with self._lock:
            engine = self._engines.get(backend)
            if engine is None:
                engine = _ENGINE_FACTORIES[backend](self.store)
                self._engines[backend] = engine
        return engine

    def close(self) -> None:
        """Release engine resources; engines are rebuilt on next use."""
        with self._lock:
            engines = list(self._engines.values())
            self._engines.clear()
        for engine in engines:
            close = getattr(engine, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> QueryFacade:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def query(self, request: QueryRequest, backend: Backend | str = Backend.GRAPH) -> QueryResult:
        """Run ``request`` on one backend.

        Raises:
            NotFound: the request names an unknown employee or department.
                The store is unaffected and later queries still succeed.
        """
        backend = Backend(backend)
        kind = QueryKind(request.kind)
        engine = self.engine(backend)

        start = time.perf_counter()
        entries = self._dispatch(engine, request)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.debug(
            "query_complete",
            backend=backend.value,
            kind=kind.value,
            results=len(entries),
            duration_ms=round(duration_ms, 3),
        )

        if self.record_timings:
            with self._lock:
                self._timings.append(
                    QueryTiming(backend=backend, kind=kind, duration_ms=duration_ms)
                )

        return QueryResult(
            backend=backend,
            kind=kind,
            entries=entries,
            duration_ms=duration_ms if self.record_timings else None,
        )

    def compare(
        self,
        request: QueryRequest,
        backends: Iterable[Backend | str] = tuple(Backend),
    ) -> Comparison:
        """Run ``request`` on every backend and check the answers agree."""
        results = {}
        for backend in backends:
            result = self.query(request, backend)
            results[result.backend] = result

        comparison = Comparison(kind=QueryKind(request.kind), results=results)
        if not comparison.consistent:
            logger.warning(
                "backends_disagree",
                kind=comparison.kind.value,
                mismatched=[b.value for b in comparison.mismatched],
            )
        return comparison

    def _dispatch(self, engine: TraversalEngine, request: QueryRequest) -> list[ResultEntry]:
        if isinstance(request, AncestorsQuery):
            return _hits(engine.ancestors(request.employee_id, request.max_depth))
        if isinstance(request, DescendantsQuery):
            return _hits(engine.descendants(request.employee_id, request.max_depth))
        if isinstance(request, MembersOfDepartmentQuery):
            return _employees(engine.members_of_department(request.department_id))
        if isinstance(request, EmployeesByCompanyAttributeQuery):
            return _employees(engine.employees_by_company_attribute(
                employment_type=request.employment_type,
                min_salary=request.min_salary,
                max_salary=request.max_salary,
            ))
        raise TypeError(f"unsupported request type: {type(request).__name__}")
