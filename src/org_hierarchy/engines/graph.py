"""Graph traversal engine: answers hierarchy queries by walking edges.

Mirrors variable-length pattern matching such as
``MATCH (e {name: $id})-[:REPORTS_TO*1..]->(m) RETURN m``. Work is
proportional to the nodes visited, independent of dataset size.
"""
from __future__ import annotations

from ..models import Employee, EmploymentType, HierarchyHit
from ..store import EdgeType, EntityStore
from .base import check_max_depth, salary_in_range


class GraphTraversalEngine:
    """Edge-walking engine over the store's graph view.

    Example:
        >>> engine = GraphTraversalEngine(store)
        >>> [hit.employee.name for hit in engine.ancestors("Brad Jenkins")]
        ['James Lemmon', 'Jenny Lane', 'Dave Clark']
    """

    name = "graph"

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def ancestors(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        """Follow REPORTS_TO edges upward, nearest manager first.

        The relation is a forest, so this is a single parent chain.
        """
        check_max_depth(max_depth)
        self.store.employee_by_id(employee_id)

        hits: list[HierarchyHit] = []
        path: tuple[str, ...] = ()
        current = employee_id

        while max_depth is None or len(hits) < max_depth:
            edges = self.store.get_neighbors(current, EdgeType.REPORTS_TO, direction="outgoing")
            if not edges:
                break
            current = edges[0].target_id
            path = path + (current,)
            hits.append(HierarchyHit(self.store.employee_by_id(current), len(path), path))

        return hits

    def descendants(self, employee_id: str, max_depth: int | None = None) -> list[HierarchyHit]:
        """Depth-first pre-order over the report subtree.

        Siblings are visited in ascending identifier order.
        """
        check_max_depth(max_depth)
        self.store.employee_by_id(employee_id)

        hits: list[HierarchyHit] = []
        # Explicit stack; children pushed in reverse so the smallest pops first
        stack: list[tuple[str, tuple[str, ...]]] = [(employee_id, ())]

        while stack:
            current, path = stack.pop()
            if path:
                hits.append(HierarchyHit(self.store.employee_by_id(current), len(path), path))

            if max_depth is not None and len(path) >= max_depth:
                continue

            reports = self.store.get_neighbors(current, EdgeType.REPORTS_TO, direction="incoming")
            for edge in reversed(reports):
                stack.append((edge.source_id, path + (edge.source_id,)))

        return hits

    def members_of_department(self, department_id: str) -> list[Employee]:
        self.store.department_by_id(department_id)
        edges = self.store.get_neighbors(department_id, EdgeType.MEMBER_OF, direction="incoming")
        return [self.store.employee_by_id(edge.source_id) for edge in edges]

    def employees_by_company_attribute(
        self,
        employment_type: EmploymentType | None = None,
        min_salary: float | None = None,
        max_salary: float | None = None,
    ) -> list[Employee]:
        """Walk EMPLOYS edges from the company, filtering on edge properties."""
        edges = self.store.get_neighbors(
            self.store.company.company_id, EdgeType.EMPLOYS, direction="outgoing"
        )

        matches = []
        for edge in edges:
            if employment_type is not None and edge.properties["employment_type"] != employment_type:
                continue
            if not salary_in_range(edge.properties["salary"], min_salary, max_salary):
                continue
            matches.append(self.store.employee_by_id(edge.target_id))
        return matches
