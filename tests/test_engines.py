"""Conformance suite run against every traversal engine.

The central property: all engines give identical answers on identical data.
"""
from __future__ import annotations

import random
import sqlite3

import pytest

from org_hierarchy import (
    Company,
    Department,
    Employee,
    EmploymentType,
    EntityStore,
    NotFound,
)
from org_hierarchy.engines import (
    GraphTraversalEngine,
    RelationalTraversalEngine,
    SQLiteTraversalEngine,
    TraversalEngine,
)
from org_hierarchy.seed import employs_edges_for

ENGINE_FACTORIES = {
    "graph": GraphTraversalEngine,
    "relational": RelationalTraversalEngine.from_store,
    "sqlite": SQLiteTraversalEngine,
}

DAVE_DESCENDANTS = [
    ("Bob Jones", 1),
    ("Josh Simmons", 2),
    ("Julia Grant", 2),
    ("Edward Simmons", 3),
    ("Jenny Lane", 1),
    ("James Lemmon", 2),
    ("Brad Jenkins", 3),
    ("Lucy Hart", 2),
]


# Siblings sharing prefixes, mixed case, non-ASCII and control characters:
# the orderings where a path-string sort and a path-tuple sort could split
FOREST_IDS = ["a", "b", "a b", "ab", "A", "é", "a\x02", "x y", "Z", "ü", "a\t", "b a"]


@pytest.fixture(params=sorted(ENGINE_FACTORIES))
def engine(request, store):
    engine = ENGINE_FACTORIES[request.param](store)
    yield engine
    if hasattr(engine, "close"):
        engine.close()


def _ids(hits):
    return [hit.employee.employee_id for hit in hits]


def _build_forest(edges: dict[str, str | None]) -> EntityStore:
    """Load a store from ``{employee_id: manager_id}`` through the validator."""
    department = Department(department_id="OPS", short_name="OPS", long_name="Operations")
    employees = [
        Employee(
            employee_id=employee_id,
            name=f"Employee {employee_id!r}",
            age=30 + position,
            salary=40000 + 1000 * position,
            employment_type=EmploymentType.TEMPORARY if position % 2 else EmploymentType.PERMANENT,
            department_id="OPS",
            manager_id=manager_id,
        )
        for position, (employee_id, manager_id) in enumerate(edges.items())
    ]
    return EntityStore.load(
        employees,
        [department],
        employs_edges_for(employees, "forest"),
        Company(company_id="forest", name="Forest Ltd"),
    )


def _random_forest(seed: int) -> EntityStore:
    """Each employee reports to an earlier one or is a root, so no cycles."""
    rng = random.Random(seed)
    ids = rng.sample(FOREST_IDS, rng.randint(2, len(FOREST_IDS)))
    edges: dict[str, str | None] = {}
    for position, employee_id in enumerate(ids):
        if position and rng.random() < 0.8:
            edges[employee_id] = rng.choice(ids[:position])
        else:
            edges[employee_id] = None
    return _build_forest(edges)


def _prefix_siblings() -> EntityStore:
    return _build_forest({
        "root": None,
        "a": "root",
        "a b": "root",
        "ab": "root",
        "a\x02": "root",
        "z": "a",
        "a a": "a",
        "b": "a b",
        "second root": None,
        "é": "second root",
        "e": "second root",
    })


def _assert_engines_agree(store: EntityStore) -> None:
    engines = [factory(store) for factory in ENGINE_FACTORIES.values()]
    depths = [None, *range(len(store) + 1)]
    try:
        for employee in store.employees:
            for max_depth in depths:
                expected_down = engines[0].descendants(employee.employee_id, max_depth)
                expected_up = engines[0].ancestors(employee.employee_id, max_depth)
                for other in engines[1:]:
                    assert other.descendants(employee.employee_id, max_depth) == expected_down, (
                        other.name, employee.employee_id, max_depth
                    )
                    assert other.ancestors(employee.employee_id, max_depth) == expected_up, (
                        other.name, employee.employee_id, max_depth
                    )
    finally:
        for engine in engines:
            if hasattr(engine, "close"):
                engine.close()


class TestConformance:
    """Behaviour every engine must share."""

    def test_satisfies_protocol(self, engine):
        assert isinstance(engine, TraversalEngine)

    def test_ancestors_nearest_first(self, engine):
        hits = engine.ancestors("Brad Jenkins")
        assert _ids(hits) == ["James Lemmon", "Jenny Lane", "Dave Clark"]
        assert [hit.depth for hit in hits] == [1, 2, 3]
        assert hits[-1].path == ("James Lemmon", "Jenny Lane", "Dave Clark")

    def test_ancestors_of_top_level_is_empty(self, engine):
        assert engine.ancestors("Dave Clark") == []

    def test_ancestors_bounded(self, engine):
        assert _ids(engine.ancestors("Brad Jenkins", max_depth=2)) == ["James Lemmon", "Jenny Lane"]
        assert engine.ancestors("Brad Jenkins", max_depth=0) == []

    def test_descendants_pre_order(self, engine):
        hits = engine.descendants("Dave Clark")
        assert [(hit.employee.employee_id, hit.depth) for hit in hits] == DAVE_DESCENDANTS

    def test_descendants_cover_everyone_else(self, engine, store):
        ids = set(_ids(engine.descendants("Dave Clark")))
        assert ids == {e.employee_id for e in store.employees} - {"Dave Clark"}

    def test_descendants_bounded(self, engine):
        assert _ids(engine.descendants("Dave Clark", max_depth=1)) == ["Bob Jones", "Jenny Lane"]
        assert engine.descendants("Dave Clark", max_depth=0) == []

    def test_descendants_of_leaf(self, engine):
        assert engine.descendants("Edward Simmons") == []

    def test_descendant_path(self, engine):
        hits = engine.descendants("Jenny Lane")
        brad = next(hit for hit in hits if hit.employee.employee_id == "Brad Jenkins")
        assert brad.path == ("James Lemmon", "Brad Jenkins")

    def test_members_of_department(self, engine):
        members = engine.members_of_department("HR")
        assert {e.name for e in members} == {"Bob Jones", "Josh Simmons", "Julia Grant", "Edward Simmons"}

    def test_company_attribute_by_type(self, engine):
        employees = engine.employees_by_company_attribute(employment_type=EmploymentType.TEMPORARY)
        assert [e.employee_id for e in employees] == [
            "Brad Jenkins", "Edward Simmons", "Josh Simmons", "Lucy Hart",
        ]

    def test_company_attribute_by_salary_range(self, engine):
        employees = engine.employees_by_company_attribute(min_salary=50000, max_salary=80000)
        assert [e.employee_id for e in employees] == [
            "Brad Jenkins", "Josh Simmons", "Julia Grant", "Lucy Hart",
        ]

    def test_company_attribute_combined(self, engine):
        employees = engine.employees_by_company_attribute(
            employment_type=EmploymentType.TEMPORARY, max_salary=55000
        )
        assert [e.employee_id for e in employees] == ["Edward Simmons", "Josh Simmons"]

    def test_unknown_employee(self, engine):
        with pytest.raises(NotFound):
            engine.ancestors("Nobody")
        with pytest.raises(NotFound):
            engine.descendants("Nobody")

    def test_unknown_department(self, engine):
        with pytest.raises(NotFound):
            engine.members_of_department("Sales")

    def test_negative_depth_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.descendants("Dave Clark", max_depth=-1)

    def test_failed_query_leaves_engine_usable(self, engine):
        with pytest.raises(NotFound):
            engine.descendants("Nobody")
        assert len(engine.descendants("Dave Clark")) == 8


class TestEquivalence:
    """Engines agree for every employee and every depth bound."""

    def test_all_engines_agree(self, store):
        _assert_engines_agree(store)

    @pytest.mark.parametrize("seed", range(30))
    def test_all_engines_agree_on_random_forests(self, seed):
        _assert_engines_agree(_random_forest(seed))

    def test_all_engines_agree_on_prefix_siblings(self):
        _assert_engines_agree(_prefix_siblings())

    def test_prefix_siblings_pre_order(self):
        """Children follow their parent before the parent's longer-named siblings."""
        store = _prefix_siblings()
        for factory in ENGINE_FACTORIES.values():
            engine = factory(store)
            assert _ids(engine.descendants("root")) == ["a", "a a", "z", "a\x02", "a b", "b", "ab"]
            assert _ids(engine.descendants("second root")) == ["e", "é"]
            assert engine.descendants("z") == []
            if hasattr(engine, "close"):
                engine.close()

    def test_multiple_roots_stay_separate(self):
        store = _prefix_siblings()
        for factory in ENGINE_FACTORIES.values():
            engine = factory(store)
            assert _ids(engine.ancestors("é")) == ["second root"]
            assert _ids(engine.ancestors("b")) == ["a b", "root"]
            if hasattr(engine, "close"):
                engine.close()

    def test_ancestors_form_a_chain(self, store):
        """Each ancestor is the manager of the previous one."""
        engine = GraphTraversalEngine(store)
        for employee in store.employees:
            hits = engine.ancestors(employee.employee_id)
            assert len(hits) <= len(store) - 1
            previous = employee
            for hit in hits:
                assert hit.employee.employee_id == previous.manager_id
                previous = hit.employee
            assert previous.manager_id is None


class TestSQLiteLifecycle:
    """The SQLite engine owns an in-memory connection."""

    def test_context_manager_closes_connection(self, store):
        with SQLiteTraversalEngine(store) as engine:
            assert _ids(engine.ancestors("Lucy Hart")) == ["Jenny Lane", "Dave Clark"]
        with pytest.raises(sqlite3.ProgrammingError):
            engine.ancestors("Lucy Hart")
