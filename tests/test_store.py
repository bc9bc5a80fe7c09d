"""Tests for the EntityStore snapshot and its views."""
from __future__ import annotations

import pytest

from org_hierarchy import Employee, EntityStore, LoadError, NotFound, ViolationRule
from org_hierarchy.seed import employs_edges_for
from org_hierarchy.store import EdgeType, EmployeeRow


class TestLoad:
    """Tests for EntityStore.load."""

    def test_load_sample(self, store):
        assert len(store) == 9
        assert store.company.company_id == "acme"
        assert [d.department_id for d in store.departments] == ["HR", "IT"]
        assert "Brad Jenkins" in store
        assert "Nobody" not in store

    def test_rejects_cycle_wholesale(self, sample):
        """A cyclic dataset is never partially loaded."""
        employees = [
            e.model_copy(update={"manager_id": "Brad Jenkins"}) if e.employee_id == "Dave Clark" else e
            for e in sample.employees
        ]
        with pytest.raises(LoadError) as exc_info:
            EntityStore.load(employees, sample.departments, sample.employs, sample.company)

        cyclic = exc_info.value.subjects(ViolationRule.REPORTING_CYCLE)
        assert cyclic == {"Dave Clark", "Jenny Lane", "James Lemmon", "Brad Jenkins"}

    def test_rejects_unknown_department(self, sample):
        employees = [
            e.model_copy(update={"department_id": "Sales"}) if e.employee_id == "Lucy Hart" else e
            for e in sample.employees
        ]
        with pytest.raises(LoadError) as exc_info:
            EntityStore.load(employees, sample.departments, sample.employs, sample.company)

        assert exc_info.value.subjects() == {"Lucy Hart"}

    def test_company_inferred_from_edges(self, sample):
        store = EntityStore.load(sample.employees, sample.departments, sample.employs)
        assert store.company.company_id == "acme"

    def test_empty_dataset(self):
        store = EntityStore.load([], [], [])
        assert len(store) == 0
        assert store.company.company_id == "company"


class TestAccessors:
    """Tests for read-only entity accessors."""

    def test_employee_by_id(self, store):
        assert store.employee_by_id("Julia Grant").department_id == "HR"

    def test_unknown_employee_raises_not_found(self, store):
        with pytest.raises(NotFound) as exc_info:
            store.employee_by_id("Nobody")
        assert exc_info.value.kind == "employee"
        assert exc_info.value.identifier == "Nobody"

    def test_unknown_department_raises_not_found(self, store):
        with pytest.raises(NotFound):
            store.department_by_id("Sales")

    def test_not_found_is_lookup_error(self, store):
        with pytest.raises(LookupError):
            store.manager("Nobody")

    def test_manager(self, store):
        assert store.manager("Brad Jenkins").employee_id == "James Lemmon"
        assert store.manager("Dave Clark") is None

    def test_direct_reports(self, store):
        reports = store.direct_reports("Jenny Lane")
        assert {e.employee_id for e in reports} == {"James Lemmon", "Lucy Hart"}
        assert store.direct_reports("Brad Jenkins") == frozenset()

    def test_department_members(self, store):
        members = store.department_members("HR")
        assert {e.name for e in members} == {"Bob Jones", "Josh Simmons", "Julia Grant", "Edward Simmons"}

    def test_employment(self, store):
        edge = store.employment("Brad Jenkins")
        assert edge.company_id == "acme"
        assert edge.salary == 60000


class TestViews:
    """Tests for the graph and relational views."""

    def test_reports_to_edges(self, store):
        edges = store.get_neighbors("Brad Jenkins", EdgeType.REPORTS_TO, direction="outgoing")
        assert [(e.source_id, e.target_id) for e in edges] == [("Brad Jenkins", "James Lemmon")]

    def test_incoming_edges_sorted_by_source(self, store):
        edges = store.get_neighbors("Bob Jones", EdgeType.REPORTS_TO, direction="incoming")
        assert [e.source_id for e in edges] == ["Josh Simmons", "Julia Grant"]

    def test_employs_edges_carry_attributes(self, store):
        edges = store.get_neighbors("acme", EdgeType.EMPLOYS, direction="outgoing")
        assert len(edges) == 9
        brad = next(e for e in edges if e.target_id == "Brad Jenkins")
        assert brad.properties["employment_type"].value == "temporary"
        assert brad.to_dict()["properties"]["salary"] == 60000

    def test_unknown_node_has_no_edges(self, store):
        assert store.get_neighbors("Nobody", EdgeType.REPORTS_TO) == ()

    def test_invalid_direction(self, store):
        with pytest.raises(ValueError):
            store.get_neighbors("Dave Clark", EdgeType.REPORTS_TO, direction="both")

    def test_employee_rows(self, store):
        rows = {row.employee_id: row for row in store.employee_rows}
        assert rows["Brad Jenkins"] == EmployeeRow("Brad Jenkins", "Brad Jenkins", "IT", "James Lemmon")
        assert rows["Dave Clark"].report_to_id is None
        assert len(store.employs_rows) == 9

    def test_indices_are_read_only(self, store):
        with pytest.raises(TypeError):
            store._employees["Intruder"] = None


class TestSmallHierarchy:
    """A store built from hand-made records."""

    def test_chain(self, sample):
        department = sample.departments[0]
        employees = [
            Employee(employee_id=str(i), name=f"E{i}", age=30, salary=1000,
                     department_id=department.department_id,
                     manager_id=None if i == 0 else str(i - 1))
            for i in range(5)
        ]
        store = EntityStore.load(employees, [department], employs_edges_for(employees, "co"))
        assert store.manager("4").employee_id == "3"
        assert {e.employee_id for e in store.direct_reports("0")} == {"1"}
