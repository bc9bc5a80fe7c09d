"""Tests for seed data loading."""
from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from org_hierarchy import LoadError, SeedData, load_seed_file, sample_dataset
from org_hierarchy.seed import employs_edges_for


class TestSampleDataset:
    """Tests for the bundled sample organization."""

    def test_shape(self):
        sample = sample_dataset()
        assert len(sample.employees) == 9
        assert len(sample.departments) == 2
        assert len(sample.employs) == 9
        assert sum(1 for e in sample.employees if e.manager_id is None) == 1

    def test_employs_mirror_employees(self):
        sample = sample_dataset()
        assert sample.employs == employs_edges_for(sample.employees, "acme")


class TestSeedFile:
    """Tests for load_seed_file."""

    def test_round_trip_through_json(self, tmp_path):
        path = tmp_path / "seed.json"
        path.write_text(sample_dataset().model_dump_json(indent=2))

        seed = load_seed_file(path)
        store = seed.build_store()
        assert len(store) == 9
        assert store.manager("Brad Jenkins").name == "James Lemmon"

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({"employees": [{"employee_id": "x"}]}))

        with pytest.raises(ValidationError):
            load_seed_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_seed_file(tmp_path / "missing.json")

    def test_inconsistent_seed_rejected(self):
        seed = SeedData(employees=sample_dataset().employees)
        with pytest.raises(LoadError) as exc_info:
            seed.build_store()
        # No departments and no EMPLOYS edges: every employee is cited twice
        assert len(exc_info.value.violations) == 18
