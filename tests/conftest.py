"""Shared fixtures: the README sample organization."""
from __future__ import annotations

import pytest

from org_hierarchy import EntityStore, QueryFacade, SeedData, sample_dataset


@pytest.fixture
def sample() -> SeedData:
    return sample_dataset()


@pytest.fixture
def store(sample: SeedData) -> EntityStore:
    return sample.build_store()


@pytest.fixture
def facade(store: EntityStore):
    with QueryFacade(store, record_timings=True) as facade:
        yield facade
