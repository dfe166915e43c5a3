"""Shared fixtures: an in-memory backend, a store over it, and a FarmBook."""

import pytest

from eggfarm.links import LinkManager
from eggfarm.orchestrator import FarmBook
from eggfarm.services.storage import InMemoryStorage
from eggfarm.store import EntityStore


@pytest.fixture
def backend():
    return InMemoryStorage()


@pytest.fixture
def store(backend):
    return EntityStore(backend)


@pytest.fixture
def links(store):
    return LinkManager(store)


@pytest.fixture
def book(store, links):
    return FarmBook(store, links)
