"""
Global pytest fixtures for the GoLinks test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide isolated in-memory store, directory and dispatcher fixtures
    - Provide a store double whose every call fails, for error-mapping tests
    - Provide a store whose existence check is blind, for insert-race tests

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state,
    eliminating cross-test flakiness.
"""

from typing import Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from main import create_app
from golinks.directory.generator import BaseCodeGenerator
from golinks.directory.link_directory import LinkDirectory
from golinks.dispatch.dispatcher import RedirectDispatcher
from golinks.errors import StoreError
from golinks.models import Link
from golinks.storage.base import BaseLinkStore
from golinks.storage.memory_storage import InMemoryLinkStore


class FailingStore(BaseLinkStore):
    """Store double whose every operation fails like an unreachable database."""

    def insert(self, short_code: str, target_url: str) -> Link:
        raise StoreError("database unreachable")

    def get_by_code(self, short_code: str) -> Optional[Link]:
        raise StoreError("database unreachable")

    def list_all(self) -> List[Link]:
        raise StoreError("database unreachable")

    def increment_clicks(self, short_code: str) -> bool:
        raise StoreError("database unreachable")

    def delete_by_code(self, short_code: str) -> bool:
        raise StoreError("database unreachable")


class BlindPrecheckStore(InMemoryLinkStore):
    """Every existence check reports the code as free, as if a concurrent writer landed after it."""

    def get_by_code(self, short_code: str) -> Optional[Link]:
        return None


class SequenceGenerator(BaseCodeGenerator):
    """Generator double that hands out a fixed list of candidates, then repeats the last."""

    def __init__(self, codes):
        self.codes = list(codes)
        self.calls = 0

    def generate(self) -> str:
        self.calls += 1
        if len(self.codes) > 1:
            return self.codes.pop(0)
        return self.codes[0]


@pytest.fixture
def store() -> InMemoryLinkStore:
    """Fresh in-memory link store."""
    return InMemoryLinkStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def blind_precheck_store() -> BlindPrecheckStore:
    """In-memory store where only the insert can detect a taken code."""
    return BlindPrecheckStore()


@pytest.fixture
def directory(store: InMemoryLinkStore) -> LinkDirectory:
    """LinkDirectory wired to the store fixture with the default random generator."""
    return LinkDirectory(store=store)


@pytest.fixture
def dispatcher(directory: LinkDirectory) -> Iterator[RedirectDispatcher]:
    d = RedirectDispatcher(directory, max_workers=4)
    yield d
    d.shutdown(wait=True)


@pytest.fixture
def client(store: InMemoryLinkStore) -> Iterator[TestClient]:
    """
    Fresh TestClient with a new app instance over the store fixture.

    Entering the client runs the app lifespan, so the click pool is drained
    and shut down when the test ends.
    """
    with TestClient(create_app(store=store)) as c:
        yield c


@pytest.fixture
def make_generator():
    """Factory for SequenceGenerator doubles: make_generator(["taken", "fresh"])."""
    return SequenceGenerator
