"""
Shared fixtures: fake vendor, in-memory store and a wired test client.
"""

import pytest
from fastapi.testclient import TestClient

from adapters.registry import AdapterRegistry
from connectors.encryption import TokenCipher
from connectors.registry import ConnectorRegistry, default_connectors
from database.store import InMemoryStore

from fakes import GOOGLE_BASE, TODOIST_BASE, FakeVendor


@pytest.fixture
def vendor() -> FakeVendor:
    return FakeVendor()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def client(vendor: FakeVendor, store: InMemoryStore) -> TestClient:
    """App wired to the fake vendor for both task APIs and token endpoints."""
    from main import create_app

    app = create_app(
        store=store,
        adapters=AdapterRegistry(
            transport=vendor.transport,
            base_urls={"todoist": TODOIST_BASE, "google_tasks": GOOGLE_BASE},
        ),
        connectors=ConnectorRegistry(default_connectors(transport=vendor.transport)),
        cipher=TokenCipher(None),
    )
    return TestClient(app)
