"""
Shared test fixtures — settings override, in-memory record store, test client.
"""

import pytest
from fastapi.testclient import TestClient

from finalize.config import Settings, get_settings
from finalize.main import app
from finalize.routers.submit import get_store_factory


class FakeStore:
    """Stands in for AirtableClient. Records writes, optionally fails."""

    def __init__(self, error=None):
        self.records = []
        self.error = error

    def create(self, table_name, fields):
        if self.error:
            raise self.error
        self.records.append((table_name, fields))
        return {"id": f"rec{len(self.records):04d}", "fields": fields}


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def test_settings():
    return Settings(
        AIRTABLE_API_KEY="key-test",
        AIRTABLE_BASE_ID="appTestBase",
        _env_file=None,
    )


@pytest.fixture
def client(test_settings, store):
    """FastAPI test client wired to the fake store."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_store_factory] = lambda: (lambda settings: store)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def valid_payload():
    return {
        "appUrl": "https://myapp.example.com",
        "platform": "Lovable",
        "selectedFeatures": ["Authentication", "Payments", "SaaS Subscriptions"],
        "selectedServices": [],
        "hasCustomRequest": False,
        "customRequestText": "",
        "email": "founder@example.com",
        "additionalContext": "Launching next month",
        "timestamp": "2026-10-18T12:00:00.000Z",
    }


@pytest.fixture
def install_store(client):
    """Swap the store behind the client, e.g. install_store(error=RuntimeError())."""
    def _install(error=None):
        store = FakeStore(error=error)
        app.dependency_overrides[get_store_factory] = lambda: (lambda settings: store)
        return store
    return _install
