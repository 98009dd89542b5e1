"""API test fixtures: the full app wired to in-memory backends."""

import pytest
from fastapi.testclient import TestClient

from auth.rate_limiter import InMemoryRateLimiter
from core.store import InMemoryInvoiceStore
from main import create_app


@pytest.fixture
def app(config, store):
    return create_app(config=config, store=store, rate_limiter=InMemoryRateLimiter(config))


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def created_invoice(client, payload):
    """Create an invoice over HTTP, return its response data (publicId, editToken, totals)."""
    response = client.post("/api/invoices", json=payload)
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def make_client(config):
    """Build a client around a fresh app with custom config."""

    def _make(**overrides) -> TestClient:
        custom = config.model_copy(update=overrides)
        app = create_app(
            config=custom,
            store=InMemoryInvoiceStore(),
            rate_limiter=InMemoryRateLimiter(custom),
        )
        return TestClient(app, raise_server_exceptions=False)

    return _make
