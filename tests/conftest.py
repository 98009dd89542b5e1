"""Shared test fixtures for the invoice test suite.

Everything runs against the in-memory store and rate limiter; Postgres,
Valkey and Vault are replaced with mocks in their own test modules.
"""

import copy

import pytest

from auth.rate_limiter import InMemoryRateLimiter
from auth.security_logger import SecurityLogger
from core.config import InvoiceConfig
from core.services.invoice_service import InvoiceService
from core.store import InMemoryInvoiceStore


# =============================================================================
# PAYLOADS
# =============================================================================

VALID_PAYLOAD = {
    "currency": "USD",
    "locale": "en-US",
    "issuer": {
        "name": "Acme Studio",
        "address": "1 Main St, Springfield",
        "email": "billing@acme.com",
        "taxId": "US-123456",
    },
    "customer": {
        "name": "Globex Corp",
        "email": "ap@globex.com",
    },
    "items": [
        {"description": "Website design", "qty": 1, "unitPrice": 2500},
        {"description": "Hosting (hours)", "qty": 40, "unitPrice": 100},
    ],
    "notes": "Thanks for your business",
    "issueDate": "2025-01-05",
    "dueDate": "2025-02-04",
}


@pytest.fixture
def payload():
    """A fresh copy of a valid create payload (camelCase, as sent over the wire)."""
    return copy.deepcopy(VALID_PAYLOAD)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def config():
    """Config with a generous rate limit so tests don't trip it by accident."""
    return InvoiceConfig(rate_limit_attempts=100, rate_limit_window_seconds=60)


@pytest.fixture
def store():
    return InMemoryInvoiceStore()


@pytest.fixture
def rate_limiter(config):
    return InMemoryRateLimiter(config)


@pytest.fixture
def security_logger():
    return SecurityLogger()


@pytest.fixture
def invoice_service(store, rate_limiter, config, security_logger):
    return InvoiceService(
        store=store,
        rate_limiter=rate_limiter,
        config=config,
        security_logger=security_logger,
    )


@pytest.fixture
def created(invoice_service, payload):
    """An invoice created through the service. Holds the one-time edit token."""
    return invoice_service.create(payload, caller="10.0.0.1")
