"""Tests for main.py app wiring."""

from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from auth.rate_limiter import InMemoryRateLimiter, RateLimiter, ValkeyRateLimiter
from core.config import InvoiceConfig
from core.services.invoice_service import InvoiceService
from core.store import InMemoryInvoiceStore, InvoiceStore
from main import build_rate_limiter, build_store, create_app, load_config


class TestBuilders:

    def test_memory_store(self):
        assert isinstance(build_store(InvoiceConfig()), InMemoryInvoiceStore)

    def test_postgres_store_needs_url(self):
        with pytest.raises(ValueError):
            build_store(InvoiceConfig(store_backend="postgres"))

    def test_postgres_store_creates_schema(self):
        config = InvoiceConfig(store_backend="postgres", database_url="postgresql://db/invoices")

        with patch("main.PostgresClient") as client_cls, \
                patch("main.PostgresInvoiceStore") as store_cls:
            store = build_store(config)

        client_cls.assert_called_once_with("postgresql://db/invoices")
        store_cls.assert_called_once_with(client_cls.return_value)
        store.ensure_schema.assert_called_once()

    def test_memory_rate_limiter(self):
        assert isinstance(build_rate_limiter(InvoiceConfig()), InMemoryRateLimiter)

    def test_valkey_rate_limiter(self):
        config = InvoiceConfig(rate_limit_backend="valkey", valkey_url="redis://cache:6379/0")

        with patch("main.ValkeyClient") as client_cls:
            limiter = build_rate_limiter(config)

        client_cls.assert_called_once_with("redis://cache:6379/0")
        assert isinstance(limiter, ValkeyRateLimiter)

    def test_valkey_rate_limiter_needs_url(self):
        with pytest.raises(ValueError):
            build_rate_limiter(InvoiceConfig(rate_limit_backend="valkey"))


class TestLoadConfig:

    def test_without_vault(self, monkeypatch):
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        monkeypatch.setenv("INVOICE_RATE_LIMIT_ATTEMPTS", "7")

        with patch("main.load_dotenv"), patch("main.VaultClient") as vault_cls:
            config = load_config()

        assert config.rate_limit_attempts == 7
        vault_cls.assert_not_called()

    def test_with_vault(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.local:8200")

        with patch("main.load_dotenv"), \
                patch("main.VaultClient") as vault_cls, \
                patch("main.apply_vault_secrets") as apply:
            config = load_config()

        apply.assert_called_once()
        assert apply.call_args.args[1] is vault_cls.return_value
        assert config is apply.return_value


def test_create_app_exposes_service():
    app = create_app(config=InvoiceConfig())

    assert isinstance(app.state.invoice_service, InvoiceService)
    paths = {route.path for route in app.routes}
    assert "/api/invoices" in paths
    assert "/api/invoices/{public_id}/pdf" in paths
    assert "/health" in paths


class TestShutdown:

    def test_closes_backends_it_built(self):
        store = Mock(spec=InvoiceStore)
        limiter = Mock(spec=RateLimiter)

        with patch("main.build_store", return_value=store), \
                patch("main.build_rate_limiter", return_value=limiter):
            app = create_app(config=InvoiceConfig())
            with TestClient(app) as client:
                assert client.get("/health").status_code == 200
                store.close.assert_not_called()

        store.close.assert_called_once()
        limiter.close.assert_called_once()

    def test_leaves_injected_backends_open(self):
        store = Mock(spec=InvoiceStore)
        limiter = Mock(spec=RateLimiter)

        app = create_app(config=InvoiceConfig(), store=store, rate_limiter=limiter)
        with TestClient(app):
            pass

        store.close.assert_not_called()
        limiter.close.assert_not_called()

    def test_close_failure_does_not_block_others(self):
        store = Mock(spec=InvoiceStore)
        store.close.side_effect = RuntimeError("pool already closed")
        limiter = Mock(spec=RateLimiter)

        with patch("main.build_store", return_value=store), \
                patch("main.build_rate_limiter", return_value=limiter):
            with TestClient(create_app(config=InvoiceConfig())):
                pass

        limiter.close.assert_called_once()
