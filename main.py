"""Application factory: wires config, backends, services and routes.

Run with:
    uvicorn main:create_app --factory
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.middleware import RequestIDMiddleware
from auth.rate_limiter import RateLimiter, create_rate_limiter
from auth.security_logger import SecurityLogger
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import VaultClient, apply_vault_secrets
from core.config import InvoiceConfig
from core.postgres_store import PostgresInvoiceStore
from core.services.invoice_service import InvoiceService
from core.store import InMemoryInvoiceStore, InvoiceStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Root logging setup. Safe to call more than once."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_config() -> InvoiceConfig:
    """Config from .env / environment, with connection URLs from Vault when configured."""
    load_dotenv()
    config = InvoiceConfig()
    if os.getenv("VAULT_ADDR"):
        config = apply_vault_secrets(config, VaultClient())
    return config


def build_store(config: InvoiceConfig) -> InvoiceStore:
    """Invoice store for config.store_backend."""
    if config.store_backend == "postgres":
        if not config.database_url:
            raise ValueError("store_backend 'postgres' requires INVOICE_DATABASE_URL or Vault")
        store = PostgresInvoiceStore(PostgresClient(config.database_url))
        store.ensure_schema()
        return store
    logger.warning("Using in-memory invoice store; data is lost on restart")
    return InMemoryInvoiceStore()


def build_rate_limiter(config: InvoiceConfig) -> RateLimiter:
    """Admission control for config.rate_limit_backend."""
    valkey = None
    if config.rate_limit_backend == "valkey":
        if not config.valkey_url:
            raise ValueError("rate_limit_backend 'valkey' requires INVOICE_VALKEY_URL or Vault")
        valkey = ValkeyClient(config.valkey_url)
    return create_rate_limiter(config, valkey)


def create_app(
    config: InvoiceConfig | None = None,
    store: InvoiceStore | None = None,
    rate_limiter: RateLimiter | None = None,
    security_logger: SecurityLogger | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Anything not passed in is built from config, so tests can inject an
    in-memory store and a controlled rate limiter. Backends built here are
    closed on shutdown; injected ones belong to the caller.
    """
    if config is None:
        config = load_config()
    configure_logging(config.log_level)

    owned = []
    if store is None:
        store = build_store(config)
        owned.append(store)
    if rate_limiter is None:
        rate_limiter = build_rate_limiter(config)
        owned.append(rate_limiter)

    invoice_service = InvoiceService(
        store=store,
        rate_limiter=rate_limiter,
        config=config,
        security_logger=security_logger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{config.app_name} starting")
        yield
        for backend in owned:
            try:
                backend.close()
            except Exception as e:
                logger.error(f"Failed to close {type(backend).__name__}: {e}")
        logger.info(f"{config.app_name} stopped")

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_invoices_router(invoice_service, config), prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.state.invoice_service = invoice_service
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=8000)
