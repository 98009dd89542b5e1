"""Application configuration."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InvoiceConfig(BaseSettings):
    """
    Invoice service configuration.

    Durations are in seconds. Every field can be set from an INVOICE_*
    environment variable (INVOICE_RATE_LIMIT_ATTEMPTS=20). Empty values
    are ignored so a blank line in .env keeps the default.
    """

    model_config = SettingsConfigDict(env_prefix="INVOICE_", env_ignore_empty=True)

    # Application
    app_name: str = Field(
        default="Guest Invoices",
        description="Application name shown in the API docs",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    # Admission control
    rate_limit_attempts: int = Field(
        default=10,
        description="Max requests per caller per window, per scope (create/mutate)",
        ge=1,
        le=1000,
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        description="Rate limit window duration",
        ge=1,
        le=3600,
    )
    rate_limit_backend: Literal["memory", "valkey"] = Field(
        default="memory",
        description="Where admission-control counters live",
    )
    trust_forwarded_for: bool = Field(
        default=False,
        description="Use the first X-Forwarded-For entry as the caller identity",
    )

    # Invoices
    max_public_id_attempts: int = Field(
        default=3,
        description="Inserts attempted with fresh ids before a collision is fatal",
        ge=1,
        le=10,
    )
    enforce_status_transitions: bool = Field(
        default=False,
        description="Reject status changes outside draft -> issued -> paid/cancelled",
    )

    # Backends
    store_backend: Literal["memory", "postgres"] = Field(
        default="memory",
        description="Invoice record store",
    )
    database_url: str | None = Field(
        default=None,
        description="PostgreSQL DSN when store_backend is postgres",
    )
    valkey_url: str | None = Field(
        default=None,
        description="Valkey/Redis URL when rate_limit_backend is valkey",
    )
