"""
PostgreSQL-backed invoice store.

Contact records, items and totals live in JSONB columns, serialized with
snake_case keys. public_id is the primary key, so a colliding insert fails
with a unique violation that surfaces as DuplicatePublicIdError.
"""

import logging
from typing import Any

import psycopg2
import psycopg2.errors
from psycopg2.extras import Json
from pydantic import BaseModel

from clients.postgres_client import PostgresClient
from core.exceptions import DuplicatePublicIdError, StoreError
from core.models import Invoice
from core.store import InvoiceStore, MUTABLE_FIELDS, check_update_fields
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS invoices (
    public_id       TEXT PRIMARY KEY,
    edit_token_hash TEXT NOT NULL,
    status          TEXT NOT NULL DEFAULT 'draft',
    currency        TEXT NOT NULL,
    locale          TEXT NOT NULL,
    issuer          JSONB NOT NULL,
    customer        JSONB NOT NULL,
    items           JSONB NOT NULL,
    totals          JSONB NOT NULL,
    notes           TEXT,
    terms           TEXT,
    issue_date      TEXT,
    due_date        TEXT,
    version         INTEGER NOT NULL DEFAULT 1,
    created_at      TIMESTAMPTZ NOT NULL,
    updated_at      TIMESTAMPTZ NOT NULL
)
"""

_JSON_COLUMNS = frozenset({"issuer", "customer", "items", "totals"})


def _to_column(name: str, value: Any) -> Any:
    """Convert a model attribute to a psycopg2 parameter."""
    if name in _JSON_COLUMNS:
        if isinstance(value, list):
            return Json([v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value])
        if isinstance(value, BaseModel):
            return Json(value.model_dump(mode="json"))
        return Json(value)
    if name == "status" and value is not None:
        return getattr(value, "value", value)
    return value


class PostgresInvoiceStore(InvoiceStore):
    """Invoice store over a PostgresClient."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def close(self) -> None:
        self._db.close()

    def ensure_schema(self) -> None:
        """Create the invoices table if it doesn't exist."""
        self._db.execute(SCHEMA)

    def get(self, public_id: str) -> Invoice | None:
        try:
            row = self._db.execute_single(
                "SELECT * FROM invoices WHERE public_id = %s",
                (public_id,),
            )
        except psycopg2.Error as e:
            raise StoreError(f"Failed to read invoice: {e}") from e

        if row is None:
            return None
        return Invoice.model_validate(row)

    def insert(self, invoice: Invoice) -> Invoice:
        now = now_utc()
        try:
            row = self._db.execute_returning(
                """
                INSERT INTO invoices (
                    public_id, edit_token_hash, status, currency, locale,
                    issuer, customer, items, totals,
                    notes, terms, issue_date, due_date,
                    version, created_at, updated_at
                ) VALUES (
                    %s, %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    1, %s, %s
                )
                RETURNING *
                """,
                (
                    invoice.public_id, invoice.edit_token_hash,
                    _to_column("status", invoice.status), invoice.currency, invoice.locale,
                    _to_column("issuer", invoice.issuer), _to_column("customer", invoice.customer),
                    _to_column("items", invoice.items), _to_column("totals", invoice.totals),
                    invoice.notes, invoice.terms, invoice.issue_date, invoice.due_date,
                    now, now,
                ),
            )[0]
        except psycopg2.errors.UniqueViolation as e:
            logger.warning(f"Public id collision on insert: {invoice.public_id}")
            raise DuplicatePublicIdError(invoice.public_id) from e
        except psycopg2.Error as e:
            raise StoreError(f"Failed to insert invoice: {e}") from e

        return Invoice.model_validate(row)

    def update(
        self,
        public_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Invoice | None:
        check_update_fields(changes)

        # Column names come from MUTABLE_FIELDS, never from the caller
        columns = sorted(name for name in changes if name in MUTABLE_FIELDS)
        assignments = [f"{name} = %s" for name in columns]
        assignments += ["version = version + 1", "updated_at = %s"]
        params: list[Any] = [_to_column(name, changes[name]) for name in columns]
        params.append(now_utc())

        query = f"UPDATE invoices SET {', '.join(assignments)} WHERE public_id = %s"
        params.append(public_id)
        if expected_version is not None:
            query += " AND version = %s"
            params.append(expected_version)
        query += " RETURNING *"

        try:
            rows = self._db.execute_returning(query, tuple(params))
        except psycopg2.Error as e:
            raise StoreError(f"Failed to update invoice: {e}") from e

        if not rows:
            return None
        return Invoice.model_validate(rows[0])

    def delete(self, public_id: str) -> bool:
        try:
            rows = self._db.execute_returning(
                "DELETE FROM invoices WHERE public_id = %s RETURNING public_id",
                (public_id,),
            )
        except psycopg2.Error as e:
            raise StoreError(f"Failed to delete invoice: {e}") from e
        return len(rows) > 0
