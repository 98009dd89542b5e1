"""
Invoice record store.

Keyed by public id. The store owns created_at, updated_at and version;
callers never set them. Per-key last write wins, unless update() is given
an expected_version, in which case the write is a compare-and-set.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any

from core.exceptions import DuplicatePublicIdError
from core.models import Invoice
from utils.timezone import now_utc

# Fields an update may touch. Everything else is immutable or store-owned.
MUTABLE_FIELDS = frozenset({
    "status", "currency", "locale", "issuer", "customer", "items", "totals",
    "notes", "terms", "issue_date", "due_date",
})


class InvoiceStore(ABC):
    """Keyed get/insert/update/delete of invoices by public id."""

    @abstractmethod
    def get(self, public_id: str) -> Invoice | None:
        """Return the invoice, or None if no row has this id."""

    @abstractmethod
    def insert(self, invoice: Invoice) -> Invoice:
        """
        Insert a new invoice.

        Raises:
            DuplicatePublicIdError: If the public id is already taken.
            StoreError: On any other storage failure.
        """

    @abstractmethod
    def update(
        self,
        public_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Invoice | None:
        """
        Apply changes, bump version and updated_at.

        Returns the updated invoice, or None if no row matched (missing id,
        or stored version != expected_version).
        """

    @abstractmethod
    def delete(self, public_id: str) -> bool:
        """Hard delete. Returns True if a row was removed."""

    def close(self) -> None:
        """Release backend connections. Nothing to hold for in-process rows."""


def check_update_fields(changes: dict[str, Any]) -> None:
    unknown = set(changes) - MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")


class InMemoryInvoiceStore(InvoiceStore):
    """
    Dict-backed store for development and tests.

    Returns copies so callers can't mutate stored state.
    """

    def __init__(self):
        self._rows: dict[str, Invoice] = {}
        self._lock = threading.Lock()

    def get(self, public_id: str) -> Invoice | None:
        with self._lock:
            invoice = self._rows.get(public_id)
            return invoice.model_copy(deep=True) if invoice else None

    def insert(self, invoice: Invoice) -> Invoice:
        now = now_utc()
        stored = invoice.model_copy(
            update={"created_at": now, "updated_at": now, "version": 1}, deep=True
        )
        with self._lock:
            if stored.public_id in self._rows:
                raise DuplicatePublicIdError(stored.public_id)
            self._rows[stored.public_id] = stored
        return stored.model_copy(deep=True)

    def update(
        self,
        public_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Invoice | None:
        check_update_fields(changes)
        with self._lock:
            current = self._rows.get(public_id)
            if current is None:
                return None
            if expected_version is not None and current.version != expected_version:
                return None

            # model_copy doesn't copy update values, so deep-copy afterwards
            updated = current.model_copy(
                update={
                    **changes,
                    "version": current.version + 1,
                    "updated_at": now_utc(),
                },
            ).model_copy(deep=True)
            self._rows[public_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, public_id: str) -> bool:
        with self._lock:
            return self._rows.pop(public_id, None) is not None

    def __len__(self) -> int:
        return len(self._rows)
