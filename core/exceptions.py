"""Domain exceptions for invoice operations.

HTTP mapping lives in api/errors.py; nothing here knows about status codes.
"""

from typing import Any


class InvoiceError(Exception):
    """Base class for invoice domain errors."""


class ValidationError(InvoiceError):
    """Malformed or missing input.

    details is a list of {"field": ..., "message": ...} dicts, one per problem.
    """

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        self.message = message
        self.details = details or []
        super().__init__(message)


class InvalidStatusTransitionError(ValidationError):
    """Status change rejected by the configured transition policy."""

    def __init__(self, current: str, new: str):
        self.current = current
        self.new = new
        super().__init__(
            f"Cannot change status from '{current}' to '{new}'",
            [{"field": "status", "message": f"transition {current} -> {new} not allowed"}],
        )


class NotFoundError(InvoiceError):
    """No invoice exists for the given public id."""

    def __init__(self, message: str = "Invoice not found"):
        super().__init__(message)


class ConflictError(InvoiceError):
    """Invoice changed since the caller last read it (version mismatch)."""

    def __init__(self, expected_version: int, actual_version: int | None = None):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Invoice was modified concurrently (expected version {expected_version})"
        )


class InternalError(InvoiceError):
    """Unexpected failure. The underlying cause is logged, never returned."""

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)


class StoreError(Exception):
    """Record store operation failed."""


class DuplicatePublicIdError(StoreError):
    """Insert collided with an existing public id."""

    def __init__(self, public_id: str):
        self.public_id = public_id
        super().__init__(f"Public id already exists: {public_id}")
