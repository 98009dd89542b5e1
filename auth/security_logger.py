"""Security event logging for the edit-token audit trail.

Events go to the "security" logger as structured records (event name plus
fields in `extra`) so any log shipper can index them. Tokens and token
hashes are never passed in.
"""

import logging
from enum import Enum
from typing import Any


class SecurityEvent(Enum):
    """Edit-token security event types."""

    INVOICE_CREATED = "invoice_created"
    INVOICE_UPDATED = "invoice_updated"
    INVOICE_DELETED = "invoice_deleted"
    TOKEN_MISSING = "token_missing"
    TOKEN_REJECTED = "token_rejected"
    VERSION_CONFLICT = "version_conflict"
    RATE_LIMITED = "rate_limited"


# Failures are logged at WARNING so they stand out from normal traffic
_FAILURE_EVENTS = frozenset({
    SecurityEvent.TOKEN_MISSING,
    SecurityEvent.TOKEN_REJECTED,
    SecurityEvent.RATE_LIMITED,
})


class SecurityLogger:
    """Emits security events through the standard logging module."""

    LOGGER_NAME = "security"

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(self.LOGGER_NAME)

    def log(
        self,
        event: SecurityEvent,
        public_id: str | None = None,
        caller: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log a security event."""
        level = logging.WARNING if event in _FAILURE_EVENTS else logging.INFO
        self._logger.log(
            level,
            f"{event.value} public_id={public_id} caller={caller}",
            extra={
                "security_event": event.value,
                "public_id": public_id,
                "caller": caller,
                "details": details or {},
            },
        )
