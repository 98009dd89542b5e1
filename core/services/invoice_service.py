"""
Invoice service: create, read, update and delete guarded by edit tokens.

There are no accounts. Creating an invoice returns a secret edit token once;
only its hash is stored. Updates and deletes must present that token.

Mutation order is fixed: admission control, fetch, token check, validate,
persist. A missing invoice is reported as not found before the token is
looked at, so the two failures stay distinguishable.
"""

import logging
from typing import Any, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from auth.exceptions import RateLimitedError, UnauthorizedError
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.tokens import generate_edit_token, generate_public_id, hash_token, verify_token
from core.config import InvoiceConfig
from core.exceptions import (
    ConflictError,
    DuplicatePublicIdError,
    InternalError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from core.models import (
    Invoice,
    InvoiceCreate,
    InvoiceCreated,
    InvoiceStatus,
    InvoiceUpdate,
    InvoiceUpdated,
)
from core.pdf_renderer import render_invoice_pdf
from core.status import TransitionPolicy, open_transition_policy, strict_transition_policy
from core.store import InvoiceStore
from core.totals import compute_totals
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

ANONYMOUS_CALLER = "anonymous"


def validation_details(exc: PydanticValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into [{"field": "items.0.qty", "message": ...}]."""
    details = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        details.append({"field": field, "message": error["msg"]})
    return details


def _validate(model: type[BaseModel], payload: Any, message: str) -> Any:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(message, validation_details(e)) from e


class InvoiceService:
    """Service for guest invoice operations."""

    CREATE_SCOPE = "create"
    MUTATE_SCOPE = "mutate"

    def __init__(
        self,
        store: InvoiceStore,
        rate_limiter: RateLimiter,
        config: InvoiceConfig,
        security_logger: SecurityLogger | None = None,
        transition_policy: TransitionPolicy | None = None,
        pdf_renderer: Callable[[Invoice], bytes] = render_invoice_pdf,
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.config = config
        self.security_logger = security_logger or SecurityLogger()
        if transition_policy is None:
            transition_policy = (
                strict_transition_policy if config.enforce_status_transitions
                else open_transition_policy
            )
        self.transition_policy = transition_policy
        self.pdf_renderer = pdf_renderer

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _admit(self, scope: str, caller: str) -> None:
        """Consult admission control before any other work."""
        try:
            self.rate_limiter.check_rate_limit(f"{scope}:{caller}")
        except RateLimitedError as e:
            self.security_logger.log(
                SecurityEvent.RATE_LIMITED,
                caller=caller,
                details={"scope": scope, "retry_after_seconds": e.retry_after_seconds},
            )
            raise

    def _fetch(self, public_id: str) -> Invoice:
        try:
            invoice = self.store.get(public_id)
        except StoreError as e:
            logger.exception(f"Failed to read invoice {public_id}")
            raise InternalError() from e

        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    def _reread(self, public_id: str) -> Invoice | None:
        try:
            return self.store.get(public_id)
        except StoreError as e:
            logger.exception(f"Failed to re-read invoice {public_id} after a rejected write")
            raise InternalError() from e

    def _authorize(self, public_id: str, token: str | None, caller: str) -> Invoice:
        """
        Fetch the invoice and check the edit token against its stored hash.

        Raises:
            NotFoundError: If the invoice doesn't exist (checked first).
            UnauthorizedError: If the token is missing or doesn't match.
        """
        invoice = self._fetch(public_id)

        if not token:
            self.security_logger.log(SecurityEvent.TOKEN_MISSING, public_id=public_id, caller=caller)
            raise UnauthorizedError("Edit token missing")

        if not verify_token(token, invoice.edit_token_hash):
            self.security_logger.log(SecurityEvent.TOKEN_REJECTED, public_id=public_id, caller=caller)
            raise UnauthorizedError("Invalid edit token")

        return invoice

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(self, payload: Any, caller: str = ANONYMOUS_CALLER) -> InvoiceCreated:
        """
        Create a draft invoice and issue its edit token.

        Args:
            payload: Raw request body (camelCase keys)
            caller: Caller identity for admission control (e.g. client IP)

        Returns:
            InvoiceCreated with public id, edit token and totals. This is the
            only time the edit token is ever returned.

        Raises:
            RateLimitedError: If the caller is over its create limit
            ValidationError: If the payload is malformed
            InternalError: If the store write fails or every id collides
        """
        self._admit(self.CREATE_SCOPE, caller)
        data: InvoiceCreate = _validate(InvoiceCreate, payload, "Invalid invoice data")

        totals = compute_totals(data.items)
        edit_token = generate_edit_token()
        edit_token_hash = hash_token(edit_token)
        now = now_utc()

        stored = None
        for attempt in range(1, self.config.max_public_id_attempts + 1):
            invoice = Invoice(
                public_id=generate_public_id(),
                edit_token_hash=edit_token_hash,
                status=InvoiceStatus.DRAFT,
                currency=data.currency,
                locale=data.locale,
                issuer=data.issuer,
                customer=data.customer,
                items=data.items,
                totals=totals,
                notes=data.notes,
                terms=data.terms,
                issue_date=data.issue_date,
                due_date=data.due_date,
                created_at=now,
                updated_at=now,
            )
            try:
                stored = self.store.insert(invoice)
                break
            except DuplicatePublicIdError:
                logger.warning(f"Public id collision (attempt {attempt}), retrying with a fresh id")
            except StoreError as e:
                logger.exception("Failed to save invoice")
                raise InternalError() from e

        if stored is None:
            logger.error(
                f"Gave up after {self.config.max_public_id_attempts} public id collisions"
            )
            raise InternalError()

        self.security_logger.log(SecurityEvent.INVOICE_CREATED, public_id=stored.public_id, caller=caller)

        return InvoiceCreated(public_id=stored.public_id, edit_token=edit_token, totals=stored.totals)

    def get(self, public_id: str) -> Invoice:
        """
        Get invoice by public id. No token required.

        Raises:
            NotFoundError: If no invoice has this id
        """
        return self._fetch(public_id)

    def update(
        self,
        public_id: str,
        token: str | None,
        payload: Any,
        caller: str = ANONYMOUS_CALLER,
    ) -> InvoiceUpdated:
        """
        Apply a sparse update.

        Only fields present in the payload are written. When items are sent,
        totals are recomputed from them; totals are never taken from the
        payload. If the payload carries "version" the write only succeeds
        when it matches the stored version.

        Returns:
            InvoiceUpdated with the invoice's current totals and new version

        Raises:
            RateLimitedError, NotFoundError, UnauthorizedError,
            ValidationError, InvalidStatusTransitionError, ConflictError,
            InternalError
        """
        self._admit(self.MUTATE_SCOPE, caller)
        current = self._authorize(public_id, token, caller)
        data: InvoiceUpdate = _validate(InvoiceUpdate, payload, "Invalid update data")

        changes = data.changes()
        if "status" in changes:
            self.transition_policy(current.status, changes["status"])
        if "items" in changes:
            changes["totals"] = compute_totals(changes["items"])

        try:
            updated = self.store.update(public_id, changes, expected_version=data.version)
        except StoreError as e:
            logger.exception(f"Failed to update invoice {public_id}")
            raise InternalError() from e

        if updated is None:
            latest = None if data.version is None else self._reread(public_id)
            if latest is None:
                # Deleted between fetch and write
                raise NotFoundError("Invoice not found")
            self.security_logger.log(
                SecurityEvent.VERSION_CONFLICT,
                public_id=public_id,
                caller=caller,
                details={"expected": data.version, "actual": latest.version},
            )
            raise ConflictError(data.version, latest.version)

        self.security_logger.log(
            SecurityEvent.INVOICE_UPDATED,
            public_id=public_id,
            caller=caller,
            details={"fields": sorted(changes)},
        )

        return InvoiceUpdated(totals=updated.totals, version=updated.version)

    def delete(self, public_id: str, token: str | None, caller: str = ANONYMOUS_CALLER) -> None:
        """
        Permanently delete an invoice.

        Raises:
            RateLimitedError, NotFoundError, UnauthorizedError, InternalError
        """
        self._admit(self.MUTATE_SCOPE, caller)
        self._authorize(public_id, token, caller)

        try:
            deleted = self.store.delete(public_id)
        except StoreError as e:
            logger.exception(f"Failed to delete invoice {public_id}")
            raise InternalError() from e

        if not deleted:
            raise NotFoundError("Invoice not found")

        self.security_logger.log(SecurityEvent.INVOICE_DELETED, public_id=public_id, caller=caller)

    def render_pdf(self, public_id: str) -> bytes:
        """
        Render an invoice as PDF. Same visibility and 404 behavior as get().
        """
        invoice = self.get(public_id)
        return self.pdf_renderer(invoice)
