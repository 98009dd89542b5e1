"""Invoice status transition policies.

By default status is an open enum: an authorized update may set any value
after any other. A policy is a callable (current, new) -> None that raises
InvalidStatusTransitionError to reject a change.
"""

from typing import Callable

from core.exceptions import InvalidStatusTransitionError
from core.models import InvoiceStatus

TransitionPolicy = Callable[[InvoiceStatus, InvoiceStatus], None]

ALLOWED_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.ISSUED, InvoiceStatus.CANCELLED}),
    InvoiceStatus.ISSUED: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def open_transition_policy(current: InvoiceStatus, new: InvoiceStatus) -> None:
    """Allow everything."""


def strict_transition_policy(current: InvoiceStatus, new: InvoiceStatus) -> None:
    """
    draft -> issued | cancelled, issued -> paid | cancelled.

    paid and cancelled are terminal. Re-setting the current status is a no-op
    and always allowed.
    """
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current.value, new.value)
