"""
Order status state machine

    pending -> paid -> processing -> fulfilled -> shipped -> delivered
    (any non-terminal state) -> cancelled
"""
from typing import Optional

from order_service.config import settings
from order_service.exceptions import InvalidStatusTransitionError, OrderValidationError
from order_service.models.order import OrderStatus

FULFILLMENT_SEQUENCE = (
    OrderStatus.PENDING,
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.FULFILLED,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Adjacent moves only
_STRICT_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.FULFILLED, OrderStatus.CANCELLED},
    OrderStatus.FULFILLED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Any later step of the sequence, or cancellation
_FORWARD_TRANSITIONS = {
    status: set(FULFILLMENT_SEQUENCE[index + 1:]) | {OrderStatus.CANCELLED}
    for index, status in enumerate(FULFILLMENT_SEQUENCE)
    if status not in TERMINAL_STATUSES
}
_FORWARD_TRANSITIONS.update({status: set() for status in TERMINAL_STATUSES})

TRANSITION_TABLES = {
    "strict": _STRICT_TRANSITIONS,
    "forward": _FORWARD_TRANSITIONS,
}


def parse_status(value: str) -> OrderStatus:
    """Convert a raw status string, rejecting values outside the enumeration"""
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise OrderValidationError(f"Invalid status. Must be one of: {allowed}")


def can_transition(current: OrderStatus, target: OrderStatus, policy: Optional[str] = None) -> bool:
    """
    Check a status change against a transition policy

    Re-applying the current status is always allowed so tracking numbers and
    notes can be edited in place. The ``permissive`` policy accepts anything.
    """
    policy = policy or settings.STATUS_TRANSITION_POLICY
    if policy == "permissive" or current == target:
        return True
    return target in TRANSITION_TABLES[policy][current]


def ensure_transition(current: OrderStatus, target: OrderStatus, policy: Optional[str] = None) -> None:
    if not can_transition(current, target, policy):
        raise InvalidStatusTransitionError(current.value, target.value)
