"""
Order Service exceptions
"""
from typing import List, Optional


class OrderServiceError(Exception):
    """Base exception for Order Service errors"""
    pass


class OrderValidationError(OrderServiceError):
    """Malformed or missing input; raised before any side effect"""
    pass


class InvalidStatusTransitionError(OrderValidationError):
    """Requested status change is not allowed from the current status"""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot transition order from '{current}' to '{target}'")
        self.current = current
        self.target = target


class PaymentDeclinedError(OrderServiceError):
    """Payment processor rejected the charge (or its outcome is unknown)"""

    def __init__(self, reason: str, details: Optional[List[dict]] = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details or []


class PersistenceError(OrderServiceError):
    """
    Order could not be written.

    When ``payment_id`` is set the customer has already been charged and the
    payment has no order record.
    """

    def __init__(self, message: str, payment_id: Optional[str] = None):
        super().__init__(message)
        self.payment_id = payment_id


class DuplicateOrderError(PersistenceError):
    """Order number or idempotency key already exists"""
    pass


class IdempotencyConflictError(OrderServiceError):
    """Idempotency key already paid for a checkout with a different total"""

    def __init__(self, order_number: str):
        super().__init__(f"Idempotency key already used for order {order_number} with a different total")
        self.order_number = order_number


class OrderNotFoundError(OrderServiceError):
    """Order not found"""

    def __init__(self, order_number: str):
        super().__init__(f"Order {order_number} not found")
        self.order_number = order_number


class NotificationError(OrderServiceError):
    """Notification could not be delivered"""
    pass
