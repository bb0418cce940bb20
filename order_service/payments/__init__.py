"""Payment gateway factory.

``get_payment_gateway()`` is used as a FastAPI dependency and returns the
adapter selected by ``PAYMENT_GATEWAY``:
- FakeGateway for development and testing
- SquareGateway for sandbox and production
"""

from typing import Optional

from order_service.config import settings
from order_service.payments.fake import FakeGateway
from order_service.payments.gateway import PaymentGateway
from order_service.payments.square import SquareGateway

_current_gateway: Optional[PaymentGateway] = None


def build_gateway(kind: Optional[str] = None) -> PaymentGateway:
    kind = kind or settings.PAYMENT_GATEWAY
    if kind == "fake":
        return FakeGateway()
    return SquareGateway()


def get_payment_gateway() -> PaymentGateway:
    """Return the process-wide payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_payment_gateway(gateway: Optional[PaymentGateway]) -> None:
    """Override the active payment gateway; ``None`` resets to the configured one."""
    global _current_gateway
    _current_gateway = gateway
