"""Payment gateway port (abstract interface).

Every adapter charges a card token and either returns a ``ChargeResult`` or
raises ``ChargeError``. Adapters translate processor-specific responses and
exceptions into these two shapes, keep no local state, and never retry.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class BillingDetails:
    """Buyer details forwarded to the processor with a charge."""

    email: str
    first_name: str
    last_name: str
    address_line_1: str
    locality: str
    administrative_district_level_1: str
    postal_code: str
    country: str = "US"


@dataclass(frozen=True)
class ChargeResult:
    """Result of a charge the processor accepted."""

    transaction_id: str
    status: str
    amount_minor: int
    currency: str
    processor_order_id: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status == COMPLETED


class ChargeError(Exception):
    """Charge was rejected, or its outcome could not be determined."""

    def __init__(self, reason: str, details: Optional[List[dict]] = None, timed_out: bool = False):
        super().__init__(reason)
        self.reason = reason
        self.details = details or []
        self.timed_out = timed_out


@dataclass
class ChargeCall:
    """Arguments of one ``charge`` call, as recorded by test doubles."""

    token: str
    amount_minor: int
    currency: str
    idempotency_key: str
    billing: Optional[BillingDetails] = None
    note: Optional[str] = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = "abstract"

    @abstractmethod
    async def charge(
        self,
        token: str,
        amount_minor: int,
        currency: str,
        idempotency_key: str,
        billing: Optional[BillingDetails] = None,
        note: Optional[str] = None,
    ) -> ChargeResult:
        """Charge ``amount_minor`` (e.g. cents) to the card behind ``token``."""
        ...
