"""Configurable fake payment gateway for development and testing.

Simulates the processor without network calls. It can be configured at
runtime to approve or decline charges, and records every call it receives.
Charges repeated with the same idempotency key return the original result,
as a real processor would.
"""

from typing import Dict, List, Optional
from uuid import uuid4

from order_service.payments.gateway import (
    COMPLETED,
    BillingDetails,
    ChargeCall,
    ChargeError,
    ChargeResult,
    PaymentGateway,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    name = "fake"

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.status: str = COMPLETED
        self.calls: List[ChargeCall] = []
        self._results: Dict[str, ChargeResult] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        status: str = COMPLETED,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.status = status

    async def charge(
        self,
        token: str,
        amount_minor: int,
        currency: str,
        idempotency_key: str,
        billing: Optional[BillingDetails] = None,
        note: Optional[str] = None,
    ) -> ChargeResult:
        self.calls.append(
            ChargeCall(
                token=token,
                amount_minor=amount_minor,
                currency=currency,
                idempotency_key=idempotency_key,
                billing=billing,
                note=note,
            )
        )

        if idempotency_key in self._results:
            return self._results[idempotency_key]

        if not self.should_succeed:
            raise ChargeError(
                self.failure_reason,
                details=[{"category": "PAYMENT_METHOD_ERROR", "code": self.failure_reason.upper()}],
            )

        result = ChargeResult(
            transaction_id=f"fake_payment_{uuid4().hex[:12]}",
            status=self.status,
            amount_minor=amount_minor,
            currency=currency,
            processor_order_id=f"fake_order_{uuid4().hex[:12]}",
        )
        self._results[idempotency_key] = result
        return result
