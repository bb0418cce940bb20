"""
Square Payments API adapter
"""
from typing import List, Optional

import httpx

from order_service.config import settings
from order_service.payments.gateway import BillingDetails, ChargeError, ChargeResult, PaymentGateway
from order_service.utils.logging import get_logger

logger = get_logger(__name__)

SQUARE_BASE_URLS = {
    "sandbox": "https://connect.squareupsandbox.com",
    "production": "https://connect.squareup.com",
}


class SquareGateway(PaymentGateway):
    """Charges cards through the Square ``CreatePayment`` endpoint"""

    name = "square"

    def __init__(
        self,
        access_token: Optional[str] = None,
        location_id: Optional[str] = None,
        environment: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token or settings.SQUARE_ACCESS_TOKEN
        self.location_id = location_id or settings.SQUARE_LOCATION_ID
        self.base_url = SQUARE_BASE_URLS[environment or settings.SQUARE_ENVIRONMENT]
        self.timeout = timeout or settings.PAYMENT_TIMEOUT_SECONDS
        self.transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Square-Version": settings.SQUARE_API_VERSION,
            "Content-Type": "application/json",
        }

    def _payload(
        self,
        token: str,
        amount_minor: int,
        currency: str,
        idempotency_key: str,
        billing: Optional[BillingDetails],
        note: Optional[str],
    ) -> dict:
        payload = {
            "source_id": token,
            "idempotency_key": idempotency_key,
            "amount_money": {"amount": amount_minor, "currency": currency},
            "location_id": self.location_id,
        }
        if note:
            payload["note"] = note
        if billing:
            payload["buyer_email_address"] = billing.email
            payload["billing_address"] = {
                "first_name": billing.first_name,
                "last_name": billing.last_name,
                "address_line_1": billing.address_line_1,
                "locality": billing.locality,
                "administrative_district_level_1": billing.administrative_district_level_1,
                "postal_code": billing.postal_code,
                "country": billing.country,
            }
        return payload

    async def charge(
        self,
        token: str,
        amount_minor: int,
        currency: str,
        idempotency_key: str,
        billing: Optional[BillingDetails] = None,
        note: Optional[str] = None,
    ) -> ChargeResult:
        """
        Create a Square payment

        Raises:
            ChargeError: If Square rejects the payment, cannot be reached,
                or does not answer within the timeout
        """
        payload = self._payload(token, amount_minor, currency, idempotency_key, billing, note)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.post("/v2/payments", json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ChargeError(f"Payment processor timed out: {e}", timed_out=True)
        except httpx.HTTPError as e:
            raise ChargeError(f"Payment processor unavailable: {e}")

        try:
            body = response.json()
        except ValueError:
            raise ChargeError(f"Unexpected response from payment processor (status {response.status_code})")

        errors = body.get("errors") or []
        if response.status_code >= 400 or errors:
            raise ChargeError(_error_reason(errors, response.status_code), details=_error_details(errors))

        payment = body.get("payment") or {}
        if not payment.get("id"):
            raise ChargeError("Payment processor returned no payment")

        money = payment.get("amount_money") or {}
        logger.info(
            "Square payment created",
            payment_id=payment["id"],
            status=payment.get("status"),
        )
        return ChargeResult(
            transaction_id=payment["id"],
            status=payment.get("status", ""),
            amount_minor=money.get("amount", amount_minor),
            currency=money.get("currency", currency),
            processor_order_id=payment.get("order_id"),
        )


def _error_reason(errors: List[dict], status_code: int) -> str:
    if errors:
        first = errors[0]
        return first.get("detail") or first.get("code") or "Payment processing failed"
    return f"Payment processing failed (status {status_code})"


def _error_details(errors: List[dict]) -> List[dict]:
    return [
        {
            "category": error.get("category"),
            "code": error.get("code"),
            "detail": error.get("detail"),
            "field": error.get("field"),
        }
        for error in errors
    ]
