"""
Order event types and envelope
"""
import uuid
from datetime import datetime, timezone

from order_service.config import settings
from order_service.schemas.order import OrderEvent

ORDER_CREATED = "OrderCreated"
ORDER_STATUS_CHANGED = "OrderStatusChanged"
PAYMENT_RECONCILIATION_REQUIRED = "PaymentReconciliationRequired"

ROUTING_KEYS = {
    ORDER_CREATED: "order.created",
    ORDER_STATUS_CHANGED: "order.status.changed",
    PAYMENT_RECONCILIATION_REQUIRED: "order.reconciliation.required",
}


def build_event(event_type: str, data: dict) -> dict:
    """Wrap event data in the envelope shared by publisher and consumer"""
    return OrderEvent(
        event_type=event_type,
        event_id=str(uuid.uuid4()),
        timestamp=datetime.now(timezone.utc).isoformat(),
        source=settings.SERVICE_NAME,
        data=data,
    ).model_dump()
