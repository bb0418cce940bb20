"""Best-effort notification dispatch for order lifecycle events.

The dispatcher never raises into the caller. Delivery is handed to a
``schedule`` callable (FastAPI's ``BackgroundTasks.add_task`` in the API) so it
runs after the response is sent; delivery failures are logged and dropped.
"""

from typing import Callable, Optional, Protocol

from order_service.notifications.events import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    PAYMENT_RECONCILIATION_REQUIRED,
    build_event,
)
from order_service.schemas.order import OrderResponse
from order_service.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationTransport(Protocol):
    def send(self, event: dict) -> None: ...


class DisabledTransport:
    """Transport used when notifications are switched off"""

    def send(self, event: dict) -> None:
        logger.debug("Notifications disabled, dropping event", event_type=event["event_type"])


def run_now(func: Callable, *args) -> None:
    func(*args)


class NotificationDispatcher:
    """Dispatches order events to a notification transport"""

    def __init__(self, transport: NotificationTransport, schedule: Optional[Callable[..., None]] = None):
        self.transport = transport
        self.schedule = schedule or run_now

    def order_created(self, order: OrderResponse) -> None:
        self._dispatch(ORDER_CREATED, {"order": _order_payload(order)})

    def order_status_changed(self, order: OrderResponse, previous_status: str) -> None:
        self._dispatch(
            ORDER_STATUS_CHANGED,
            {"order": _order_payload(order), "previous_status": previous_status},
        )

    def payment_reconciliation_required(self, details: dict) -> None:
        # Sent inline: background tasks of a failed request never run
        self._dispatch(PAYMENT_RECONCILIATION_REQUIRED, details, schedule=run_now)

    def _dispatch(self, event_type: str, data: dict, schedule: Optional[Callable[..., None]] = None) -> None:
        # Build the event now; ORM state is gone once the request ends
        event = build_event(event_type, data)
        try:
            (schedule or self.schedule)(self.deliver, event)
        except Exception:
            logger.exception("Failed to schedule notification", event_type=event_type, event_id=event["event_id"])

    def deliver(self, event: dict) -> bool:
        """Send one event; returns False instead of raising on failure"""
        try:
            self.transport.send(event)
        except Exception as e:
            logger.warning(
                "Notification delivery failed",
                event_type=event["event_type"],
                event_id=event["event_id"],
                error=str(e),
            )
            return False
        return True


def _order_payload(order: OrderResponse) -> dict:
    return order.model_dump(mode="json", by_alias=True)
