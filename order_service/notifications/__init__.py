"""Notification transport factory.

``get_notification_transport()`` is used as a FastAPI dependency and returns
the transport selected by ``NOTIFICATION_BACKEND``:
- ``rabbitmq``: publish events for the notification consumer
- ``email``: send emails from the API process
- ``disabled``: drop events
"""

from typing import Optional

from order_service.config import settings
from order_service.notifications.dispatcher import (
    DisabledTransport,
    NotificationDispatcher,
    NotificationTransport,
)

_current_transport: Optional[NotificationTransport] = None


def build_transport(backend: Optional[str] = None) -> NotificationTransport:
    backend = backend or settings.NOTIFICATION_BACKEND
    if backend == "rabbitmq":
        from order_service.publishers.event_publisher import EventPublisher

        return EventPublisher()
    if backend == "email":
        from order_service.notifications.email import OrderEmailNotifier

        return OrderEmailNotifier()
    return DisabledTransport()


def get_notification_transport() -> NotificationTransport:
    global _current_transport
    if _current_transport is None:
        _current_transport = build_transport()
    return _current_transport


__all__ = [
    "NotificationDispatcher",
    "NotificationTransport",
    "build_transport",
    "get_notification_transport",
]
