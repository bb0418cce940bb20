"""
Publishes order events to the RabbitMQ topic exchange
"""
import json

import pika
from pika.adapters.blocking_connection import BlockingChannel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from order_service.config import settings
from order_service.exceptions import NotificationError
from order_service.notifications.events import ROUTING_KEYS
from order_service.utils.logging import get_logger

logger = get_logger(__name__)


def declare_exchange(channel: BlockingChannel, exchange: str) -> None:
    """Declare the durable topic exchange shared by publisher and consumer"""
    channel.exchange_declare(exchange=exchange, exchange_type="topic", durable=True)


class EventPublisher:
    """Notification transport that hands order events to the broker"""

    def __init__(self, rabbitmq_url: str = None, exchange: str = None):
        self.rabbitmq_url = rabbitmq_url or settings.RABBITMQ_URL
        self.exchange = exchange or settings.RABBITMQ_EXCHANGE

    def send(self, event: dict) -> None:
        """
        Publish an order event, routed by its event type

        Raises:
            NotificationError: If the event could not be published
        """
        routing_key = ROUTING_KEYS.get(event["event_type"])
        if routing_key is None:
            raise NotificationError(f"No routing key for event type {event['event_type']}")

        try:
            self._publish(event, routing_key)
        except pika.exceptions.UnroutableError:
            raise NotificationError(f"Event {event['event_id']} could not be routed to any queue")
        except pika.exceptions.AMQPError as e:
            raise NotificationError(f"Error publishing event {event['event_id']}: {e!r}")

        logger.info(
            "Event published",
            event_type=event["event_type"],
            event_id=event["event_id"],
            routing_key=routing_key,
        )

    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.RETRY_DELAY, min=1, max=10),
        retry=retry_if_exception_type(pika.exceptions.AMQPConnectionError),
        reraise=True
    )
    def _publish(self, event: dict, routing_key: str) -> None:
        connection = pika.BlockingConnection(pika.URLParameters(self.rabbitmq_url))
        try:
            channel = connection.channel()
            declare_exchange(channel, self.exchange)
            # basic_publish raises UnroutableError/NackError once confirms are on
            channel.confirm_delivery()
            channel.basic_publish(
                exchange=self.exchange,
                routing_key=routing_key,
                body=json.dumps(event).encode("utf-8"),
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=pika.DeliveryMode.Persistent,
                    message_id=event["event_id"],
                    type=event["event_type"],
                ),
                mandatory=True,
            )
        finally:
            if connection.is_open:
                connection.close()
