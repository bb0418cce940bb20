"""
Notification worker: consumes order events from RabbitMQ and sends the emails
"""
import json
import sys
from typing import Optional

import pika

from order_service.config import settings
from order_service.exceptions import NotificationError
from order_service.notifications.email import OrderEmailNotifier
from order_service.notifications.events import ROUTING_KEYS
from order_service.publishers.event_publisher import declare_exchange
from order_service.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

PREFETCH_COUNT = 5


def handle_message(body: bytes, notifier: Optional[OrderEmailNotifier] = None) -> bool:
    """
    Process one order event

    Returns:
        True if the notification was sent
    """
    try:
        event = json.loads(body)
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in order event", error=str(e))
        return False

    if not isinstance(event, dict):
        logger.error("Order event is not a JSON object", body_type=type(event).__name__)
        return False

    log = logger.bind(event_type=event.get("event_type"), event_id=event.get("event_id"))
    log.info("Received event")

    try:
        (notifier or OrderEmailNotifier()).send(event)
    except NotificationError as e:
        log.error("Event processing failed", error=str(e))
        return False

    log.info("Event processed")
    return True


def callback(ch, method, properties, body):
    """Ack handled events; failed ones are dropped, not requeued"""
    try:
        handled = handle_message(body)
    except Exception:
        logger.exception("Unexpected error processing order event", delivery_tag=method.delivery_tag)
        handled = False

    if handled:
        ch.basic_ack(delivery_tag=method.delivery_tag)
    else:
        ch.basic_nack(delivery_tag=method.delivery_tag, requeue=False)


def bind_queue(channel) -> None:
    """Declare the notification queue and bind it to every order routing key"""
    declare_exchange(channel, settings.RABBITMQ_EXCHANGE)
    channel.queue_declare(queue=settings.RABBITMQ_QUEUE, durable=True)
    for routing_key in ROUTING_KEYS.values():
        channel.queue_bind(
            queue=settings.RABBITMQ_QUEUE,
            exchange=settings.RABBITMQ_EXCHANGE,
            routing_key=routing_key,
        )
        logger.info("Queue bound", queue=settings.RABBITMQ_QUEUE, routing_key=routing_key)


def start_consumer():
    """Run the worker until interrupted"""
    configure_logging(settings.LOG_LEVEL)
    connection = None

    try:
        logger.info("Connecting to RabbitMQ", url=settings.RABBITMQ_URL)
        connection = pika.BlockingConnection(pika.URLParameters(settings.RABBITMQ_URL))
        channel = connection.channel()
        bind_queue(channel)

        channel.basic_qos(prefetch_count=PREFETCH_COUNT)
        channel.basic_consume(queue=settings.RABBITMQ_QUEUE, on_message_callback=callback)

        logger.info("Notification consumer started", queue=settings.RABBITMQ_QUEUE)
        channel.start_consuming()
    except KeyboardInterrupt:
        logger.info("Consumer stopped")
        if connection is not None and connection.is_open:
            connection.close()
        sys.exit(0)
    except pika.exceptions.AMQPError as e:
        logger.error("Consumer failed", error=repr(e))
        sys.exit(1)


if __name__ == "__main__":
    start_consumer()
