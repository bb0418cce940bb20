"""
Email notifications for order events
"""
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import List, Optional

from order_service.config import settings
from order_service.exceptions import NotificationError
from order_service.notifications.events import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    PAYMENT_RECONCILIATION_REQUIRED,
)
from order_service.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Email:
    to: str
    subject: str
    body: str


class EmailSender:
    """Delivers emails through the configured service (console or SMTP)"""

    def __init__(self, email_service: Optional[str] = None):
        self.email_service = email_service or settings.EMAIL_SERVICE

    def send(self, email: Email) -> None:
        if self.email_service == "console":
            self._send_console(email)
        elif self.email_service == "smtp":
            self._send_smtp(email)
        else:
            raise NotificationError(f"Unknown email service: {self.email_service}")

    def _send_console(self, email: Email) -> None:
        """Log the email instead of sending it; for development"""
        logger.info("Email notification (console mode)", to=email.to, subject=email.subject, body=email.body)

    def _send_smtp(self, email: Email) -> None:
        message = EmailMessage()
        message["From"] = settings.EMAIL_FROM
        message["To"] = email.to
        message["Subject"] = email.subject
        message.set_content(email.body)

        try:
            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
                if settings.SMTP_USE_TLS:
                    smtp.starttls()
                if settings.SMTP_USERNAME:
                    smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery to {email.to} failed: {e}")

        logger.info("Email sent", to=email.to, subject=email.subject)


def _format_items(order: dict) -> str:
    return "\n".join(
        f"  - {item['name']} x{item['quantity']} @ {item['price']:.2f}"
        for item in order.get("items", [])
    )


def _customer_name(order: dict) -> str:
    customer = order.get("customerInfo", {})
    return f"{customer.get('firstName', '')} {customer.get('lastName', '')}".strip()


def order_created_emails(data: dict) -> List[Email]:
    order = data["order"]
    payment = order["paymentInfo"]
    summary = (
        f"Order Number: {order['orderNumber']}\n"
        f"Amount: {payment['amount']:.2f} {payment['currency']}\n"
        f"Items:\n{_format_items(order)}\n"
    )

    emails = [
        Email(
            to=order["customerInfo"]["email"],
            subject=f"{settings.STORE_NAME} - Order {order['orderNumber']} confirmed",
            body=(
                f"Hi {_customer_name(order)},\n\n"
                f"Thank you for your order! Your payment has been received.\n\n"
                f"{summary}\n"
                f"We will let you know when your order ships.\n\n"
                f"---\n{settings.STORE_NAME}\n"
            ),
        )
    ]
    if settings.ADMIN_EMAIL:
        emails.append(
            Email(
                to=settings.ADMIN_EMAIL,
                subject=f"New order {order['orderNumber']}",
                body=f"Customer: {_customer_name(order)} <{order['customerInfo']['email']}>\n{summary}",
            )
        )
    return emails


def order_status_changed_emails(data: dict) -> List[Email]:
    order = data["order"]
    body = (
        f"Hi {_customer_name(order)},\n\n"
        f"Your order status has been updated:\n\n"
        f"Order Number: {order['orderNumber']}\n"
        f"New Status: {order['orderStatus']}\n"
    )
    if order.get("trackingNumber"):
        body += f"Tracking Number: {order['trackingNumber']}\n"
    if order.get("notes"):
        body += f"Notes: {order['notes']}\n"
    body += f"\n---\n{settings.STORE_NAME}\n"

    return [
        Email(
            to=order["customerInfo"]["email"],
            subject=f"{settings.STORE_NAME} - Order {order['orderNumber']} is {order['orderStatus']}",
            body=body,
        )
    ]


def reconciliation_emails(data: dict) -> List[Email]:
    if not settings.ADMIN_EMAIL:
        logger.critical("No ADMIN_EMAIL configured for payment reconciliation alert", **data)
        return []

    lines = "\n".join(f"{key}: {value}" for key, value in data.items())
    return [
        Email(
            to=settings.ADMIN_EMAIL,
            subject=f"ACTION REQUIRED: payment {data.get('payment_id')} has no order record",
            body=(
                "A card was charged but the order could not be saved.\n"
                "Reconcile manually (record the order or refund the payment).\n\n"
                f"{lines}\n"
            ),
        )
    ]


RENDERERS = {
    ORDER_CREATED: order_created_emails,
    ORDER_STATUS_CHANGED: order_status_changed_emails,
    PAYMENT_RECONCILIATION_REQUIRED: reconciliation_emails,
}


class OrderEmailNotifier:
    """Turns order events into emails and sends them"""

    def __init__(self, sender: Optional[EmailSender] = None):
        self.sender = sender or EmailSender()

    def send(self, event: dict) -> None:
        """
        Send the emails for an order event

        Raises:
            NotificationError: If the event type is unknown or delivery fails
        """
        renderer = RENDERERS.get(event.get("event_type"))
        if renderer is None:
            raise NotificationError(f"Unknown event type: {event.get('event_type')}")

        try:
            emails = renderer(event.get("data", {}))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise NotificationError(f"Malformed {event['event_type']} event: {e!r}")

        for email in emails:
            self.sender.send(email)
