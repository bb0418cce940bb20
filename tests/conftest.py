import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYMENT_GATEWAY"] = "fake"
os.environ["NOTIFICATION_BACKEND"] = "disabled"
os.environ["EMAIL_SERVICE"] = "console"
os.environ["STATUS_TRANSITION_POLICY"] = "forward"
os.environ["VERIFY_CART_TOTAL"] = "false"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from order_service import models  # noqa: F401
from order_service.database import Base, SessionLocal, engine
from order_service.exceptions import NotificationError
from order_service.main import app
from order_service.models.order import Order, OrderItem
from order_service.notifications import NotificationDispatcher, get_notification_transport
from order_service.payments import get_payment_gateway
from order_service.payments.fake import FakeGateway
from order_service.schemas.order import CheckoutRequest
from order_service.services.order_service import OrderService


class RecordingTransport:
    """Notification transport that keeps events in memory"""

    def __init__(self):
        self.events = []
        self.fail = False

    def send(self, event):
        if self.fail:
            raise NotificationError("transport down")
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if e["event_type"] == event_type]


def checkout_payload(**overrides):
    payload = {
        "customerInfo": {
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane@example.com",
            "phone": "555-0100",
            "address": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zipCode": "62701",
        },
        "items": [{"name": "Widget", "price": 9.99, "quantity": 2}],
        "paymentToken": "tok_ok",
        "total": 19.98,
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def dispatcher(transport):
    return NotificationDispatcher(transport)


@pytest.fixture
def service(db, gateway, dispatcher):
    return OrderService(db, gateway=gateway, dispatcher=dispatcher)


@pytest.fixture
def make_payload():
    return checkout_payload


@pytest.fixture
def make_request():
    def _make(**overrides):
        return CheckoutRequest.model_validate(checkout_payload(**overrides))

    return _make


@pytest.fixture
def order_factory(db):
    """Insert orders directly, bypassing payment"""
    counter = {"n": 0}
    base_time = datetime(2020, 1, 1, tzinfo=timezone.utc)

    def _create(status="paid", email="jane@example.com", created_at=None, amount="19.98"):
        counter["n"] += 1
        n = counter["n"]
        order = Order(
            order_number=f"MHD-20200101-TEST{n:06d}",
            idempotency_key=f"key-{n}",
            customer_info={
                "first_name": "Jane",
                "last_name": "Doe",
                "email": email,
                "phone": "555-0100",
                "address": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "zip_code": "62701",
                "country": "US",
            },
            customer_email=email,
            payment_id=f"pay_{n}",
            amount=Decimal(amount),
            currency="USD",
            payment_status="paid",
            order_status=status,
            created_at=created_at or base_time + timedelta(minutes=n),
            updated_at=created_at or base_time + timedelta(minutes=n),
            items=[OrderItem(position=0, name="Widget", price=Decimal("9.99"), quantity=2)],
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _create


@pytest.fixture
def client(gateway, transport):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notification_transport] = lambda: transport
    yield TestClient(app)
    app.dependency_overrides.clear()
