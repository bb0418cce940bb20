"""
SQLAlchemy Order model
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from order_service.database import Base


class OrderStatus(str, enum.Enum):
    """Fulfillment state of an order"""

    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class PaymentStatus(str, enum.Enum):
    """State of the charge that paid for an order"""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


def _utcnow():
    return datetime.now(timezone.utc)


def _in_clause(enum_cls) -> str:
    return ", ".join(f"'{member.value}'" for member in enum_cls)


class Order(Base):
    """Order database model"""

    __tablename__ = "orders"

    order_number = Column(String(32), primary_key=True)
    idempotency_key = Column(String(64), unique=True, nullable=True)

    # Customer (immutable after creation)
    customer_info = Column(JSON, nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    shipping_address = Column(JSON, nullable=True)

    # Payment
    payment_id = Column(String(255), nullable=False)
    processor_order_id = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    # Fulfillment
    order_status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    tracking_number = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_amount_positive"),
        CheckConstraint(f"order_status IN ({_in_clause(OrderStatus)})", name="check_order_status_valid"),
        CheckConstraint(f"payment_status IN ({_in_clause(PaymentStatus)})", name="check_payment_status_valid"),
    )

    @property
    def id(self) -> str:
        return self.order_number

    @property
    def payment_info(self) -> dict:
        return {
            "transaction_id": self.payment_id,
            "processor_order_id": self.processor_order_id,
            "amount": self.amount,
            "currency": self.currency,
            "payment_status": self.payment_status,
        }

    def __repr__(self):
        return f"<Order(order_number='{self.order_number}', amount={self.amount}, status='{self.order_status}')>"


class OrderItem(Base):
    """Line item of an order, kept in submission order"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), ForeignKey("orders.order_number"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_item_price_non_negative"),
        CheckConstraint("quantity > 0", name="check_item_quantity_positive"),
    )

    def __repr__(self):
        return f"<OrderItem(name='{self.name}', price={self.price}, quantity={self.quantity})>"
