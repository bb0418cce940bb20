"""
Order Repository - Data Access Layer
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.exceptions import DuplicateOrderError, OrderNotFoundError, PersistenceError
from order_service.models.order import Order


class OrderRepository:
    """Repository for Order persistence"""

    # Fields that may change after an order is created
    MUTABLE_FIELDS = frozenset({"order_status", "tracking_number", "notes"})

    def __init__(self, db: Session):
        self.db = db

    def _newest_first(self, query):
        return query.order_by(desc(Order.created_at), desc(Order.order_number))

    def create(self, order: Order) -> Order:
        """
        Insert a new order

        Args:
            order: Unsaved order with its items attached

        Returns:
            Stored order

        Raises:
            DuplicateOrderError: If the order number or idempotency key exists
            PersistenceError: If the write fails for any other reason
        """
        if self.find(order.order_number) is not None:
            raise DuplicateOrderError(f"Order {order.order_number} already exists")

        self.db.add(order)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateOrderError(f"Order {order.order_number} violates a unique constraint: {e.orig}")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to store order {order.order_number}: {e}")

        self.db.refresh(order)
        return order

    def find(self, order_number: str) -> Optional[Order]:
        """Get order by order number, or None"""
        return self.db.query(Order).filter(Order.order_number == order_number).first()

    def get(self, order_number: str) -> Order:
        """Get order by order number"""
        order = self.find(order_number)
        if not order:
            raise OrderNotFoundError(order_number)
        return order

    def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Order]:
        """Get the order paid by the charge with this idempotency key"""
        return self.db.query(Order).filter(Order.idempotency_key == idempotency_key).first()

    def get_by_customer_email(self, email: str) -> List[Order]:
        """Get orders by customer email"""
        return self._newest_first(
            self.db.query(Order).filter(Order.customer_email == email)
        ).all()

    def update(self, order_number: str, patch: dict) -> Order:
        """
        Merge the supplied fields into an existing order

        ``updated_at`` is always refreshed here, whatever the patch contains.

        Raises:
            OrderNotFoundError: If the order does not exist
            ValueError: If the patch touches an immutable field
        """
        immutable = set(patch) - self.MUTABLE_FIELDS
        if immutable:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(immutable))}")

        order = self.get(order_number)
        for field, value in patch.items():
            setattr(order, field, value)
        order.updated_at = datetime.now(timezone.utc)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to update order {order_number}: {e}")

        self.db.refresh(order)
        return order

    def list(self, status: Optional[str] = None, skip: int = 0, limit: int = 10) -> Tuple[List[Order], int]:
        """Get a page of orders, newest first, with the total matching count"""
        query = self.db.query(Order)
        if status:
            query = query.filter(Order.order_status == status)

        total = query.count()
        orders = self._newest_first(query).offset(skip).limit(limit).all()
        return orders, total

    def count(self, status: Optional[str] = None) -> int:
        """Get total count of orders"""
        query = self.db.query(Order)
        if status:
            query = query.filter(Order.order_status == status)
        return query.count()
