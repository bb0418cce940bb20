"""
Order Service - Business Logic Layer
"""
import math
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from order_service.config import settings
from order_service.exceptions import (
    DuplicateOrderError,
    IdempotencyConflictError,
    OrderValidationError,
    PaymentDeclinedError,
    PersistenceError,
)
from order_service.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from order_service.notifications.dispatcher import NotificationDispatcher
from order_service.payments.gateway import BillingDetails, ChargeError, ChargeResult, PaymentGateway
from order_service.repositories.order_repository import OrderRepository
from order_service.schemas.order import (
    MAX_AMOUNT,
    CheckoutRequest,
    CheckoutResponse,
    CustomerOrdersResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdateResponse,
)
from order_service.services.lifecycle import ensure_transition, parse_status
from order_service.services.order_number import generate_order_number
from order_service.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
IDEMPOTENCY_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "urn:order-service:checkout")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def to_minor_units(amount: Decimal) -> int:
    """Round a decimal amount to the nearest whole cent, as an integer"""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount_minor: int) -> Decimal:
    return (Decimal(amount_minor) / 100).quantize(CENT)


def derive_idempotency_key(client_key: Optional[str] = None) -> str:
    """
    Key sent to the processor with a charge

    A caller-supplied checkout nonce always maps to the same key, so retried
    submissions of one checkout are charged once. Without one, every attempt
    gets a fresh key.
    """
    if client_key:
        return str(uuid.uuid5(IDEMPOTENCY_NAMESPACE, client_key))
    return str(uuid.uuid4())


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_pagination(page=None, limit=None) -> Tuple[int, int]:
    """Clamp malformed or out-of-range pagination values to defaults"""
    page = _to_int(page, DEFAULT_PAGE)
    limit = _to_int(limit, DEFAULT_PAGE_SIZE)
    if page < 1:
        page = DEFAULT_PAGE
    if limit < 1:
        limit = DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)


class OrderService:
    """Service layer for the order lifecycle"""

    def __init__(self, db: Session, gateway: PaymentGateway, dispatcher: NotificationDispatcher):
        self.repository = OrderRepository(db)
        self.gateway = gateway
        self.dispatcher = dispatcher

    async def create_order(self, request: CheckoutRequest) -> CheckoutResponse:
        """
        Charge the customer and record the order

        Steps:
        1. Validate the amount (and optionally the cart total)
        2. Return the stored order if this checkout was already paid
        3. Charge the card through the payment gateway
        4. Save the order with status ``paid``
        5. Schedule the confirmation notification
        6. Return order response

        Raises:
            OrderValidationError: If the request cannot be charged; nothing happens
            PaymentDeclinedError: If the processor rejects the charge; no order is saved
            IdempotencyConflictError: If a replayed checkout asks for a different total
            PersistenceError: If the charge succeeded but the order could not be saved
        """
        amount_minor = self._validate_amount(request)
        idempotency_key = derive_idempotency_key(request.idempotency_key)

        # Step 2: Replay a checkout that was already paid
        if request.idempotency_key:
            existing = self.repository.get_by_idempotency_key(idempotency_key)
            if existing:
                if to_minor_units(existing.amount) != amount_minor:
                    logger.warning(
                        "Idempotency key reused with a different total",
                        order_number=existing.order_number,
                        charged=str(existing.amount),
                        requested=str(from_minor_units(amount_minor)),
                    )
                    raise IdempotencyConflictError(existing.order_number)
                logger.info("Replaying paid checkout", order_number=existing.order_number)
                return self._checkout_response(existing, replayed=True)

        # Step 3: Charge the card
        charge = await self._charge(request, amount_minor, idempotency_key)

        # Step 4: Save order to database
        order = self._build_order(request, charge, idempotency_key)
        try:
            order = self.repository.create(order)
        except DuplicateOrderError as e:
            existing = None
            if request.idempotency_key:
                existing = self.repository.get_by_idempotency_key(idempotency_key)
            if existing is None:
                self._escalate(order, charge, e)
                raise DuplicateOrderError(str(e), payment_id=charge.transaction_id)
            logger.info("Concurrent checkout already recorded", order_number=existing.order_number)
            return self._checkout_response(existing, replayed=True)
        except PersistenceError as e:
            self._escalate(order, charge, e)
            raise PersistenceError(str(e), payment_id=charge.transaction_id)

        logger.info(
            "Order created",
            order_number=order.order_number,
            payment_id=charge.transaction_id,
            amount=str(order.amount),
            customer_email=order.customer_email,
        )

        # Step 5: Notify (non-blocking)
        response = self._checkout_response(order)
        self.dispatcher.order_created(response.order)
        return response

    def _validate_amount(self, request: CheckoutRequest) -> int:
        if not request.payment_token.strip():
            raise OrderValidationError("Payment token is required")

        if request.total > MAX_AMOUNT:
            raise OrderValidationError(f"Total must not exceed {MAX_AMOUNT}")
        amount_minor = to_minor_units(request.total)
        if amount_minor <= 0:
            raise OrderValidationError("Total must be at least 0.01")

        if settings.VERIFY_CART_TOTAL:
            cart_total = sum(item.price * item.quantity for item in request.items)
            if cart_total > MAX_AMOUNT:
                raise OrderValidationError(f"Cart total must not exceed {MAX_AMOUNT}")
            cart_minor = to_minor_units(cart_total)
            if cart_minor != amount_minor:
                raise OrderValidationError(
                    f"Total {from_minor_units(amount_minor)} does not match cart total {from_minor_units(cart_minor)}"
                )
        return amount_minor

    async def _charge(self, request: CheckoutRequest, amount_minor: int, idempotency_key: str) -> ChargeResult:
        customer = request.customer_info
        try:
            charge = await self.gateway.charge(
                token=request.payment_token,
                amount_minor=amount_minor,
                currency=settings.CURRENCY,
                idempotency_key=idempotency_key,
                billing=BillingDetails(
                    email=customer.email,
                    first_name=customer.first_name,
                    last_name=customer.last_name,
                    address_line_1=customer.address,
                    locality=customer.city,
                    administrative_district_level_1=customer.state,
                    postal_code=customer.zip_code,
                    country=customer.country,
                ),
                note=f"{settings.STORE_NAME} - {customer.first_name} {customer.last_name}",
            )
        except ChargeError as e:
            if e.timed_out:
                # The charge may still have gone through on the processor side
                logger.warning(
                    "Payment outcome unknown, treating as declined",
                    idempotency_key=idempotency_key,
                    amount_minor=amount_minor,
                    customer_email=customer.email,
                    reason=e.reason,
                )
            else:
                logger.info("Payment declined", reason=e.reason, customer_email=customer.email)
            raise PaymentDeclinedError(e.reason, e.details)

        if not charge.completed:
            logger.warning("Payment not completed", payment_id=charge.transaction_id, status=charge.status)
            raise PaymentDeclinedError(
                f"Payment not completed (status: {charge.status})",
                [{"code": charge.status, "payment_id": charge.transaction_id}],
            )
        return charge

    def _build_order(self, request: CheckoutRequest, charge: ChargeResult, idempotency_key: str) -> Order:
        customer = request.customer_info
        return Order(
            order_number=generate_order_number(),
            idempotency_key=idempotency_key,
            customer_info=customer.model_dump(mode="json"),
            customer_email=customer.email,
            shipping_address={
                "first_name": customer.first_name,
                "last_name": customer.last_name,
                "address": customer.address,
                "city": customer.city,
                "state": customer.state,
                "zip_code": customer.zip_code,
            },
            payment_id=charge.transaction_id,
            processor_order_id=charge.processor_order_id,
            amount=from_minor_units(charge.amount_minor),
            currency=charge.currency,
            payment_status=PaymentStatus.PAID.value,
            order_status=OrderStatus.PAID.value,
            items=[
                OrderItem(
                    position=position,
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    description=item.description,
                )
                for position, item in enumerate(request.items)
            ],
        )

    def _escalate(self, order: Order, charge: ChargeResult, error: Exception) -> None:
        """Raise the alarm about a captured payment that has no order record"""
        details = {
            "payment_id": charge.transaction_id,
            "processor_order_id": charge.processor_order_id,
            "amount": str(from_minor_units(charge.amount_minor)),
            "currency": charge.currency,
            "order_number": order.order_number,
            "customer_email": order.customer_email,
            "error": str(error),
        }
        logger.critical("Payment captured but order not recorded", **details)
        self.dispatcher.payment_reconciliation_required(details)

    def _checkout_response(self, order: Order, replayed: bool = False) -> CheckoutResponse:
        return CheckoutResponse(
            order=OrderResponse.model_validate(order),
            order_number=order.order_number,
            payment_id=order.payment_id,
            replayed=replayed,
        )

    def get_order(self, order_number: str) -> OrderResponse:
        """Get order by order number"""
        return OrderResponse.model_validate(self.repository.get(order_number))

    def get_orders_by_customer(self, email: str) -> CustomerOrdersResponse:
        """Get orders by customer email"""
        orders = self.repository.get_by_customer_email(email)
        return CustomerOrdersResponse(
            orders=[OrderResponse.model_validate(o) for o in orders],
            total=len(orders),
        )

    def list_orders(self, status: Optional[str] = None, page=DEFAULT_PAGE, limit=DEFAULT_PAGE_SIZE) -> OrderListResponse:
        """Get a page of orders, newest first"""
        page, limit = normalize_pagination(page, limit)
        orders, total = self.repository.list(status=status or None, skip=(page - 1) * limit, limit=limit)

        return OrderListResponse(
            orders=[OrderResponse.model_validate(o) for o in orders],
            total=total,
            total_pages=math.ceil(total / limit),
            current_page=page,
        )

    def update_order_status(
        self,
        order_number: str,
        new_status: str,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> OrderStatusUpdateResponse:
        """
        Update order status

        Raises:
            OrderValidationError: If the status is unknown or the move is not allowed
            OrderNotFoundError: If the order does not exist
        """
        target = parse_status(new_status)
        order = self.repository.get(order_number)
        previous = OrderStatus(order.order_status)
        ensure_transition(previous, target)

        patch = {"order_status": target.value}
        if tracking_number:
            patch["tracking_number"] = tracking_number
        if notes:
            patch["notes"] = notes

        order = self.repository.update(order_number, patch)
        logger.info(
            "Order status updated",
            order_number=order_number,
            previous_status=previous.value,
            new_status=target.value,
        )

        response = OrderResponse.model_validate(order)
        # Same-status edits only touch tracking and notes; the customer was already told
        if target != previous:
            self.dispatcher.order_status_changed(response, previous.value)
        return OrderStatusUpdateResponse(
            order=response,
            message=f"Order status updated to {target.value}",
        )
