"""
Order API endpoints
"""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query, Response, status
from sqlalchemy.orm import Session

from order_service.database import get_db
from order_service.notifications import (
    NotificationDispatcher,
    NotificationTransport,
    get_notification_transport,
)
from order_service.payments import get_payment_gateway
from order_service.payments.gateway import PaymentGateway
from order_service.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    CustomerOrdersResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderStatusUpdate,
    OrderStatusUpdateResponse,
)
from order_service.services.order_service import OrderService

router = APIRouter(prefix="/api", tags=["orders"])


def get_order_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    transport: NotificationTransport = Depends(get_notification_transport),
) -> OrderService:
    """Dependency to get OrderService instance"""
    dispatcher = NotificationDispatcher(transport, schedule=background_tasks.add_task)
    return OrderService(db, gateway=gateway, dispatcher=dispatcher)


@router.post(
    "/orders",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay for and create an order",
)
@router.post(
    "/process-payment",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay for and create an order",
)
async def create_order(
    order_data: CheckoutRequest,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    service: OrderService = Depends(get_order_service)
):
    """
    Charge the customer's card and record the order

    Process:
    1. Validate the request
    2. Charge the card with the payment processor
    3. Save the order with status `paid`
    4. Send confirmation notifications in the background

    Resubmitting with the same `idempotencyKey` (or `Idempotency-Key` header)
    returns the original order with status 200 and does not charge again.
    """
    if idempotency_key and not order_data.idempotency_key:
        order_data = order_data.model_copy(update={"idempotency_key": idempotency_key})

    result = await service.create_order(order_data)
    if result.replayed:
        response.status_code = status.HTTP_200_OK
    return result


@router.get("/orders", response_model=OrderListResponse, summary="Get orders")
def get_orders(
    order_status: Optional[str] = Query(None, alias="status", description="Filter by order status"),
    page: Optional[str] = Query(None, description="Page number, starting at 1 (default: 1)"),
    limit: Optional[str] = Query(None, description="Orders per page (default: 10, max: 100)"),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve orders, newest first, with pagination

    Invalid `page` or `limit` values fall back to the defaults.
    """
    return service.list_orders(status=order_status, page=page, limit=limit)


@router.get("/orders/customer/{email}", response_model=CustomerOrdersResponse, summary="Get orders by customer")
def get_orders_by_customer(
    email: str,
    service: OrderService = Depends(get_order_service)
):
    """
    Get all orders for a specific customer

    - **email**: Customer email address
    """
    return service.get_orders_by_customer(email)


@router.get("/orders/{order_id}", response_model=OrderDetailResponse, summary="Get order by order number")
def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve a specific order

    - **order_id**: Order number
    """
    return OrderDetailResponse(order=service.get_order(order_id))


@router.patch("/orders/{order_id}/status", response_model=OrderStatusUpdateResponse, summary="Update order status")
def update_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service)
):
    """
    Update order status

    - **order_id**: Order number
    - **status**: pending, paid, processing, fulfilled, shipped, delivered or cancelled
    - **trackingNumber**, **notes**: optional, kept when omitted
    """
    return service.update_order_status(
        order_id,
        status_data.status,
        tracking_number=status_data.tracking_number,
        notes=status_data.notes,
    )
