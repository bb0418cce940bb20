"""
Schemas package
"""
from order_service.schemas.order import (
    CustomerInfo,
    ShippingAddress,
    OrderItemIn,
    CheckoutRequest,
    OrderStatusUpdate,
    OrderResponse,
    CheckoutResponse,
    OrderDetailResponse,
    OrderStatusUpdateResponse,
    OrderListResponse,
    CustomerOrdersResponse,
    OrderEvent
)

__all__ = [
    "CustomerInfo",
    "ShippingAddress",
    "OrderItemIn",
    "CheckoutRequest",
    "OrderStatusUpdate",
    "OrderResponse",
    "CheckoutResponse",
    "OrderDetailResponse",
    "OrderStatusUpdateResponse",
    "OrderListResponse",
    "CustomerOrdersResponse",
    "OrderEvent"
]
