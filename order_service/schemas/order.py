"""
Pydantic schemas for request/response validation

Wire format uses camelCase field names; Python code uses snake_case.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

# Largest amount the Numeric(12, 2) money columns can hold
MAX_AMOUNT = Decimal("9999999999.99")


class CamelModel(BaseModel):
    """Base schema serialized with camelCase aliases"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class CustomerInfo(CamelModel):
    """Customer contact and postal address"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("US", min_length=2, max_length=2)


class ShippingAddress(CamelModel):
    """Shipping address captured at checkout"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class OrderItemIn(CamelModel):
    """Line item submitted at checkout"""
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, le=MAX_AMOUNT, description="Unit price")
    quantity: int = Field(..., ge=1)
    description: Optional[str] = None


class CheckoutRequest(CamelModel):
    """Schema for creating a new order from a checkout"""
    customer_info: CustomerInfo
    items: List[OrderItemIn] = Field(..., min_length=1)
    payment_token: str = Field(..., min_length=1, description="Card nonce from the payment form")
    total: Decimal = Field(..., gt=0, le=MAX_AMOUNT, description="Amount to charge, in major currency units")
    idempotency_key: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
        description="Client-generated nonce identifying this checkout attempt",
    )


class OrderStatusUpdate(CamelModel):
    """Schema for updating order status"""
    status: str = Field(..., description="New order status")
    tracking_number: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class OrderItemResponse(CamelModel):
    name: str
    price: float
    quantity: int
    description: Optional[str] = None


class PaymentInfoResponse(CamelModel):
    transaction_id: str
    processor_order_id: Optional[str] = None
    amount: float
    currency: str
    payment_status: str


class OrderResponse(CamelModel):
    """Schema for order response"""
    id: str
    order_number: str
    customer_info: CustomerInfo
    shipping_address: Optional[ShippingAddress] = None
    items: List[OrderItemResponse]
    payment_info: PaymentInfoResponse
    order_status: str
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CheckoutResponse(CamelModel):
    """Schema for a successful checkout"""
    success: bool = True
    order: OrderResponse
    order_number: str
    payment_id: str
    message: str = "Payment processed and order created successfully"
    replayed: bool = False


class OrderDetailResponse(CamelModel):
    success: bool = True
    order: OrderResponse


class OrderStatusUpdateResponse(CamelModel):
    success: bool = True
    order: OrderResponse
    message: str


class OrderListResponse(CamelModel):
    """Schema for a page of orders"""
    success: bool = True
    orders: List[OrderResponse]
    total: int
    total_pages: int
    current_page: int


class CustomerOrdersResponse(CamelModel):
    success: bool = True
    orders: List[OrderResponse]
    total: int


class OrderEvent(BaseModel):
    """Envelope for order events sent to the notification channel"""
    event_type: str
    event_id: str
    event_version: str = "1.0"
    timestamp: str
    source: str = "order-service"
    data: dict
