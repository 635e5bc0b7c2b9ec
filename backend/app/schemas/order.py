"""Order schemas for checkout intake and admin status updates."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.order import OrderStatus
from app.schemas.customer import CustomerCreate


class ShippingAddress(BaseModel):
    address: str = Field(min_length=1, max_length=500)
    city: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)


class OrderItemCreate(BaseModel):
    product_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    size: str = Field(min_length=1, max_length=20)
    image: str = Field(default="", max_length=500)
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)


class OrderCreate(BaseModel):
    customer: CustomerCreate
    items: list[OrderItemCreate] = Field(min_length=1)
    shipping_address: ShippingAddress
    payment_method: str = Field(default="Cash on Delivery", max_length=50)
    subtotal: Decimal | None = Field(default=None, ge=0)
    shipping: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)


class OrderUpdate(BaseModel):
    status: OrderStatus | None = None
    is_paid: bool | None = None
    paid_at: datetime | None = None
    is_delivered: bool | None = None
    delivered_at: datetime | None = None
    is_return_eligible: bool | None = None


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: str
    name: str
    size: str
    image: str
    quantity: int
    price: Decimal
    return_status: str
    return_quantity: int


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: str
    customer_id: UUID
    items: list[OrderItemResponse]
    shipping_address: dict[str, str]
    payment_method: str
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    original_amount: Decimal
    coupon_code: str | None = None
    coupon_discount: Decimal
    total_price: Decimal
    status: str
    is_paid: bool
    paid_at: datetime | None = None
    is_delivered: bool
    delivered_at: datetime | None = None
    has_returns: bool
    total_return_amount: Decimal
    is_return_eligible: bool
    return_window_expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
