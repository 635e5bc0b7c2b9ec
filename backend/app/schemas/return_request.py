"""Return request, transition and eligibility schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.return_request import RefundMethod, ReturnMethod, ReturnReason, ReturnStatus


class PickupAddress(BaseModel):
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    contact_phone: str | None = Field(default=None, max_length=50)


class ReturnItemCreate(BaseModel):
    order_item_id: UUID
    quantity: int = Field(gt=0)
    reason: ReturnReason
    reason_description: str | None = Field(default=None, max_length=500)
    images: list[str] = Field(default_factory=list)


class ReturnCreate(BaseModel):
    order_id: UUID
    customer_id: UUID
    items: list[ReturnItemCreate] = Field(min_length=1)
    return_reason: ReturnReason
    return_description: str | None = Field(default=None, max_length=1000)
    return_method: ReturnMethod = ReturnMethod.PICKUP
    refund_method: RefundMethod = RefundMethod.ORIGINAL_PAYMENT
    pickup_address: PickupAddress | None = None


class ReturnStatusUpdate(BaseModel):
    status: ReturnStatus
    admin_notes: str | None = Field(default=None, max_length=1000)
    refund_amount: Decimal | None = Field(default=None, ge=0)


class ReturnItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_item_id: UUID
    name: str
    size: str
    image: str
    price: Decimal
    quantity: int
    reason: str
    reason_description: str | None = None
    images: list[str]


class TimelineEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    message: str
    timestamp: datetime


class ReturnResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    return_id: str
    order_id: UUID
    customer_id: UUID
    items: list[ReturnItemResponse]
    return_reason: str
    return_description: str | None = None
    return_method: str
    status: str
    return_amount: Decimal
    refund_amount: Decimal | None = None
    refund_method: str
    pickup_address: dict[str, str | None] | None = None
    admin_notes: str | None = None
    timeline: list[TimelineEntryResponse]
    requested_at: datetime
    approved_at: datetime | None = None
    pickup_scheduled_at: datetime | None = None
    items_received_at: datetime | None = None
    refund_processed_at: datetime | None = None
    completed_at: datetime | None = None
    is_within_return_window: bool
    return_window_expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class OrderLineAvailability(BaseModel):
    order_item_id: UUID
    name: str
    size: str
    image: str
    price: Decimal
    quantity: int
    return_quantity: int
    return_status: str
    available_for_return: int


class ReturnEligibilityResponse(BaseModel):
    is_eligible: bool
    within_return_window: bool
    returnable_items: list[OrderLineAvailability]
    items: list[OrderLineAvailability]
    return_window_expires_at: datetime | None = None
    delivered_at: datetime | None = None
    order_status: str
    order_delivered: bool
    reasons: list[str]
