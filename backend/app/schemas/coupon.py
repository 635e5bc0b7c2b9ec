"""Coupon catalog, validation, redemption and history schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.models.coupon import CouponType, DiscountType

COUPON_CODE_PATTERN = r"^[A-Za-z0-9_-]+$"


def normalize_coupon_code(value: str) -> str:
    return value.strip().upper()


class CouponCreate(BaseModel):
    code: str = Field(min_length=3, max_length=20, pattern=COUPON_CODE_PATTERN)
    coupon_type: CouponType
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)
    minimum_amount: Decimal | None = Field(default=None, ge=0)
    max_discount: Decimal | None = Field(default=None, ge=0)
    expiry_date: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    is_active: bool = True
    description: str = Field(default="", max_length=500)

    @field_validator("code", mode="after")
    @classmethod
    def uppercase_code(cls, value: str) -> str:
        return normalize_coupon_code(value)

    @model_validator(mode="after")
    def validate_discount_rules(self) -> "CouponCreate":
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100%")
        if self.coupon_type == CouponType.MINIMUM_AMOUNT and self.minimum_amount is None:
            raise ValueError("minimum_amount is required for minimum_amount type coupons")
        return self


class CouponUpdate(BaseModel):
    """Administrative edits. ``code`` and ``used_count`` are not editable."""

    coupon_type: CouponType | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    minimum_amount: Decimal | None = Field(default=None, ge=0)
    max_discount: Decimal | None = Field(default=None, ge=0)
    expiry_date: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    description: str | None = Field(default=None, max_length=500)


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    coupon_type: str
    discount_type: str
    discount_value: Decimal
    minimum_amount: Decimal
    max_discount: Decimal | None = None
    expiry_date: datetime | None = None
    usage_limit: int | None = None
    used_count: int
    is_active: bool
    description: str
    created_at: datetime
    updated_at: datetime


class CouponValidateRequest(BaseModel):
    code: str = Field(min_length=3, max_length=20, pattern=COUPON_CODE_PATTERN)
    order_amount: Decimal = Field(gt=0, decimal_places=2)
    email: EmailStr

    @field_validator("code", mode="after")
    @classmethod
    def uppercase_code(cls, value: str) -> str:
        return normalize_coupon_code(value)


class CouponApplyRequest(CouponValidateRequest):
    order_id: str = Field(min_length=1, max_length=40)


class CouponSummary(BaseModel):
    id: UUID
    code: str
    coupon_type: str
    description: str


class DiscountDetails(BaseModel):
    discount_type: str
    value: Decimal
    amount: Decimal
    max_discount: Decimal | None = None


class OrderPricing(BaseModel):
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal


class CouponValidationResponse(BaseModel):
    success: bool = True
    message: str
    coupon: CouponSummary
    discount: DiscountDetails
    order: OrderPricing


class CouponApplyResponse(BaseModel):
    success: bool = True
    message: str
    order_id: str
    coupon_code: str
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_at: datetime
    replayed: bool = False


class CouponHistoryOrder(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_id: str
    coupon_code: str
    coupon_discount: Decimal
    original_amount: Decimal
    total_price: Decimal
    created_at: datetime


class CouponHistoryResponse(BaseModel):
    orders: list[CouponHistoryOrder]
    total_saved: Decimal
    coupons_used: int


class CouponAnalyticsEntry(BaseModel):
    """Usage analytics for a coupon."""

    code: str
    coupon_type: str
    discount_type: str
    discount_value: Decimal
    used_count: int
    usage_limit: int | None = None
    is_active: bool
    usage_percentage: float | None = None
    created_at: datetime
