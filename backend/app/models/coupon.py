"""Coupon model for storefront promotional discounts."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class CouponType(str, Enum):
    FIRST_ORDER = "first_order"
    MINIMUM_AMOUNT = "minimum_amount"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Base):
    """Coupon model for promotional discounts.

    ``used_count`` is only ever changed through the guarded increment in
    ``CouponRepository.increment_usage``.
    """

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_coupons_used_count_non_negative"),
        CheckConstraint(
            "usage_limit IS NULL OR used_count <= usage_limit",
            name="ck_coupons_used_count_within_limit",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(20), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False, default="")

    coupon_type = Column(String(20), nullable=False, index=True)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False)
    minimum_amount = Column(Numeric(12, 2), nullable=False, default=0)
    max_discount = Column(Numeric(12, 2), nullable=True)

    expiry_date = Column(DateTime(timezone=True), nullable=True, index=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
