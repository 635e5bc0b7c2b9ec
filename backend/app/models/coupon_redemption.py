"""CouponRedemption model: the ledger of coupons applied to orders."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


def redemption_key(order_id: str, coupon_code: str) -> str:
    """Idempotency key for applying ``coupon_code`` to ``order_id``."""
    return f"{order_id}:{coupon_code.upper()}"


class CouponRedemption(Base):
    """One row per successful redemption.

    Unique on the order (pricing is written once) and on the customer/code pair
    (a customer redeems a given code once).
    """

    __tablename__ = "coupon_redemptions"
    __table_args__ = (
        UniqueConstraint("order_id", name="uq_coupon_redemptions_order"),
        UniqueConstraint("customer_id", "coupon_code", name="uq_coupon_redemptions_customer_code"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    idempotency_key = Column(String(80), unique=True, nullable=False)
    coupon_id = Column(
        UUIDType, ForeignKey("coupons.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    coupon_code = Column(String(20), nullable=False)
    order_id = Column(UUIDType, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    original_amount = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False)
    final_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
