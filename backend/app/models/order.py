"""Order model: the authoritative record for pricing and return state."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.shared import UUIDType, generate_public_id, generate_uuid


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    PARTIALLY_RETURNED = "partially_returned"
    FULLY_RETURNED = "fully_returned"


RETURNED_ORDER_STATUSES = frozenset({OrderStatus.PARTIALLY_RETURNED, OrderStatus.FULLY_RETURNED})


def generate_order_id() -> str:
    return generate_public_id("ORD")


class Order(Base):
    """Order placed at checkout.

    Pricing fields (``coupon_code``, ``coupon_discount``, ``total_price``) are
    written at most once by a coupon redemption. Return-related fields are
    only written by ``OrderAggregateSync``.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_customer_coupon_code", "customer_id", "coupon_code"),
        Index("ix_orders_customer_created_at", "customer_id", "created_at"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    order_id = Column(
        String(40), unique=True, index=True, nullable=False, default=generate_order_id
    )
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    shipping_address = Column(JSON, nullable=False, default=dict)
    payment_method = Column(String(50), nullable=False, default="Cash on Delivery")

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    shipping = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)

    original_amount = Column(Numeric(12, 2), nullable=False, default=0)
    coupon_code = Column(String(20), nullable=True, index=True)
    coupon_discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(String(30), nullable=False, default=OrderStatus.PENDING.value, index=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    is_delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    has_returns = Column(Boolean, nullable=False, default=False)
    total_return_amount = Column(Numeric(12, 2), nullable=False, default=0)
    is_return_eligible = Column(Boolean, nullable=False, default=True)
    return_window_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem",
        order_by="OrderItem.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
