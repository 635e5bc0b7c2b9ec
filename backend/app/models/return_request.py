"""Return model for post-purchase returns of order line items."""

from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.shared import UUIDType, generate_public_id, generate_uuid


class ReturnStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    PICKUP_SCHEDULED = "pickup_scheduled"
    ITEMS_RECEIVED = "items_received"
    ITEMS_INSPECTED = "items_inspected"
    REFUND_PROCESSED = "refund_processed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReturnReason(str, Enum):
    DEFECTIVE = "defective"
    WRONG_ITEM = "wrong_item"
    WRONG_SIZE = "wrong_size"
    NOT_AS_DESCRIBED = "not_as_described"
    DAMAGED_IN_SHIPPING = "damaged_in_shipping"
    CHANGED_MIND = "changed_mind"
    QUALITY_ISSUES = "quality_issues"
    OTHER = "other"


class ReturnMethod(str, Enum):
    PICKUP = "pickup"
    DROP_OFF = "drop_off"
    MAIL = "mail"


class RefundMethod(str, Enum):
    ORIGINAL_PAYMENT = "original_payment"
    BANK_TRANSFER = "bank_transfer"
    STORE_CREDIT = "store_credit"
    CASH = "cash"


def generate_return_id() -> str:
    return generate_public_id("RET")


class ReturnRequest(Base):
    """A customer's return of one or more line items from a single order.

    ``version`` is the optimistic concurrency token; every status transition
    bumps it, so two admins racing on the same return cannot both commit.
    """

    __tablename__ = "returns"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    return_id = Column(
        String(40), unique=True, index=True, nullable=False, default=generate_return_id
    )
    order_id = Column(
        UUIDType, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    return_reason = Column(String(30), nullable=False)
    return_description = Column(Text, nullable=True)
    return_method = Column(String(20), nullable=False, default=ReturnMethod.PICKUP.value)
    status = Column(String(30), nullable=False, default=ReturnStatus.REQUESTED.value, index=True)

    return_amount = Column(Numeric(12, 2), nullable=False, default=0)
    refund_amount = Column(Numeric(12, 2), nullable=True)
    refund_method = Column(
        String(30), nullable=False, default=RefundMethod.ORIGINAL_PAYMENT.value
    )
    pickup_address = Column(JSON, nullable=True)
    admin_notes = Column(Text, nullable=True)

    requested_at = Column(DateTime(timezone=True), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    pickup_scheduled_at = Column(DateTime(timezone=True), nullable=True)
    items_received_at = Column(DateTime(timezone=True), nullable=True)
    refund_processed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    is_within_return_window = Column(Boolean, nullable=False, default=True)
    return_window_expires_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "ReturnItem",
        order_by="ReturnItem.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    timeline = relationship(
        "ReturnTimelineEntry",
        order_by="ReturnTimelineEntry.sequence",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}
