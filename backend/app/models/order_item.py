"""OrderItem model: one line of an order and its return ledger."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class ItemReturnStatus(str, Enum):
    NONE = "none"
    REQUESTED = "requested"
    APPROVED = "approved"
    RETURNED = "returned"
    REFUNDED = "refunded"


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        CheckConstraint(
            "return_quantity >= 0 AND return_quantity <= quantity",
            name="ck_order_items_return_quantity_bounds",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    order_id = Column(
        UUIDType, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    size = Column(String(20), nullable=False)
    image = Column(String(500), nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)

    return_status = Column(String(20), nullable=False, default=ItemReturnStatus.NONE.value)
    return_quantity = Column(Integer, nullable=False, default=0)
