"""ReturnItem model: a sub-quantity of one order line submitted for return."""

from sqlalchemy import JSON, CheckConstraint, Column, ForeignKey, Integer, Numeric, String

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class ReturnItem(Base):
    __tablename__ = "return_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_return_items_quantity_positive"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    return_request_id = Column(
        UUIDType, ForeignKey("returns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_item_id = Column(
        UUIDType, ForeignKey("order_items.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)

    # Captured from the order line at request time
    name = Column(String(255), nullable=False)
    size = Column(String(20), nullable=False)
    image = Column(String(500), nullable=False, default="")
    price = Column(Numeric(12, 2), nullable=False)

    quantity = Column(Integer, nullable=False)
    reason = Column(String(30), nullable=False)
    reason_description = Column(String(500), nullable=True)
    images = Column(JSON, nullable=False, default=list)
