"""Append-only timeline of status changes on a return."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class ReturnTimelineEntry(Base):
    __tablename__ = "return_timeline_entries"
    __table_args__ = (
        UniqueConstraint("return_request_id", "sequence", name="uq_return_timeline_sequence"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    return_request_id = Column(
        UUIDType, ForeignKey("returns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False)
    message = Column(String(1000), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
