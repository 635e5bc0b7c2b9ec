"""Expiring fixed-window counters shared by every service instance."""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class RateLimitCounter(Base):
    __tablename__ = "rate_limit_counters"
    __table_args__ = (
        UniqueConstraint("key", "window_start", name="uq_rate_limit_counters_key_window"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    key = Column(String(320), nullable=False, index=True)
    window_start = Column(DateTime(timezone=True), nullable=False)
    count = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
