"""Return repository for data access."""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.return_request import ReturnRequest, ReturnStatus
from app.models.return_timeline_entry import ReturnTimelineEntry


class ReturnRepository:
    """Repository for ReturnRequest and its timeline."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, return_request_id: UUID) -> ReturnRequest | None:
        return self.db.query(ReturnRequest).filter(ReturnRequest.id == return_request_id).first()

    def get_by_return_id(self, return_id: str) -> ReturnRequest | None:
        """Get a return by its human-readable ``RET-...`` identifier."""
        return self.db.query(ReturnRequest).filter(ReturnRequest.return_id == return_id).first()

    def get_by_customer_id(self, customer_id: UUID) -> list[ReturnRequest]:
        return (
            self.db.query(ReturnRequest)
            .filter(ReturnRequest.customer_id == customer_id)
            .order_by(ReturnRequest.created_at.desc())
            .all()
        )

    def get_by_order_id(self, order_id: UUID) -> list[ReturnRequest]:
        return (
            self.db.query(ReturnRequest)
            .filter(ReturnRequest.order_id == order_id)
            .order_by(ReturnRequest.created_at.asc())
            .all()
        )

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        status: ReturnStatus | None = None,
    ) -> list[ReturnRequest]:
        query = self.db.query(ReturnRequest)
        if status:
            query = query.filter(ReturnRequest.status == status.value)
        return query.order_by(ReturnRequest.created_at.desc()).offset(skip).limit(limit).all()

    def add(self, return_request: ReturnRequest) -> ReturnRequest:
        """Stage a new return with its items and seed timeline. Does not commit."""
        self.db.add(return_request)
        self.db.flush()
        return return_request

    def append_timeline(
        self, return_request: ReturnRequest, status: str, message: str, timestamp: datetime
    ) -> ReturnTimelineEntry:
        """Append the next timeline entry. Does not commit."""
        entry = ReturnTimelineEntry(
            sequence=len(return_request.timeline) + 1,
            status=status,
            message=message,
            timestamp=timestamp,
        )
        return_request.timeline.append(entry)
        return entry

    def sum_refunds_for_order(self, order_id: UUID, statuses: Iterable[ReturnStatus]) -> Decimal:
        """Sum of effective refund amounts over the order's returns in ``statuses``."""
        total = (
            self.db.query(
                func.coalesce(
                    func.sum(
                        func.coalesce(ReturnRequest.refund_amount, ReturnRequest.return_amount)
                    ),
                    0,
                )
            )
            .filter(
                ReturnRequest.order_id == order_id,
                ReturnRequest.status.in_([s.value for s in statuses]),
            )
            .scalar()
        )
        return Decimal(str(total or 0))
