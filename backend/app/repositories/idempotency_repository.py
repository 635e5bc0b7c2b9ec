"""Persistence for Idempotency-Key claims and their recorded responses."""

from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.idempotency_record import IdempotencyRecord


class IdempotencyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_key(self, request_path: str, idempotency_key: str) -> IdempotencyRecord | None:
        return (
            self.db.query(IdempotencyRecord)
            .filter(
                IdempotencyRecord.request_path == request_path,
                IdempotencyRecord.idempotency_key == idempotency_key,
            )
            .first()
        )

    def claim(
        self,
        *,
        idempotency_key: str,
        request_method: str,
        request_path: str,
        request_fingerprint: str | None = None,
    ) -> tuple[IdempotencyRecord, bool]:
        """Return the record for this key, inserting it when nobody holds it yet.

        The boolean is True when this call created the record. A concurrent
        insert that wins the unique constraint is read back instead.
        """
        existing = self.get_by_key(request_path, idempotency_key)
        if existing is not None:
            return existing, False

        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            request_method=request_method,
            request_path=request_path,
            request_fingerprint=request_fingerprint,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.get_by_key(request_path, idempotency_key)
            if winner is None:
                raise
            return winner, False
        self.db.refresh(record)
        return record, True

    def store_response(
        self,
        record: IdempotencyRecord,
        status: int,
        body: dict[str, Any],
    ) -> IdempotencyRecord:
        record.response_status = status  # type: ignore[assignment]
        record.response_body = body  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete_expired(self, max_age_hours: int = 24) -> int:
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
        count = (
            self.db.query(IdempotencyRecord)
            .filter(IdempotencyRecord.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return int(count)
