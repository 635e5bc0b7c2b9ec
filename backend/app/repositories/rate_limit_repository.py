"""Repository for shared, expiring rate-limit counters."""

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.rate_limit_counter import RateLimitCounter


class RateLimitRepository:
    def __init__(self, db: Session):
        self.db = db

    def try_increment(
        self,
        key: str,
        window_start: datetime,
        expires_at: datetime,
        max_count: int,
    ) -> bool:
        """Count one hit against ``key`` in the given window if under ``max_count``.

        The first hit inserts the window row; later hits use a guarded
        ``UPDATE``. Commits.
        """
        updated = (
            self.db.query(RateLimitCounter)
            .filter(
                RateLimitCounter.key == key,
                RateLimitCounter.window_start == window_start,
                RateLimitCounter.count < max_count,
            )
            .update(
                {RateLimitCounter.count: RateLimitCounter.count + 1},
                synchronize_session=False,
            )
        )
        if updated:
            self.db.commit()
            return True

        exists = (
            self.db.query(RateLimitCounter.id)
            .filter(RateLimitCounter.key == key, RateLimitCounter.window_start == window_start)
            .first()
        )
        if exists is not None or max_count <= 0:
            self.db.rollback()
            return False

        self.db.add(
            RateLimitCounter(
                key=key, window_start=window_start, expires_at=expires_at, count=1
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # Another instance opened the window first; retry against its row.
            self.db.rollback()
            return self.try_increment(key, window_start, expires_at, max_count)
        return True

    def delete_expired(self, now: datetime) -> int:
        count = (
            self.db.query(RateLimitCounter)
            .filter(RateLimitCounter.expires_at < now)
            .delete()
        )
        self.db.commit()
        return int(count)
