"""Fixed-window rate limiter backed by the shared database.

Counters live in ``rate_limit_counters`` rather than process memory, so every
service instance sees the same attempts for a given key, and rows expire with
their window.
"""

from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.repositories.rate_limit_repository import RateLimitRepository


class RateLimiter:
    """Database-backed fixed-window rate limiter keyed by an arbitrary string.

    ``scope`` namespaces keys so independent limiters can share the table.
    """

    def __init__(self, scope: str, max_requests: int, window_seconds: int = 60):
        self.scope = scope
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def window_start(self, now: datetime) -> datetime:
        epoch = int(now.timestamp())
        return datetime.fromtimestamp(epoch - epoch % self.window_seconds, tz=UTC)

    def is_allowed(self, db: Session, key: str, now: datetime | None = None) -> bool:
        """Return True if the request is within the rate limit, False otherwise."""
        now = now or datetime.now(UTC)
        start = self.window_start(now)
        return RateLimitRepository(db).try_increment(
            key=f"{self.scope}:{key}",
            window_start=start,
            expires_at=start + timedelta(seconds=self.window_seconds),
            max_count=self.max_requests,
        )

    def purge_expired(self, db: Session, now: datetime | None = None) -> int:
        return RateLimitRepository(db).delete_expired(now or datetime.now(UTC))
