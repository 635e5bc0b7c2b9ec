"""Tests for the database-backed rate limiter.

Verifies that the fixed-window limiter allows requests under the limit,
rejects requests that exceed it, keeps keys and scopes apart, and opens a
fresh window once the previous one has passed.
"""

from datetime import UTC, datetime, timedelta

from app.core.rate_limiter import RateLimiter
from app.models.rate_limit_counter import RateLimitCounter

T0 = datetime(2026, 6, 15, 12, 0, 5, tzinfo=UTC)


class TestRateLimiterUnit:
    def test_allows_under_limit(self, db_session):
        limiter = RateLimiter(scope="test", max_requests=3, window_seconds=60)
        assert all(limiter.is_allowed(db_session, "key1", now=T0) for _ in range(3))

    def test_rejects_over_limit(self, db_session):
        limiter = RateLimiter(scope="test", max_requests=2, window_seconds=60)
        assert limiter.is_allowed(db_session, "key1", now=T0) is True
        assert limiter.is_allowed(db_session, "key1", now=T0) is True
        assert limiter.is_allowed(db_session, "key1", now=T0) is False

    def test_separate_keys_have_separate_limits(self, db_session):
        limiter = RateLimiter(scope="test", max_requests=1, window_seconds=60)
        assert limiter.is_allowed(db_session, "key_a", now=T0) is True
        assert limiter.is_allowed(db_session, "key_b", now=T0) is True
        assert limiter.is_allowed(db_session, "key_a", now=T0) is False
        assert limiter.is_allowed(db_session, "key_b", now=T0) is False

    def test_scopes_do_not_share_counters(self, db_session):
        first = RateLimiter(scope="one", max_requests=1, window_seconds=60)
        second = RateLimiter(scope="two", max_requests=1, window_seconds=60)
        assert first.is_allowed(db_session, "key", now=T0) is True
        assert second.is_allowed(db_session, "key", now=T0) is True

    def test_limiters_share_state_through_the_database(self, db_session):
        # Two instances stand in for two service processes
        first = RateLimiter(scope="shared", max_requests=2, window_seconds=60)
        second = RateLimiter(scope="shared", max_requests=2, window_seconds=60)
        assert first.is_allowed(db_session, "key", now=T0) is True
        assert second.is_allowed(db_session, "key", now=T0) is True
        assert first.is_allowed(db_session, "key", now=T0) is False

    def test_allows_after_window_passes(self, db_session):
        limiter = RateLimiter(scope="test", max_requests=1, window_seconds=60)
        assert limiter.is_allowed(db_session, "key1", now=T0) is True
        assert limiter.is_allowed(db_session, "key1", now=T0 + timedelta(seconds=30)) is False
        assert limiter.is_allowed(db_session, "key1", now=T0 + timedelta(seconds=60)) is True

    def test_zero_limit_rejects_everything(self, db_session):
        limiter = RateLimiter(scope="test", max_requests=0, window_seconds=60)
        assert limiter.is_allowed(db_session, "key1", now=T0) is False

    def test_window_start_is_aligned(self):
        limiter = RateLimiter(scope="test", max_requests=1, window_seconds=60)
        assert limiter.window_start(T0) == datetime(2026, 6, 15, 12, 0, tzinfo=UTC)


class TestPurgeExpired:
    def test_purges_only_closed_windows(self, db_session):
        limiter = RateLimiter(scope="test", max_requests=5, window_seconds=60)
        limiter.is_allowed(db_session, "old", now=T0)
        limiter.is_allowed(db_session, "new", now=T0 + timedelta(minutes=5))

        deleted = limiter.purge_expired(db_session, now=T0 + timedelta(minutes=2))

        assert deleted == 1
        keys = [row.key for row in db_session.query(RateLimitCounter).all()]
        assert keys == ["test:new"]
