"""Tests for worker background tasks and cron job registration."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from arq.connections import RedisSettings

from app.core import database as db_module
from app.core.config import settings
from app.models.idempotency_record import IdempotencyRecord
from app.models.rate_limit_counter import RateLimitCounter
from app.worker import (
    WorkerSettings,
    purge_idempotency_records_task,
    purge_rate_limit_counters_task,
)


class TestPurgeIdempotencyRecordsTask:
    @pytest.mark.asyncio
    async def test_deletes_only_expired_records(self, db_session):
        now = datetime.now(UTC)
        db_session.add_all(
            [
                IdempotencyRecord(
                    idempotency_key="old",
                    request_method="POST",
                    request_path="/v1/coupons/apply",
                    created_at=now - timedelta(hours=48),
                ),
                IdempotencyRecord(
                    idempotency_key="fresh",
                    request_method="POST",
                    request_path="/v1/coupons/apply",
                    created_at=now - timedelta(minutes=5),
                ),
            ]
        )
        db_session.commit()

        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            result = await purge_idempotency_records_task({})

        assert result == 1
        remaining = [r.idempotency_key for r in db_session.query(IdempotencyRecord).all()]
        assert remaining == ["fresh"]

    @pytest.mark.asyncio
    async def test_closes_session_on_exception(self):
        mock_repo = MagicMock()
        mock_repo.delete_expired.side_effect = RuntimeError("DB error")
        mock_session = MagicMock()

        with (
            patch("app.worker.SessionLocal", return_value=mock_session),
            patch("app.worker.IdempotencyRepository", return_value=mock_repo),
            pytest.raises(RuntimeError, match="DB error"),
        ):
            await purge_idempotency_records_task({})

        mock_session.close.assert_called_once()


class TestPurgeRateLimitCountersTask:
    @pytest.mark.asyncio
    async def test_deletes_closed_windows(self, db_session):
        now = datetime.now(UTC)
        db_session.add_all(
            [
                RateLimitCounter(
                    key="coupon_validation:a@example.com",
                    window_start=now - timedelta(minutes=10),
                    expires_at=now - timedelta(minutes=9),
                    count=3,
                ),
                RateLimitCounter(
                    key="coupon_validation:b@example.com",
                    window_start=now,
                    expires_at=now + timedelta(minutes=1),
                    count=1,
                ),
            ]
        )
        db_session.commit()

        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            result = await purge_rate_limit_counters_task({})

        assert result == 1
        remaining = [c.key for c in db_session.query(RateLimitCounter).all()]
        assert remaining == ["coupon_validation:b@example.com"]


class TestWorkerSettings:
    def test_functions_registered(self):
        func_names = [f.__name__ for f in WorkerSettings.functions]
        assert func_names == ["purge_idempotency_records_task", "purge_rate_limit_counters_task"]

    def test_cron_jobs_registered(self):
        cron_func_names = [job.coroutine.__name__ for job in WorkerSettings.cron_jobs]
        assert "purge_idempotency_records_task" in cron_func_names
        assert "purge_rate_limit_counters_task" in cron_func_names

    def test_rate_limit_purge_runs_every_5_minutes(self):
        job = next(
            j
            for j in WorkerSettings.cron_jobs
            if j.coroutine.__name__ == "purge_rate_limit_counters_task"
        )
        assert job.minute == {0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55}

    def test_redis_settings_follow_configured_url(self):
        expected = RedisSettings.from_dsn(settings.REDIS_URL)
        assert WorkerSettings.redis_settings.host == expected.host
        assert WorkerSettings.redis_settings.port == expected.port
