import logging
from datetime import UTC, datetime
from typing import Any

from arq import cron
from arq.connections import RedisSettings

from app.core.config import settings
from app.core.database import SessionLocal
from app.repositories.idempotency_repository import IdempotencyRepository
from app.repositories.rate_limit_repository import RateLimitRepository

logger = logging.getLogger(__name__)

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def purge_idempotency_records_task(ctx: dict[str, Any]) -> int:
    """Background task: delete idempotency records older than the replay window.

    Runs hourly.
    """
    db = SessionLocal()
    try:
        repo = IdempotencyRepository(db)
        count = repo.delete_expired(max_age_hours=settings.IDEMPOTENCY_RECORD_MAX_AGE_HOURS)
        if count > 0:
            logger.info("Purged %d expired idempotency records", count)
        return count
    finally:
        db.close()


async def purge_rate_limit_counters_task(ctx: dict[str, Any]) -> int:
    """Background task: delete rate-limit windows that have closed.

    Runs every 5 minutes.
    """
    db = SessionLocal()
    try:
        count = RateLimitRepository(db).delete_expired(datetime.now(UTC))
        if count > 0:
            logger.info("Purged %d expired rate-limit counters", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        purge_idempotency_records_task,
        purge_rate_limit_counters_task,
    ]
    cron_jobs = [
        cron(purge_idempotency_records_task, minute={0}),  # hourly
        cron(
            purge_rate_limit_counters_task,
            minute={0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55},
        ),
    ]
    redis_settings = redis_settings
