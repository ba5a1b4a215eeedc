"""Progression arq worker: scheduled chart recompute, credit renewal and decay.

Schedules:
- Global rankings: every 5 minutes (also recomputed after each release)
- Monthly credits: hourly; idempotent inside each 30-day window
- Activity decay: daily at 04:00 UTC
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from arq import cron
from arq.connections import RedisSettings
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.config import get_settings
from aetherwave.database import close_db, get_session_factory, init_db
from aetherwave.economy.tier_service import process_monthly_credits
from aetherwave.ranking.activity import apply_activity_decay
from aetherwave.ranking.ranking_engine import update_global_rankings

logger = logging.getLogger(__name__)


async def _get_db_session() -> AsyncSession:
    """Get a database session for the worker."""
    return get_session_factory()()


async def refresh_global_rankings(ctx: dict) -> int:
    """Recompute chart positions and the Redis chart mirror."""
    db = await _get_db_session()
    try:
        ranked = await update_global_rankings(db, ctx.get("redis"))
        logger.info("Global rankings refreshed: %d ranked", ranked)
        return ranked
    finally:
        await db.close()


async def monthly_credit_renewal(ctx: dict) -> int:
    """Grant monthly credits to paid users due for renewal."""
    db = await _get_db_session()
    try:
        renewed = await process_monthly_credits(db)
        logger.info("Monthly credits renewed for %d users", renewed)
        return renewed
    finally:
        await db.close()


async def activity_decay(ctx: dict) -> int:
    """Decay idle users' daily streams, then re-rank."""
    db = await _get_db_session()
    try:
        decayed = await apply_activity_decay(db)
        logger.info("Activity decay applied to %d users", decayed)
        if decayed:
            await update_global_rankings(db, ctx.get("redis"))
        return decayed
    finally:
        await db.close()


async def progression_startup(ctx: dict) -> None:
    """Initialize Redis + DB connections on worker startup."""
    settings = get_settings()
    await init_db(settings.database_url)

    ctx["redis"] = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    logger.info("Progression worker started")


async def progression_shutdown(ctx: dict) -> None:
    """Clean up on worker shutdown."""
    redis_client = ctx.get("redis")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Progression worker shut down")


class ProgressionWorkerSettings:
    """arq worker settings for progression batch jobs."""

    functions = [
        refresh_global_rankings,
        monthly_credit_renewal,
        activity_decay,
    ]
    cron_jobs = [
        cron(
            refresh_global_rankings,
            minute=set(range(0, 60, get_settings().rankings_refresh_interval_minutes)),
            run_at_startup=True,
        ),
        cron(monthly_credit_renewal, minute=17),
        cron(activity_decay, hour=4, minute=0),
    ]
    on_startup = progression_startup
    on_shutdown = progression_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().arq_redis_url)
    max_jobs = 3
    job_timeout = 300
