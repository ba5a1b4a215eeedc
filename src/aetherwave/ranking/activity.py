"""Starting stats for new users and decay of idle users' daily streams."""

from __future__ import annotations

import math
import random
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.config import get_settings
from aetherwave.db.models import User

logger = structlog.get_logger()

_default_rng = random.Random()

MAX_DECAY_RATE = 0.9
DAILY_DECAY_BASE = 0.95


def generate_starting_stats(rng: random.Random | None = None) -> dict[str, int]:
    """Small randomized stats so new users are not all tied at zero."""
    rng = rng or _default_rng
    return {
        "fame": 1,
        "total_streams": math.floor(rng.random() * 100),
        "daily_streams": math.floor(rng.random() * 50),
        "chart_position": 0,
        "fanbase": math.floor(rng.random() * 25),
    }


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calculate_daily_decay(
    daily_streams: int,
    last_activity: datetime | None,
    now: datetime,
    grace_days: int = 1,
) -> int | None:
    """Decayed daily streams for an idle user, or None if no decay applies.

    Users idle for more than ``grace_days`` whole days lose daily streams at
    ``min(0.9, 0.95 ** days)``.
    """
    if last_activity is None:
        return None
    days_idle = (now - as_utc(last_activity)).days
    if days_idle <= grace_days:
        return None
    decay_rate = min(MAX_DECAY_RATE, DAILY_DECAY_BASE**days_idle)
    return math.floor(daily_streams * decay_rate)


async def apply_activity_decay(db: AsyncSession, now: datetime | None = None) -> int:
    """Decay daily streams for every idle user. Returns users changed.

    Chart positions are not touched here; the next global recompute
    reflects the lower scores.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=settings.activity_decay_grace_days + 1)

    result = await db.execute(
        select(User)
        .where(and_(User.daily_streams > 0, User.last_activity_date.is_not(None), User.last_activity_date <= cutoff))
        .with_for_update()
    )
    changed = 0
    for user in result.scalars().all():
        decayed = calculate_daily_decay(
            user.daily_streams, user.last_activity_date, now, settings.activity_decay_grace_days
        )
        if decayed is not None and decayed != user.daily_streams:
            user.daily_streams = decayed
            changed += 1

    await db.commit()
    logger.info("activity_decay_applied", users=changed)
    return changed
