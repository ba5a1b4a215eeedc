"""Ranking engine: how a release moves a user's chart stats, and the global chart.

calculate_ranking_update is pure apart from the injected RNG. Draw order is
fixed (viral roll, market response, chart movement) so a seeded or stubbed
generator reproduces an update exactly.
"""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

import structlog
from redis.exceptions import LockError
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.config import get_settings
from aetherwave.db.models import User
from aetherwave.errors import UserNotFoundError
from aetherwave.ranking.score_model import chart_sort_key, ranking_score

logger = structlog.get_logger()

MIN_FAME = 1
MAX_FAME = 100
CHART_FLOOR = 100

VIRAL_CHANCE_HIGH_QUALITY = 0.05
VIRAL_CHANCE_DEFAULT = 0.01
VIRAL_REASON = "Viral hit! 🔥"

CHARTS_KEY = "leaderboard:charts"
RANKINGS_LOCK_KEY = "lock:global_rankings"

_default_rng = random.Random()

# Single writer for chart recomputation within this process.
_rankings_lock = asyncio.Lock()


@dataclass(frozen=True)
class RankingUpdate:
    """Signed stat deltas produced by one release."""

    fame_change: int
    daily_streams_change: int
    total_streams_change: int
    chart_position_change: int
    fanbase_change: int
    reason: str
    viral: bool = False

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def _reason_for_quality(music_quality: float) -> str:
    if music_quality > 0.7:
        return "High-quality release"
    if music_quality > 0.4:
        return "Average release"
    return "Poor reception"


def calculate_ranking_update(
    music_quality: float,
    release_impact: int,
    rng: random.Random | None = None,
) -> RankingUpdate:
    """Compute the stat deltas for a release of the given quality.

    Args:
        music_quality: Analysis score in [0, 1].
        release_impact: The release's 0-100 impact score. Carried for the
            caller's context; the deltas depend on quality and the market
            rolls only.
        rng: Random source. Defaults to a module-level generator.

    Returns:
        A RankingUpdate with signed deltas.
    """
    rng = rng or _default_rng

    base_streams_growth = math.floor((music_quality - 0.3) * 5000)
    base_fans_growth = math.floor((music_quality - 0.4) * 1000)

    viral_roll = rng.random()
    market_response = 0.5 + rng.random() * 0.5

    daily_streams_change = math.floor(base_streams_growth * market_response)
    total_streams_change = daily_streams_change * 7
    fanbase_change = math.floor(base_fans_growth * market_response)
    reason = _reason_for_quality(music_quality)

    viral_chance = VIRAL_CHANCE_HIGH_QUALITY if music_quality > 0.7 else VIRAL_CHANCE_DEFAULT
    viral = viral_roll < viral_chance
    if viral:
        daily_streams_change *= 5
        total_streams_change *= 3
        fanbase_change *= 3
        reason = VIRAL_REASON

    fame_change = 0
    if daily_streams_change > 5000:
        fame_change += 5
    if fanbase_change > 500:
        fame_change += 3
    if music_quality > 0.8:
        fame_change += 4
    if music_quality < 0.3:
        fame_change -= 2

    # Negative change means moving up the chart.
    chart_position_change = 0
    momentum = (daily_streams_change + fanbase_change) / 1000
    if momentum > 10:
        chart_position_change = -math.floor(rng.random() * 20 + 10)
    elif momentum < -5:
        chart_position_change = math.floor(rng.random() * 15 + 5)

    return RankingUpdate(
        fame_change=fame_change,
        daily_streams_change=daily_streams_change,
        total_streams_change=total_streams_change,
        chart_position_change=chart_position_change,
        fanbase_change=fanbase_change,
        reason=reason,
        viral=viral,
    )


def clamp_fame(fame: int) -> int:
    return max(MIN_FAME, min(MAX_FAME, fame))


def project_chart_position(current: int, change: int) -> int:
    """Provisional chart position after a release, before the global recompute."""
    if current == 0:
        if change < 0:
            return min(CHART_FLOOR, CHART_FLOOR + change)
        return 0
    return max(0, min(CHART_FLOOR, current + change))


async def get_user_for_update(db: AsyncSession, user_id: int) -> User:
    """Load a user row with a row lock; raises UserNotFoundError."""
    result = await db.execute(select(User).where(User.id == user_id).with_for_update())
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def apply_ranking_update(
    db: AsyncSession,
    user_id: int,
    ranking_update: RankingUpdate,
    now: datetime | None = None,
) -> User:
    """Apply a RankingUpdate to a user's stats.

    Fame is clamped to [1, 100]; streams and fanbase are floored at 0. The
    chart estimate goes to ``projected_chart_position``; ``chart_position``
    itself is only written by update_global_rankings.
    """
    now = now or datetime.now(timezone.utc)
    user = await get_user_for_update(db, user_id)

    user.fame = clamp_fame(user.fame + ranking_update.fame_change)
    user.total_streams = max(0, user.total_streams + ranking_update.total_streams_change)
    user.daily_streams = max(0, user.daily_streams + ranking_update.daily_streams_change)
    user.fanbase = max(0, user.fanbase + ranking_update.fanbase_change)
    user.projected_chart_position = project_chart_position(
        user.chart_position, ranking_update.chart_position_change
    )
    user.last_activity_date = now
    await db.flush()

    logger.info(
        "ranking_update_applied",
        user_id=user_id,
        fame=user.fame,
        fame_change=ranking_update.fame_change,
        reason=ranking_update.reason,
    )
    return user


# ---------------------------------------------------------------------------
# Global chart
# ---------------------------------------------------------------------------


async def update_global_rankings(
    db: AsyncSession,
    redis: object = None,
    chart_size: int | None = None,
) -> int:
    """Recompute every chart position from ranking scores.

    Serialized per process by an asyncio lock and across processes by a Redis
    lock when a client is given. Clearing and reassignment commit in one
    transaction, so readers never see two users sharing a position. Ties on
    score go to the lower user id.

    Returns:
        Number of users placed on the chart.
    """
    settings = get_settings()
    size = chart_size or settings.chart_size

    async with _rankings_lock:
        if redis is None:
            return await _recompute_chart(db, None, size)
        lock = redis.lock(  # type: ignore[attr-defined]
            RANKINGS_LOCK_KEY,
            timeout=settings.rankings_lock_timeout_seconds,
            blocking_timeout=settings.rankings_lock_timeout_seconds,
        )
        if not await lock.acquire():
            logger.warning("rankings_lock_unavailable", key=RANKINGS_LOCK_KEY)
            return 0
        try:
            return await _recompute_chart(db, redis, size)
        finally:
            try:
                await lock.release()
            except LockError:
                # Expired mid-run; the chart is already committed.
                logger.warning("rankings_lock_expired", key=RANKINGS_LOCK_KEY)


async def _recompute_chart(db: AsyncSession, redis: object, size: int) -> int:
    result = await db.execute(
        select(User).where(or_(User.fame > 1, User.total_streams > 0, User.fanbase > 0))
    )
    active = list(result.scalars().all())
    ranked = sorted(active, key=lambda u: chart_sort_key(u.id, u))[:size]

    await db.execute(
        update(User)
        .where(or_(User.chart_position != 0, User.projected_chart_position.is_not(None)))
        .values(chart_position=0, projected_chart_position=None)
        .execution_options(synchronize_session="fetch")
    )
    # Flush the clear before assigning so the partial unique index never sees a duplicate.
    await db.flush()
    for position, user in enumerate(ranked, start=1):
        user.chart_position = position
    await db.commit()

    logger.info("global_rankings_updated", active_users=len(active), ranked=len(ranked))

    if redis is not None:
        await _mirror_chart(redis, ranked)
    return len(ranked)


async def _mirror_chart(redis: object, ranked: list[User]) -> None:
    """Rebuild the Redis sorted set that mirrors the chart."""
    try:
        pipe = redis.pipeline()  # type: ignore[attr-defined]
        pipe.delete(CHARTS_KEY)
        if ranked:
            pipe.zadd(CHARTS_KEY, {str(u.id): ranking_score(u) for u in ranked})
        await pipe.execute()
    except Exception:
        logger.warning("chart_mirror_failed", exc_info=True)
