"""Chart reads: the ranked list, a user's relative rank, and stat bootstrap."""

from __future__ import annotations

import random
from typing import Any

import structlog
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.db.models import User
from aetherwave.errors import UserNotFoundError
from aetherwave.ranking.activity import generate_starting_stats
from aetherwave.ranking.score_model import is_active, ranking_score

logger = structlog.get_logger()

_active_filter = or_(User.fame > 1, User.total_streams > 0, User.fanbase > 0)


async def get_user(db: AsyncSession, user_id: int) -> User:
    """Fetch a user; raises UserNotFoundError."""
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def get_charts(db: AsyncSession, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
    """Ranked users in chart order."""
    result = await db.execute(
        select(User)
        .where(User.chart_position > 0)
        .order_by(User.chart_position.asc())
        .offset(offset)
        .limit(limit)
    )
    return [
        {
            "chart_position": u.chart_position,
            "user_id": u.id,
            "display_name": u.display_name or f"Artist #{u.id}",
            "fame": u.fame,
            "total_streams": u.total_streams,
            "daily_streams": u.daily_streams,
            "fanbase": u.fanbase,
            "score": ranking_score(u),
        }
        for u in result.scalars().all()
    ]


async def get_user_rank(db: AsyncSession, user_id: int) -> dict[str, int]:
    """Rank by fame and by total streams among active users.

    Ties go to the lower user id. An inactive user has rank 0 in both.
    """
    user = await get_user(db, user_id)
    total_users = (await db.execute(select(func.count()).select_from(User).where(_active_filter))).scalar_one()

    if not is_active(user):
        return {"fame_rank": 0, "streams_rank": 0, "total_users": total_users}

    fame_ahead = select(func.count()).select_from(User).where(
        _active_filter,
        or_(User.fame > user.fame, and_(User.fame == user.fame, User.id < user.id)),
    )
    streams_ahead = select(func.count()).select_from(User).where(
        _active_filter,
        or_(
            User.total_streams > user.total_streams,
            and_(User.total_streams == user.total_streams, User.id < user.id),
        ),
    )
    return {
        "fame_rank": (await db.execute(fame_ahead)).scalar_one() + 1,
        "streams_rank": (await db.execute(streams_ahead)).scalar_one() + 1,
        "total_users": total_users,
    }


def _is_fresh(user: User) -> bool:
    return (
        user.last_activity_date is None
        and user.fame == 1
        and user.total_streams == 0
        and user.daily_streams == 0
        and user.fanbase == 0
    )


async def seed_starting_stats(db: AsyncSession, user_id: int, rng: random.Random | None = None) -> User:
    """Give a never-active user small randomized starting stats.

    No-op for users that already have stats.
    """
    user = await get_user(db, user_id)
    if not _is_fresh(user):
        return user

    stats = generate_starting_stats(rng)
    user.total_streams = stats["total_streams"]
    user.daily_streams = stats["daily_streams"]
    user.fanbase = stats["fanbase"]
    await db.commit()
    logger.info("starting_stats_seeded", user_id=user_id, **stats)
    return user
