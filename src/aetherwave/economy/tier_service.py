"""Tier upgrades, monthly credit renewal, and creator level progression."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.config import get_settings
from aetherwave.db.models import User
from aetherwave.economy.level_thresholds import compute_level
from aetherwave.economy.tiers import FAN, UNLIMITED_FREE_GENERATIONS, get_tier_config
from aetherwave.errors import InvalidTierError, UserNotFoundError
from aetherwave.redis_client import publish_event

logger = structlog.get_logger()


def _apply_level(user: User) -> None:
    level_info = compute_level(user.experience)
    user.level = level_info["title"]
    for field, granted in level_info["permissions"].items():
        setattr(user, field, granted)


async def apply_subscription_tier_benefits(
    db: AsyncSession,
    user_id: int,
    new_tier: str,
    now: datetime | None = None,
    redis: object = None,
) -> User:
    """Move a user to ``new_tier`` and lift their stats to its floors.

    Credits, fame, experience and lifetime credits earned only ever go up
    here (``max(current, floor)``), so a downgrade never takes anything
    away. Free band generations are added on top of what remains, except
    Mogul which is unlimited. The lifetime band generation count is never
    touched.

    Raises:
        InvalidTierError: before anything is changed.
        UserNotFoundError
    """
    config = get_tier_config(new_tier)
    now = now or datetime.now(timezone.utc)

    user = await db.get(User, user_id, with_for_update=True)
    if user is None:
        raise UserNotFoundError(user_id)
    old_tier = user.subscription_tier

    user.subscription_tier = config.name
    user.subscription_price = config.price
    user.credits = max(user.credits, config.initial_credits)
    user.fame = max(user.fame, config.initial_fame)
    user.experience = max(user.experience, config.initial_experience)
    user.total_credits_earned = max(user.total_credits_earned, config.initial_credits)
    if config.unlimited_generations:
        user.free_band_generations = UNLIMITED_FREE_GENERATIONS
    else:
        user.free_band_generations += config.free_generation_bonus or 0
    user.monthly_credits = config.monthly_credits
    user.last_credit_renewal = now
    _apply_level(user)
    await db.commit()

    logger.info("subscription_tier_applied", user_id=user_id, old_tier=old_tier, new_tier=config.name)
    await publish_event(
        redis,
        "pubsub:tier_upgraded",
        {"user_id": user_id, "old_tier": old_tier, "new_tier": config.name},
    )
    return user


async def process_monthly_credits(db: AsyncSession, now: datetime | None = None) -> int:
    """Grant monthly credits to paid users whose last renewal is 30+ days old.

    Re-running inside the window is a no-op: each renewal stamps
    ``last_credit_renewal`` and the age check excludes it until the next
    window.

    Returns:
        Number of users credited.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=settings.monthly_credit_interval_days)

    result = await db.execute(
        select(User)
        .where(
            User.subscription_tier != FAN,
            func.coalesce(User.last_credit_renewal, User.created_at) <= cutoff,
        )
        .with_for_update(skip_locked=True)
    )
    renewed = 0
    for user in result.scalars().all():
        try:
            config = get_tier_config(user.subscription_tier)
        except InvalidTierError:
            logger.warning("unknown_subscription_tier", user_id=user.id, tier=user.subscription_tier)
            continue
        if config.monthly_credits <= 0:
            continue
        user.credits += config.monthly_credits
        user.total_credits_earned += config.monthly_credits
        user.last_credit_renewal = now
        renewed += 1

    await db.commit()
    logger.info("monthly_credits_processed", renewed=renewed)
    return renewed


async def update_user_progression(
    db: AsyncSession,
    user_id: int,
    experience_gained: int,
    influence_gained: int,
    new_card: bool = False,
) -> User:
    """Add experience and influence, recompute the level. The caller commits."""
    user = await db.get(User, user_id, with_for_update=True)
    if user is None:
        raise UserNotFoundError(user_id)

    old_level = user.level
    user.experience += experience_gained
    user.influence += influence_gained
    if new_card:
        user.total_cards += 1
    _apply_level(user)
    await db.flush()

    if user.level != old_level:
        logger.info("level_up", user_id=user_id, old_level=old_level, new_level=user.level)
    return user
