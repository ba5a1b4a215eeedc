"""Sales-milestone achievements with exactly-once awarding and notification."""

from __future__ import annotations

import math
from dataclasses import dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.db.models import ArtistCard, BandAchievement, User
from aetherwave.errors import ArtistCardNotFoundError
from aetherwave.redis_client import publish_event

logger = structlog.get_logger()

MAX_FAME = 100


@dataclass(frozen=True)
class AchievementMilestone:
    type: str
    name: str
    description: str
    icon: str
    sales_required: int
    fame_boost_percent: int


# Ascending by sales_required
ACHIEVEMENT_MILESTONES: list[AchievementMilestone] = [
    AchievementMilestone(
        type="gold_record",
        name="GOLD Record!",
        description="Sold 500,000 units - Certified Gold",
        icon="gold",
        sales_required=500_000,
        fame_boost_percent=5,
    ),
    AchievementMilestone(
        type="platinum_album",
        name="Platinum Album!",
        description="Sold 2,000,000 units - Certified Platinum",
        icon="platinum",
        sales_required=2_000_000,
        fame_boost_percent=25,
    ),
    AchievementMilestone(
        type="diamond_album",
        name="Diamond Album!",
        description="Sold 10,000,000 units - Certified Diamond",
        icon="diamond",
        sales_required=10_000_000,
        fame_boost_percent=45,
    ),
]


async def _awarded_types(db: AsyncSession, card_id: int) -> set[str]:
    result = await db.execute(
        select(BandAchievement.achievement_type).where(BandAchievement.artist_card_id == card_id)
    )
    return set(result.scalars().all())


async def check_and_award_achievements(
    db: AsyncSession,
    card_id: int,
    redis: object = None,
) -> list[BandAchievement]:
    """Award every milestone the card's sales have reached and it does not yet hold.

    Each award boosts the owner's fame by ``floor(fame * boost% / 100)``,
    capped at 100. Safe to call repeatedly: the existence check skips held
    milestones, and the (card, type) unique constraint rejects a concurrent
    duplicate, which is then skipped. The caller commits.

    Returns:
        Newly created achievements (empty when nothing new was reached).
    """
    card = await db.get(ArtistCard, card_id)
    if card is None:
        raise ArtistCardNotFoundError(card_id)

    total_sales = card.total_sales
    held = await _awarded_types(db, card_id)
    awarded: list[BandAchievement] = []

    for milestone in ACHIEVEMENT_MILESTONES:
        if total_sales < milestone.sales_required or milestone.type in held:
            continue

        achievement = BandAchievement(
            artist_card_id=card.id,
            user_id=card.user_id,
            achievement_type=milestone.type,
            achievement_name=milestone.name,
            description=milestone.description,
            icon_type=milestone.icon,
            sales_required=milestone.sales_required,
            sales_at_achievement=total_sales,
            fame_boost_percent=milestone.fame_boost_percent,
        )
        try:
            async with db.begin_nested():
                db.add(achievement)
        except IntegrityError:
            logger.info("achievement_already_awarded", card_id=card_id, achievement=milestone.type)
            continue

        user = await db.get(User, card.user_id, with_for_update=True)
        fame_increase = 0
        if user is not None:
            fame_increase = math.floor(user.fame * milestone.fame_boost_percent / 100)
            user.fame = min(MAX_FAME, user.fame + fame_increase)

        awarded.append(achievement)
        logger.info(
            "achievement_awarded",
            card_id=card_id,
            user_id=card.user_id,
            achievement=milestone.type,
            sales=total_sales,
            fame_increase=fame_increase,
        )
        await publish_event(
            redis,
            "pubsub:achievement_unlocked",
            {
                "user_id": card.user_id,
                "artist_card_id": card.id,
                "band_name": card.band_name,
                "achievement_type": milestone.type,
                "achievement_name": milestone.name,
                "fame_increase": fame_increase,
            },
        )

    if awarded:
        await db.flush()
    return awarded


async def get_band_achievements(db: AsyncSession, card_id: int) -> list[BandAchievement]:
    """Achievements for one card, lowest threshold first."""
    result = await db.execute(
        select(BandAchievement)
        .where(BandAchievement.artist_card_id == card_id)
        .order_by(BandAchievement.sales_required.asc())
    )
    return list(result.scalars().all())


async def get_user_achievements(db: AsyncSession, user_id: int) -> list[BandAchievement]:
    """Achievements across all of a user's cards, oldest first."""
    result = await db.execute(
        select(BandAchievement)
        .where(BandAchievement.user_id == user_id)
        .order_by(BandAchievement.created_at.asc(), BandAchievement.id.asc())
    )
    return list(result.scalars().all())
