"""Daily sales growth for artist cards.

Growth compounds with fame: every fame point sells a fixed number of
streams, downloads and physical copies per day, scaled by one random
market factor. A card grows at most once per rolling 24 hours.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.achievements.achievement_service import check_and_award_achievements
from aetherwave.config import get_settings
from aetherwave.db.models import ArtistCard, BandAchievement, User
from aetherwave.economy.tiers import TIER_CONFIGS
from aetherwave.errors import ArtistCardNotFoundError, OwnershipViolationError, UserNotFoundError
from aetherwave.ranking.activity import as_utc

logger = structlog.get_logger()

_default_rng = random.Random()

# (threshold, multiplier), highest first
SALES_MILESTONE_BOOSTS: list[tuple[int, float]] = [
    (10_000_000, 1.45),
    (2_000_000, 1.25),
    (500_000, 1.05),
]

STREAMS_PER_FAME = 20
DIGITAL_PER_FAME = 1
PHYSICAL_PER_FAME = 0.1


@dataclass(frozen=True)
class SalesTotals:
    physical: int
    digital: int
    streams: int

    @property
    def total(self) -> int:
        return self.physical + self.digital + self.streams


@dataclass(frozen=True)
class GrowthDeltas:
    physical_growth: int
    digital_growth: int
    stream_growth: int
    fame_growth: float


@dataclass(frozen=True)
class GrowthApplied:
    card: ArtistCard
    growth: GrowthDeltas
    achievements: list[BandAchievement] = field(default_factory=list)


@dataclass(frozen=True)
class CooldownNotElapsed:
    hours_remaining: int
    last_update: datetime


def milestone_boost(total_sales: int) -> float:
    for threshold, boost in SALES_MILESTONE_BOOSTS:
        if total_sales >= threshold:
            return boost
    return 1.0


def calculate_daily_growth(
    current_fame: int,
    sales: SalesTotals,
    tier: str,
    rng: random.Random | None = None,
) -> GrowthDeltas:
    """One day's growth for a card. Unknown tiers grow at the Fan rate."""
    rng = rng or _default_rng
    config = TIER_CONFIGS.get(tier)
    base_fame_growth = config.base_fame_growth if config else 1.0
    fame_growth = base_fame_growth * milestone_boost(sales.total)

    # One draw shared by all three channels.
    market = 0.8 + rng.random() * 0.4
    return GrowthDeltas(
        physical_growth=math.floor(current_fame * PHYSICAL_PER_FAME * market),
        digital_growth=math.floor(current_fame * DIGITAL_PER_FAME * market),
        stream_growth=math.floor(current_fame * STREAMS_PER_FAME * market),
        fame_growth=fame_growth,
    )


def hours_until_eligible(last_update: datetime, now: datetime, cooldown_hours: int = 24) -> int:
    """Whole hours (rounded up) until the next growth tick; 0 when eligible."""
    hours_since = (now - as_utc(last_update)).total_seconds() / 3600
    if hours_since >= cooldown_hours:
        return 0
    return math.ceil(cooldown_hours - hours_since)


async def apply_daily_growth(
    db: AsyncSession,
    card_id: int,
    user_id: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
    redis: object = None,
) -> GrowthApplied | CooldownNotElapsed:
    """Apply one growth tick to a card if 24 hours have passed since the last.

    The card row is locked for the check-then-update. Achievements are
    checked against the new sales totals before commit.

    Raises:
        ArtistCardNotFoundError, OwnershipViolationError, UserNotFoundError
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)

    result = await db.execute(select(ArtistCard).where(ArtistCard.id == card_id).with_for_update())
    card = result.scalar_one_or_none()
    if card is None:
        raise ArtistCardNotFoundError(card_id)
    if card.user_id != user_id:
        raise OwnershipViolationError(card_id, user_id)

    last_update = card.last_daily_update or card.created_at
    remaining = hours_until_eligible(last_update, now, settings.daily_growth_cooldown_hours)
    if remaining > 0:
        return CooldownNotElapsed(hours_remaining=remaining, last_update=as_utc(last_update))

    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    sales = SalesTotals(
        physical=card.physical_copies,
        digital=card.digital_downloads,
        streams=card.total_streams,
    )
    growth = calculate_daily_growth(card.current_fame, sales, user.subscription_tier, rng)

    card.physical_copies += growth.physical_growth
    card.digital_downloads += growth.digital_growth
    card.total_streams += growth.stream_growth
    card.current_fame = math.floor(card.current_fame + growth.fame_growth)
    card.last_daily_update = now
    card.daily_growth_streak += 1
    await db.flush()

    achievements = await check_and_award_achievements(db, card.id, redis=redis)
    await db.commit()

    logger.info(
        "daily_growth_applied",
        card_id=card_id,
        streams=growth.stream_growth,
        fame=card.current_fame,
        achievements=len(achievements),
    )
    return GrowthApplied(card=card, growth=growth, achievements=achievements)
