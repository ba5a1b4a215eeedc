"""Career progression: releasing music, evolution records, and career overviews."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from statistics import mean
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.achievements.achievement_service import check_and_award_achievements
from aetherwave.career.genre_analysis import analyze_genre_consistency, calculate_release_impact
from aetherwave.career.narrative import build_career_summary, describe_evolution
from aetherwave.db.models import ArtistCard, ArtistEvolution, BandAchievement, Release, User
from aetherwave.economy.credit_service import GenerationAllowed, GenerationDenied, consume_band_generation
from aetherwave.economy.tier_service import update_user_progression
from aetherwave.errors import ArtistCardNotFoundError, OwnershipViolationError
from aetherwave.ranking.ranking_engine import RankingUpdate, apply_ranking_update, calculate_ranking_update

logger = structlog.get_logger()

_default_rng = random.Random()

RELEASE_TYPES = ("single", "ep", "album")

CARD_CREATION_EXPERIENCE = 50
CARD_CREATION_INFLUENCE = 10
CARD_STARTING_FAME = 5

# Checked in order; the first genre contained in the card's genre wins.
CARD_GENRE_MULTIPLIERS: list[tuple[str, float]] = [
    ("pop", 1.5),
    ("rock", 1.2),
    ("hip hop", 1.8),
    ("electronic", 1.3),
    ("country", 1.1),
    ("r&b", 1.4),
    ("indie", 0.8),
    ("folk", 0.6),
    ("jazz", 0.5),
    ("classical", 0.4),
    ("metal", 0.9),
    ("punk", 0.7),
    ("alternative", 1.0),
]
DEFAULT_GENRE_MULTIPLIER = 1.0


@dataclass(frozen=True)
class CareerProgressionResult:
    release: Release
    ranking_update: RankingUpdate
    evolution: ArtistEvolution
    summary: str
    user: User
    achievements: list[BandAchievement] = field(default_factory=list)


@dataclass(frozen=True)
class CareerOverview:
    releases: list[Release]
    evolutions: list[ArtistEvolution]
    career_stats: dict[str, Any]


@dataclass(frozen=True)
class CardRegistered:
    card: ArtistCard
    allowance: GenerationAllowed


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_owned_card(db: AsyncSession, card_id: int, user_id: int) -> ArtistCard:
    """Fetch a card and check ownership.

    Raises:
        ArtistCardNotFoundError, OwnershipViolationError
    """
    card = await db.get(ArtistCard, card_id)
    if card is None:
        raise ArtistCardNotFoundError(card_id)
    if card.user_id != user_id:
        raise OwnershipViolationError(card_id, user_id)
    return card


async def get_artist_releases(db: AsyncSession, card_id: int) -> list[Release]:
    """Newest first."""
    result = await db.execute(
        select(Release)
        .where(Release.artist_card_id == card_id)
        .order_by(Release.created_at.desc(), Release.id.desc())
    )
    return list(result.scalars().all())


async def get_artist_evolution(db: AsyncSession, card_id: int) -> list[ArtistEvolution]:
    """Newest first."""
    result = await db.execute(
        select(ArtistEvolution)
        .where(ArtistEvolution.artist_card_id == card_id)
        .order_by(ArtistEvolution.created_at.desc(), ArtistEvolution.id.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Releases
# ---------------------------------------------------------------------------


async def release_new_music(
    db: AsyncSession,
    *,
    artist_card_id: int,
    user_id: int,
    music_quality: float,
    genre: str | None,
    release_title: str | None = None,
    release_type: str = "single",
    file_name: str | None = None,
    file_size: int | None = None,
    duration: float | None = None,
    tempo: float | None = None,
    key: str | None = None,
    energy: str | None = None,
    confidence: float | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
    redis: object = None,
) -> CareerProgressionResult:
    """Release new music for an artist card and progress the owner's career.

    Ownership is checked before any scoring. The release, the owner's stat
    update, the evolution record and any sales achievements commit together.

    Raises:
        ArtistCardNotFoundError, OwnershipViolationError, UserNotFoundError
        ValueError: quality outside [0, 1] or unknown release type.
    """
    if not 0.0 <= music_quality <= 1.0:
        msg = f"music_quality must be within [0, 1], got {music_quality}"
        raise ValueError(msg)
    if release_type not in RELEASE_TYPES:
        msg = f"release_type must be one of {RELEASE_TYPES}, got {release_type!r}"
        raise ValueError(msg)

    now = now or datetime.now(timezone.utc)
    rng = rng or _default_rng

    card = await get_owned_card(db, artist_card_id, user_id)
    analysis = analyze_genre_consistency(card.genre, genre)

    release = Release(
        artist_card_id=card.id,
        user_id=user_id,
        file_name=file_name,
        file_size=file_size,
        duration=duration,
        tempo=tempo,
        key=key,
        energy=energy,
        genre=genre,
        confidence=confidence,
        release_title=release_title,
        release_type=release_type,
        music_quality=music_quality,
        genre_consistency=analysis.consistency,
        created_at=now,
    )
    db.add(release)
    await db.flush()

    release.release_impact = calculate_release_impact(music_quality, analysis)

    ranking_update = calculate_ranking_update(music_quality, release.release_impact, rng)
    user = await apply_ranking_update(db, user_id, ranking_update, now=now)
    release.streams = max(0, ranking_update.total_streams_change)
    release.fan_reaction = ranking_update.reason

    narrative = describe_evolution(analysis, ranking_update, card.genre)
    evolution = ArtistEvolution(
        artist_card_id=card.id,
        release_id=release.id,
        genre_shift=analysis.shift.to_dict() if analysis.shift else None,
        sound_evolution=narrative.sound_evolution,
        fanbase_reaction=narrative.fanbase_reaction,
        fame_change_from_release=ranking_update.fame_change,
        fanbase_change_from_release=ranking_update.fanbase_change,
        genre_mastery=analysis.mastery,
        artistic_growth=narrative.artistic_growth,
        created_at=now,
    )
    db.add(evolution)
    await db.flush()

    release_count = (
        await db.execute(select(func.count()).select_from(Release).where(Release.artist_card_id == card.id))
    ).scalar_one()
    summary = build_career_summary(
        band_name=card.band_name,
        genre=card.genre,
        release_title=release_title,
        release_type=release_type,
        release_count=release_count,
        ranking_update=ranking_update,
        narrative=narrative,
    )

    achievements = await check_and_award_achievements(db, card.id, redis=redis)
    await db.commit()

    logger.info(
        "music_released",
        card_id=card.id,
        user_id=user_id,
        release_id=release.id,
        impact=release.release_impact,
        consistency=analysis.consistency,
        fame_change=ranking_update.fame_change,
        viral=ranking_update.viral,
    )
    return CareerProgressionResult(
        release=release,
        ranking_update=ranking_update,
        evolution=evolution,
        summary=summary,
        user=user,
        achievements=achievements,
    )


async def record_chart_peak(db: AsyncSession, release_id: int) -> Release | None:
    """Store the owner's current chart position as the release's peak if better."""
    release = await db.get(Release, release_id)
    if release is None:
        return None
    user = await db.get(User, release.user_id, populate_existing=True)
    if user is None or user.chart_position <= 0:
        return release
    if release.peak_chart_position == 0 or user.chart_position < release.peak_chart_position:
        release.peak_chart_position = user.chart_position
        await db.commit()
    return release


# ---------------------------------------------------------------------------
# Career overview
# ---------------------------------------------------------------------------


def artistic_growth_trend(masteries: list[float]) -> str:
    """Trend label from mastery scores, newest first; averages the latest three."""
    if not masteries:
        return "New artist"
    if len(masteries) == 1:
        return "Emerging"
    recent = mean(masteries[:3])
    if recent > 1.3:
        return "Mastering craft"
    if recent > 1.1:
        return "Steady growth"
    if recent > 0.9:
        return "Exploring sound"
    return "Finding direction"


def _release_score(release: Release) -> float:
    return release.release_impact + release.streams / 1000


def career_highlights(releases: list[Release], evolutions: list[ArtistEvolution]) -> list[str]:
    highlights: list[str] = []
    total = len(releases)
    if total >= 10:
        highlights.append(f"{total} releases - prolific artist")
    elif total >= 5:
        highlights.append(f"{total} releases - established catalog")

    high_quality = sum(1 for r in releases if r.music_quality > 0.8)
    if high_quality:
        highlights.append(f"{high_quality} high-quality releases")

    if any(e.genre_shift and e.genre_shift.get("intensity", 0) > 0.7 for e in evolutions):
        highlights.append("Genre evolution pioneer")

    charting = sum(1 for r in releases if r.peak_chart_position > 0)
    if charting:
        highlights.append(f"{charting} charting releases")

    return highlights or ["Building their career"]


async def get_artist_career_overview(db: AsyncSession, card_id: int) -> CareerOverview:
    """All releases and evolutions for a card plus aggregate career stats.

    Raises:
        ArtistCardNotFoundError
    """
    if await db.get(ArtistCard, card_id) is None:
        raise ArtistCardNotFoundError(card_id)

    releases = await get_artist_releases(db, card_id)
    evolutions = await get_artist_evolution(db, card_id)

    best = max(releases, key=_release_score) if releases else None
    stats = {
        "total_releases": len(releases),
        "genre_consistency_score": mean(r.genre_consistency for r in releases) if releases else 1.0,
        "artistic_growth_trend": artistic_growth_trend([e.genre_mastery for e in evolutions]),
        "best_performing_release": best,
        "career_highlights": career_highlights(releases, evolutions),
    }
    return CareerOverview(releases=releases, evolutions=evolutions, career_stats=stats)


# ---------------------------------------------------------------------------
# Card registration
# ---------------------------------------------------------------------------


def _genre_multiplier(genre: str | None) -> float:
    lowered = (genre or "").lower()
    for name, multiplier in CARD_GENRE_MULTIPLIERS:
        if name in lowered:
            return multiplier
    return DEFAULT_GENRE_MULTIPLIER


def generate_card_starting_metrics(
    genre: str | None,
    confidence: float,
    rng: random.Random | None = None,
) -> dict[str, int]:
    """Modest opening sales for a new band, scaled by genre and analysis confidence (percent)."""
    rng = rng or _default_rng
    multiplier = _genre_multiplier(genre)
    quality_factor = 0.7 + (confidence / 100) * 0.6

    physical = math.floor((10 + rng.random() * 5) * multiplier * quality_factor)
    digital = math.floor((50 + rng.random() * 25) * multiplier * quality_factor)
    streams = math.floor((100 + rng.random() * 50) * multiplier * quality_factor)
    return {
        "physical_copies": max(physical, 10),
        "digital_downloads": max(digital, 50),
        "total_streams": max(streams, 100),
    }


async def register_artist_card(
    db: AsyncSession,
    *,
    user_id: int,
    band_name: str,
    genre: str | None,
    confidence: float = 50.0,
    music_quality: float = 0.5,
    rarity: str = "common",
    artist_data: dict[str, Any] | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> CardRegistered | GenerationDenied:
    """Create a card for a generated band, paying from the user's allowance.

    Returns GenerationDenied without creating anything when the user has
    neither free generations nor enough credits.
    """
    now = now or datetime.now(timezone.utc)
    allowance = await consume_band_generation(db, user_id, now=now)
    if isinstance(allowance, GenerationDenied):
        await db.rollback()
        return allowance

    metrics = generate_card_starting_metrics(genre, confidence, rng)
    card = ArtistCard(
        user_id=user_id,
        band_name=band_name,
        genre=genre,
        artist_data=artist_data or {},
        rarity=rarity,
        confidence=confidence,
        music_quality=music_quality,
        current_fame=CARD_STARTING_FAME,
        last_daily_update=now,
        daily_growth_streak=0,
        created_at=now,
        **metrics,
    )
    db.add(card)
    await update_user_progression(
        db,
        user_id,
        experience_gained=CARD_CREATION_EXPERIENCE,
        influence_gained=CARD_CREATION_INFLUENCE,
        new_card=True,
    )
    await db.commit()

    logger.info("artist_card_registered", user_id=user_id, card_id=card.id, via=allowance.via, **metrics)
    return CardRegistered(card=card, allowance=allowance)
