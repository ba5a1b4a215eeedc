"""Artist card endpoints: registration, releases, career, growth, achievements."""

from __future__ import annotations

import random

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.achievements.achievement_service import get_band_achievements, get_user_achievements
from aetherwave.auth.dependencies import get_current_user
from aetherwave.career.career_service import (
    get_artist_career_overview,
    get_artist_evolution,
    get_artist_releases,
    get_owned_card,
    record_chart_peak,
    register_artist_card,
    release_new_music,
)
from aetherwave.career.schemas import (
    AchievementResponse,
    ArtistCardResponse,
    CareerOverviewResponse,
    CareerStatsResponse,
    EvolutionResponse,
    GrowthResponse,
    RankingUpdateResponse,
    RegisterCardRequest,
    RegisterCardResponse,
    ReleaseRequest,
    ReleaseResponse,
    ReleaseResultResponse,
)
from aetherwave.database import get_session
from aetherwave.db.models import User
from aetherwave.dependencies import get_redis_dep, get_rng
from aetherwave.economy.credit_service import GenerationDenied
from aetherwave.growth.growth_engine import CooldownNotElapsed, apply_daily_growth
from aetherwave.ranking.ranking_engine import update_global_rankings

router = APIRouter(prefix="/api/v1", tags=["Artists"])


@router.post("/artists", response_model=RegisterCardResponse, status_code=201)
async def register_card(
    body: RegisterCardRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    rng: random.Random = Depends(get_rng),
):
    """Register a generated band, paying with a free generation or credits."""
    outcome = await register_artist_card(
        db,
        user_id=user.id,
        band_name=body.band_name,
        genre=body.genre,
        confidence=body.confidence,
        music_quality=body.music_quality,
        rarity=body.rarity,
        artist_data=body.artist_data,
        rng=rng,
    )
    if isinstance(outcome, GenerationDenied):
        raise HTTPException(
            status_code=402,
            detail={"message": outcome.reason, "cost": outcome.cost, "credits": outcome.credits},
        )
    return RegisterCardResponse(
        card=ArtistCardResponse.model_validate(outcome.card),
        paid_with=outcome.allowance.via,
        cost=outcome.allowance.cost,
    )


@router.post("/artists/{card_id}/releases", response_model=ReleaseResultResponse, status_code=201)
async def release_music(
    card_id: int,
    body: ReleaseRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    rng: random.Random = Depends(get_rng),
):
    """Release new music and progress the band's career."""
    result = await release_new_music(
        db,
        artist_card_id=card_id,
        user_id=user.id,
        rng=rng,
        redis=redis,
        **body.model_dump(),
    )

    # Authoritative chart positions, then the release's peak.
    await update_global_rankings(db, redis)
    release = await record_chart_peak(db, result.release.id) or result.release

    return ReleaseResultResponse(
        release=ReleaseResponse.model_validate(release),
        ranking_update=RankingUpdateResponse(**result.ranking_update.to_dict()),
        evolution=EvolutionResponse.model_validate(result.evolution),
        summary=result.summary,
        chart_position=result.user.chart_position,
        achievements=[AchievementResponse.model_validate(a) for a in result.achievements],
    )


@router.get("/artists/{card_id}/career", response_model=CareerOverviewResponse)
async def career_overview(
    card_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Releases, evolution history and career stats for one of the caller's cards."""
    await get_owned_card(db, card_id, user.id)
    overview = await get_artist_career_overview(db, card_id)
    stats = overview.career_stats
    best = stats["best_performing_release"]
    return CareerOverviewResponse(
        releases=[ReleaseResponse.model_validate(r) for r in overview.releases],
        evolutions=[EvolutionResponse.model_validate(e) for e in overview.evolutions],
        career_stats=CareerStatsResponse(
            total_releases=stats["total_releases"],
            genre_consistency_score=stats["genre_consistency_score"],
            artistic_growth_trend=stats["artistic_growth_trend"],
            best_performing_release=ReleaseResponse.model_validate(best) if best else None,
            career_highlights=stats["career_highlights"],
        ),
    )


@router.get("/artists/{card_id}/releases", response_model=list[ReleaseResponse])
async def list_releases(
    card_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await get_owned_card(db, card_id, user.id)
    return [ReleaseResponse.model_validate(r) for r in await get_artist_releases(db, card_id)]


@router.get("/artists/{card_id}/evolution", response_model=list[EvolutionResponse])
async def list_evolution(
    card_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await get_owned_card(db, card_id, user.id)
    return [EvolutionResponse.model_validate(e) for e in await get_artist_evolution(db, card_id)]


@router.post("/artists/{card_id}/daily-growth", response_model=GrowthResponse)
async def daily_growth(
    card_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    rng: random.Random = Depends(get_rng),
):
    """Apply today's sales growth, or report hours until the next tick."""
    outcome = await apply_daily_growth(db, card_id, user.id, rng=rng, redis=redis)
    if isinstance(outcome, CooldownNotElapsed):
        return GrowthResponse(applied=False, hours_remaining=outcome.hours_remaining)
    return GrowthResponse(
        applied=True,
        physical_growth=outcome.growth.physical_growth,
        digital_growth=outcome.growth.digital_growth,
        stream_growth=outcome.growth.stream_growth,
        fame_growth=outcome.growth.fame_growth,
        card=ArtistCardResponse.model_validate(outcome.card),
        achievements=[AchievementResponse.model_validate(a) for a in outcome.achievements],
    )


@router.get("/artists/{card_id}/achievements", response_model=list[AchievementResponse])
async def card_achievements(
    card_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await get_owned_card(db, card_id, user.id)
    return [AchievementResponse.model_validate(a) for a in await get_band_achievements(db, card_id)]


@router.get("/me/achievements", response_model=list[AchievementResponse])
async def my_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return [AchievementResponse.model_validate(a) for a in await get_user_achievements(db, user.id)]
