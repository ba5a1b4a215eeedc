"""Chart and user stats endpoints."""

from __future__ import annotations

import random
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.auth.dependencies import get_current_user
from aetherwave.database import get_session
from aetherwave.db.models import User
from aetherwave.dependencies import get_redis_dep, get_rng
from aetherwave.ranking.leaderboard_service import get_charts, get_user_rank, seed_starting_stats
from aetherwave.ranking.milestones import check_milestones
from aetherwave.ranking.ranking_engine import update_global_rankings
from aetherwave.ranking.schemas import (
    ChartEntry,
    ChartsResponse,
    MilestoneResponse,
    RecomputeResponse,
    UserRankResponse,
    UserStatsResponse,
)
from aetherwave.ranking.score_model import ranking_score

router = APIRouter(prefix="/api/v1", tags=["Charts"])


@router.get("/charts", response_model=ChartsResponse)
async def list_charts(
    limit: int = Query(100, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
):
    """Current Top 100, best position first."""
    entries = await get_charts(db, limit=limit, offset=offset)
    return ChartsResponse(entries=[ChartEntry(**e) for e in entries], total=len(entries))


@router.post("/charts/recompute", response_model=RecomputeResponse)
async def recompute_charts(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Recompute every chart position now."""
    ranked = await update_global_rankings(db, redis)
    return RecomputeResponse(ranked=ranked)


@router.get("/me/rank", response_model=UserRankResponse)
async def my_rank(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Fame and streams rank among active users."""
    return UserRankResponse(**await get_user_rank(db, user.id))


@router.get("/me/stats", response_model=UserStatsResponse)
async def my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    rng: random.Random = Depends(get_rng),
):
    """Chart stats, rank and milestones. First visit seeds starting stats."""
    user = await seed_starting_stats(db, user.id, rng)
    rank = await get_user_rank(db, user.id)
    return UserStatsResponse(
        user_id=user.id,
        fame=user.fame,
        total_streams=user.total_streams,
        daily_streams=user.daily_streams,
        chart_position=user.chart_position,
        projected_chart_position=user.projected_chart_position,
        fanbase=user.fanbase,
        score=ranking_score(user),
        level=user.level,
        experience=user.experience,
        influence=user.influence,
        total_cards=user.total_cards,
        last_activity_date=user.last_activity_date,
        rank=UserRankResponse(**rank),
        milestones=[MilestoneResponse(**asdict(m)) for m in check_milestones(user)],
    )
