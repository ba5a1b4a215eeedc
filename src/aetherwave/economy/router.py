"""Subscription tier and credit endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.auth.dependencies import get_current_user
from aetherwave.database import get_session
from aetherwave.db.models import User
from aetherwave.dependencies import get_redis_dep
from aetherwave.economy.credit_service import GenerationAllowed, check_band_generation
from aetherwave.economy.schemas import (
    BandGenerationResponse,
    CreditsResponse,
    SubscriptionRequest,
    SubscriptionResponse,
    TierResponse,
    TiersResponse,
)
from aetherwave.economy.tier_service import apply_subscription_tier_benefits
from aetherwave.economy.tiers import TIER_CONFIGS

router = APIRouter(prefix="/api/v1", tags=["Economy"])


@router.get("/subscription-tiers", response_model=TiersResponse)
async def list_tiers():
    """All subscription tiers, cheapest first."""
    return TiersResponse(
        tiers=[
            TierResponse(
                name=t.name,
                price=t.price,
                initial_credits=t.initial_credits,
                monthly_credits=t.monthly_credits,
                initial_fame=t.initial_fame,
                initial_experience=t.initial_experience,
                free_generation_bonus=t.free_generation_bonus,
                features=list(t.features),
            )
            for t in TIER_CONFIGS.values()
        ]
    )


@router.post("/me/subscription", response_model=SubscriptionResponse)
async def change_subscription(
    body: SubscriptionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Apply a subscription tier once payment has been confirmed upstream."""
    user = await apply_subscription_tier_benefits(db, user.id, body.tier, redis=redis)
    return SubscriptionResponse(
        subscription_tier=user.subscription_tier,
        subscription_price=user.subscription_price,
        credits=user.credits,
        fame=user.fame,
        experience=user.experience,
        level=user.level,
        free_band_generations=user.free_band_generations,
        monthly_credits=user.monthly_credits,
    )


@router.get("/me/credits", response_model=CreditsResponse)
async def my_credits(user: User = Depends(get_current_user)):
    return CreditsResponse(
        credits=user.credits,
        monthly_credits=user.monthly_credits,
        total_credits_earned=user.total_credits_earned,
        total_credits_spent=user.total_credits_spent,
        last_credit_renewal=user.last_credit_renewal,
        subscription_tier=user.subscription_tier,
    )


@router.get("/me/band-generation", response_model=BandGenerationResponse)
async def my_band_generation(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Whether the next band is free, costs credits, or is out of reach."""
    allowance = await check_band_generation(db, user.id)
    common = {
        "free_band_generations": user.free_band_generations,
        "band_generation_count": user.band_generation_count,
        "credits": user.credits,
    }
    if isinstance(allowance, GenerationAllowed):
        return BandGenerationResponse(allowed=True, via=allowance.via, cost=allowance.cost, **common)
    return BandGenerationResponse(allowed=False, cost=allowance.cost, reason=allowance.reason, **common)
