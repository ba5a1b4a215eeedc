"""Pydantic models for subscription and credit endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


# --- Tiers ---


class TierResponse(BaseModel):
    name: str
    price: Decimal
    initial_credits: int
    monthly_credits: int
    initial_fame: int
    initial_experience: int
    free_generation_bonus: int | None
    features: list[str]


class TiersResponse(BaseModel):
    tiers: list[TierResponse]


class SubscriptionRequest(BaseModel):
    tier: str


class SubscriptionResponse(BaseModel):
    subscription_tier: str
    subscription_price: Decimal
    credits: int
    fame: int
    experience: int
    level: str
    free_band_generations: int
    monthly_credits: int


# --- Credits ---


class CreditsResponse(BaseModel):
    credits: int
    monthly_credits: int
    total_credits_earned: int
    total_credits_spent: int
    last_credit_renewal: datetime | None
    subscription_tier: str


class BandGenerationResponse(BaseModel):
    allowed: bool
    via: str | None = None
    cost: int
    reason: str | None = None
    free_band_generations: int
    band_generation_count: int
    credits: int
