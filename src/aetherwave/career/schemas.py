"""Pydantic models for artist card, release, growth and achievement endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Requests ---


class RegisterCardRequest(BaseModel):
    band_name: str = Field(min_length=1, max_length=128)
    genre: str | None = Field(default=None, max_length=64)
    confidence: float = Field(default=50.0, ge=0, le=100)
    music_quality: float = Field(default=0.5, ge=0, le=1)
    rarity: str = "common"
    artist_data: dict[str, Any] = {}


class ReleaseRequest(BaseModel):
    music_quality: float = Field(ge=0, le=1)
    genre: str | None = Field(default=None, max_length=64)
    release_title: str | None = Field(default=None, max_length=256)
    release_type: Literal["single", "ep", "album"] = "single"
    file_name: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    duration: float | None = Field(default=None, ge=0)
    tempo: float | None = None
    key: str | None = None
    energy: str | None = None
    confidence: float | None = None


# --- Cards ---


class ArtistCardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    band_name: str
    genre: str | None
    rarity: str
    physical_copies: int
    digital_downloads: int
    total_streams: int
    current_fame: int
    last_daily_update: datetime | None
    daily_growth_streak: int
    created_at: datetime


class RegisterCardResponse(BaseModel):
    card: ArtistCardResponse
    paid_with: str
    cost: int


# --- Releases ---


class ReleaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    artist_card_id: int
    release_title: str | None
    release_type: str
    genre: str | None
    music_quality: float
    genre_consistency: float
    release_impact: int
    streams: int
    fan_reaction: str | None
    peak_chart_position: int
    created_at: datetime


class EvolutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    release_id: int
    genre_shift: dict[str, Any] | None
    sound_evolution: str
    fanbase_reaction: str
    fame_change_from_release: int
    fanbase_change_from_release: int
    genre_mastery: float
    artistic_growth: str
    created_at: datetime


class RankingUpdateResponse(BaseModel):
    fame_change: int
    daily_streams_change: int
    total_streams_change: int
    chart_position_change: int
    fanbase_change: int
    reason: str
    viral: bool


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    artist_card_id: int
    achievement_type: str
    achievement_name: str
    description: str
    icon_type: str
    sales_required: int
    sales_at_achievement: int
    fame_boost_percent: int
    created_at: datetime


class ReleaseResultResponse(BaseModel):
    release: ReleaseResponse
    ranking_update: RankingUpdateResponse
    evolution: EvolutionResponse
    summary: str
    chart_position: int
    achievements: list[AchievementResponse] = []


class CareerStatsResponse(BaseModel):
    total_releases: int
    genre_consistency_score: float
    artistic_growth_trend: str
    best_performing_release: ReleaseResponse | None
    career_highlights: list[str]


class CareerOverviewResponse(BaseModel):
    releases: list[ReleaseResponse]
    evolutions: list[EvolutionResponse]
    career_stats: CareerStatsResponse


# --- Growth ---


class GrowthResponse(BaseModel):
    applied: bool
    hours_remaining: int = 0
    physical_growth: int = 0
    digital_growth: int = 0
    stream_growth: int = 0
    fame_growth: float = 0.0
    card: ArtistCardResponse | None = None
    achievements: list[AchievementResponse] = []
