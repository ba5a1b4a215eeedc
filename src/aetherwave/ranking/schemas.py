"""Pydantic response models for chart and stats endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


# --- Charts ---


class ChartEntry(BaseModel):
    chart_position: int
    user_id: int
    display_name: str
    fame: int
    total_streams: int
    daily_streams: int
    fanbase: int
    score: float


class ChartsResponse(BaseModel):
    entries: list[ChartEntry]
    total: int


class RecomputeResponse(BaseModel):
    ranked: int


# --- User stats ---


class MilestoneResponse(BaseModel):
    id: str
    name: str
    description: str
    fame_reward: int
    unlocks: str | None = None


class UserRankResponse(BaseModel):
    fame_rank: int
    streams_rank: int
    total_users: int


class UserStatsResponse(BaseModel):
    user_id: int
    fame: int
    total_streams: int
    daily_streams: int
    chart_position: int
    projected_chart_position: int | None = None
    fanbase: int
    score: float
    level: str
    experience: int
    influence: int
    total_cards: int
    last_activity_date: datetime | None = None
    rank: UserRankResponse
    milestones: list[MilestoneResponse] = []
