"""Subscription tier table."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from aetherwave.errors import InvalidTierError

# Stored in free_band_generations for tiers with unlimited generations.
UNLIMITED_FREE_GENERATIONS = 999

FAN = "Fan"
ARTIST = "Artist"
RECORD_LABEL = "Record Label"
MOGUL = "Mogul"


@dataclass(frozen=True)
class TierConfig:
    name: str
    price: Decimal
    initial_credits: int
    monthly_credits: int
    initial_fame: int
    initial_experience: int
    free_generation_bonus: int | None  # None = unlimited
    base_fame_growth: float
    features: tuple[str, ...]

    @property
    def unlimited_generations(self) -> bool:
        return self.free_generation_bonus is None


TIER_CONFIGS: dict[str, TierConfig] = {
    FAN: TierConfig(
        name=FAN,
        price=Decimal("0.00"),
        initial_credits=500,
        monthly_credits=0,
        initial_fame=1,
        initial_experience=0,
        free_generation_bonus=0,
        base_fame_growth=1.0,
        features=("Basic card generation", "500 starting credits", "Community access"),
    ),
    ARTIST: TierConfig(
        name=ARTIST,
        price=Decimal("5.95"),
        initial_credits=1500,
        monthly_credits=1500,
        initial_fame=5,
        initial_experience=100,
        free_generation_bonus=5,
        base_fame_growth=1.5,
        features=("1500 monthly credits", "Enhanced FAME starting level", "Priority support"),
    ),
    RECORD_LABEL: TierConfig(
        name=RECORD_LABEL,
        price=Decimal("19.95"),
        initial_credits=5000,
        monthly_credits=5000,
        initial_fame=15,
        initial_experience=3500,
        free_generation_bonus=15,
        base_fame_growth=2.0,
        features=("5000 monthly credits", "Professional FAME level", "Advanced customization"),
    ),
    MOGUL: TierConfig(
        name=MOGUL,
        price=Decimal("49.50"),
        initial_credits=15000,
        monthly_credits=15000,
        initial_fame=30,
        initial_experience=10000,
        free_generation_bonus=None,
        base_fame_growth=2.5,
        features=("15000 monthly credits", "Elite FAME status", "All premium features"),
    ),
}


def get_tier_config(tier: str) -> TierConfig:
    """Look up a tier by exact name; raises InvalidTierError."""
    config = TIER_CONFIGS.get(tier)
    if config is None:
        raise InvalidTierError(tier)
    return config
