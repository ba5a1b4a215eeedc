"""Subscription tier table."""

from decimal import Decimal

import pytest

from aetherwave.economy.tiers import MOGUL, TIER_CONFIGS, get_tier_config
from aetherwave.errors import InvalidTierError


class TestTierConfigs:
    def test_four_tiers_cheapest_first(self):
        assert list(TIER_CONFIGS) == ["Fan", "Artist", "Record Label", "Mogul"]
        prices = [c.price for c in TIER_CONFIGS.values()]
        assert prices == sorted(prices)

    def test_artist_tier(self):
        config = get_tier_config("Artist")
        assert config.price == Decimal("5.95")
        assert config.initial_credits == 1500
        assert config.monthly_credits == 1500
        assert config.initial_fame == 5
        assert config.initial_experience == 100
        assert config.free_generation_bonus == 5

    def test_only_mogul_is_unlimited(self):
        unlimited = [name for name, c in TIER_CONFIGS.items() if c.unlimited_generations]
        assert unlimited == [MOGUL]

    def test_fan_has_no_monthly_credits(self):
        assert get_tier_config("Fan").monthly_credits == 0


class TestGetTierConfig:
    def test_unknown_tier(self):
        with pytest.raises(InvalidTierError) as exc_info:
            get_tier_config("Platinum")
        assert exc_info.value.tier == "Platinum"

    def test_names_are_exact(self):
        with pytest.raises(InvalidTierError):
            get_tier_config("mogul")
