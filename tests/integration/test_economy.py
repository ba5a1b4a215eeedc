"""Tier upgrades, monthly renewal, credits, and band-generation allowances."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from aetherwave.economy.credit_service import (
    GenerationAllowed,
    GenerationDenied,
    add_credits,
    check_band_generation,
    consume_band_generation,
    spend_credits,
)
from aetherwave.economy.tier_service import (
    apply_subscription_tier_benefits,
    process_monthly_credits,
    update_user_progression,
)
from aetherwave.errors import InvalidTierError, UserNotFoundError
from aetherwave.ranking.activity import as_utc

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestApplySubscriptionTier:
    @pytest.mark.asyncio
    async def test_upgrade_lifts_stats_to_tier_floors(self, db_session, make_user):
        user = await make_user()

        user = await apply_subscription_tier_benefits(db_session, user.id, "Artist", now=NOW)

        assert user.subscription_tier == "Artist"
        assert user.subscription_price == Decimal("5.95")
        assert user.credits == 1500
        assert user.total_credits_earned == 1500
        assert user.fame == 5
        assert user.experience == 100
        assert user.level == "Artist"
        assert user.free_band_generations == 7
        assert user.monthly_credits == 1500
        assert user.last_credit_renewal == NOW

    @pytest.mark.asyncio
    async def test_never_lowers_stats(self, db_session, make_user):
        user = await make_user(credits=9000, fame=60, experience=2500)

        user = await apply_subscription_tier_benefits(db_session, user.id, "Artist", now=NOW)

        assert user.credits == 9000
        assert user.fame == 60
        assert user.experience == 2500
        assert user.level == "A&R"

    @pytest.mark.asyncio
    async def test_downgrade_keeps_everything(self, db_session, make_user):
        user = await make_user()
        await apply_subscription_tier_benefits(db_session, user.id, "Artist", now=NOW)

        user = await apply_subscription_tier_benefits(db_session, user.id, "Fan", now=NOW)

        assert user.subscription_tier == "Fan"
        assert user.subscription_price == Decimal("0.00")
        assert user.credits == 1500
        assert user.fame == 5
        assert user.experience == 100
        assert user.free_band_generations == 7
        assert user.monthly_credits == 0

    @pytest.mark.asyncio
    async def test_mogul_is_unlimited(self, db_session, make_user):
        user = await make_user(band_generation_count=4)

        user = await apply_subscription_tier_benefits(db_session, user.id, "Mogul", now=NOW)

        assert user.free_band_generations == 999
        assert user.band_generation_count == 4
        assert user.level == "Label Executive"
        assert user.can_hardcode_parameters is True

    @pytest.mark.asyncio
    async def test_invalid_tier_changes_nothing(self, db_session, make_user):
        user = await make_user()

        with pytest.raises(InvalidTierError):
            await apply_subscription_tier_benefits(db_session, user.id, "Platinum", now=NOW)

        await db_session.refresh(user)
        assert user.subscription_tier == "Fan"
        assert user.credits == 500

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            await apply_subscription_tier_benefits(db_session, 9999, "Artist", now=NOW)

    @pytest.mark.asyncio
    async def test_publishes_tier_event(self, db_session, make_user):
        user = await make_user()
        redis = MagicMock()
        redis.publish = AsyncMock()

        await apply_subscription_tier_benefits(db_session, user.id, "Record Label", now=NOW, redis=redis)

        channel, payload = redis.publish.await_args.args
        assert channel == "pubsub:tier_upgraded"
        assert json.loads(payload) == {"user_id": user.id, "old_tier": "Fan", "new_tier": "Record Label"}


class TestProcessMonthlyCredits:
    @pytest.mark.asyncio
    async def test_renews_due_paid_users(self, db_session, make_user):
        due = await make_user(
            subscription_tier="Artist", credits=200, last_credit_renewal=NOW - timedelta(days=31)
        )
        recent = await make_user(
            subscription_tier="Artist", credits=200, last_credit_renewal=NOW - timedelta(days=10)
        )
        fan = await make_user(credits=200, last_credit_renewal=NOW - timedelta(days=90))

        assert await process_monthly_credits(db_session, now=NOW) == 1

        for user in (due, recent, fan):
            await db_session.refresh(user)
        assert due.credits == 1700
        assert due.total_credits_earned == 2000
        assert recent.credits == 200
        assert fan.credits == 200

    @pytest.mark.asyncio
    async def test_idempotent_within_window(self, db_session, make_user):
        user = await make_user(
            subscription_tier="Mogul", credits=0, last_credit_renewal=NOW - timedelta(days=45)
        )

        assert await process_monthly_credits(db_session, now=NOW) == 1
        assert await process_monthly_credits(db_session, now=NOW + timedelta(hours=1)) == 0
        assert await process_monthly_credits(db_session, now=NOW + timedelta(days=29)) == 0

        await db_session.refresh(user)
        assert user.credits == 15000

        assert await process_monthly_credits(db_session, now=NOW + timedelta(days=30)) == 1

    @pytest.mark.asyncio
    async def test_unknown_tier_is_skipped(self, db_session, make_user):
        legacy = await make_user(
            subscription_tier="Legacy", credits=100, last_credit_renewal=NOW - timedelta(days=40)
        )
        paid = await make_user(
            subscription_tier="Artist", credits=0, last_credit_renewal=NOW - timedelta(days=40)
        )

        assert await process_monthly_credits(db_session, now=NOW) == 1

        await db_session.refresh(legacy)
        await db_session.refresh(paid)
        assert legacy.credits == 100
        assert paid.credits == 1500


class TestCredits:
    @pytest.mark.asyncio
    async def test_spend(self, db_session, make_user):
        user = await make_user(credits=100)

        assert await spend_credits(db_session, user.id, 60) is True
        assert user.credits == 40
        assert user.total_credits_spent == 60

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, db_session, make_user):
        user = await make_user(credits=100)

        assert await spend_credits(db_session, user.id, 500) is False
        assert user.credits == 100
        assert user.total_credits_spent == 0

    @pytest.mark.asyncio
    async def test_spend_must_be_positive(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValueError):
            await spend_credits(db_session, user.id, 0)

    @pytest.mark.asyncio
    async def test_add(self, db_session, make_user):
        user = await make_user(credits=40)

        user = await add_credits(db_session, user.id, 200)
        assert user.credits == 240
        assert user.total_credits_earned == 700

    @pytest.mark.asyncio
    async def test_add_to_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            await add_credits(db_session, 9999, 10)


class TestBandGeneration:
    @pytest.mark.asyncio
    async def test_free_generation_first(self, db_session, make_user):
        user = await make_user()

        allowance = await consume_band_generation(db_session, user.id, now=NOW)

        assert allowance == GenerationAllowed(via="free")
        assert user.free_band_generations == 1
        assert user.band_generation_count == 1
        assert user.credits == 500
        assert as_utc(user.last_band_generated) == NOW

    @pytest.mark.asyncio
    async def test_credits_when_free_exhausted(self, db_session, make_user):
        user = await make_user(free_band_generations=0, credits=600)

        allowance = await consume_band_generation(db_session, user.id, now=NOW)

        assert allowance == GenerationAllowed(via="credits", cost=500)
        assert user.credits == 100
        assert user.total_credits_spent == 500
        assert user.band_generation_count == 1

    @pytest.mark.asyncio
    async def test_denied_without_credits(self, db_session, make_user):
        user = await make_user(free_band_generations=0, credits=100)

        allowance = await consume_band_generation(db_session, user.id, now=NOW)

        assert isinstance(allowance, GenerationDenied)
        assert allowance.cost == 500
        assert allowance.credits == 100
        assert user.credits == 100
        assert user.band_generation_count == 0

    @pytest.mark.asyncio
    async def test_mogul_never_pays(self, db_session, make_user):
        user = await make_user(subscription_tier="Mogul", free_band_generations=999, credits=0)

        allowance = await consume_band_generation(db_session, user.id, now=NOW)

        assert allowance == GenerationAllowed(via="unlimited")
        assert user.free_band_generations == 999
        assert user.band_generation_count == 1

    @pytest.mark.asyncio
    async def test_check_does_not_consume(self, db_session, make_user):
        user = await make_user(free_band_generations=0, credits=500)

        assert await check_band_generation(db_session, user.id) == GenerationAllowed(via="credits", cost=500)
        assert user.credits == 500


class TestUpdateUserProgression:
    @pytest.mark.asyncio
    async def test_levels_up(self, db_session, make_user):
        user = await make_user(experience=80)

        user = await update_user_progression(db_session, user.id, 50, 10, new_card=True)

        assert user.experience == 130
        assert user.influence == 10
        assert user.total_cards == 1
        assert user.level == "Artist"
