"""Applying ranking updates, the global chart recompute, and user rank."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import LockError
from sqlalchemy import select

from aetherwave.db.models import User
from aetherwave.errors import UserNotFoundError
from aetherwave.ranking.activity import apply_activity_decay
from aetherwave.ranking.leaderboard_service import get_charts, get_user_rank, seed_starting_stats
from aetherwave.ranking.ranking_engine import (
    CHARTS_KEY,
    RANKINGS_LOCK_KEY,
    RankingUpdate,
    apply_ranking_update,
    update_global_rankings,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _update(**overrides) -> RankingUpdate:
    fields = {
        "fame_change": 0,
        "daily_streams_change": 0,
        "total_streams_change": 0,
        "chart_position_change": 0,
        "fanbase_change": 0,
        "reason": "Average release",
    }
    fields.update(overrides)
    return RankingUpdate(**fields)


def _fake_redis() -> MagicMock:
    redis = MagicMock()
    redis.lock.return_value.acquire = AsyncMock(return_value=True)
    redis.lock.return_value.release = AsyncMock()
    redis.pipeline.return_value.execute = AsyncMock(return_value=[])
    return redis


async def _positions(db) -> dict[int, int]:
    result = await db.execute(select(User.id, User.chart_position))
    return dict(result.all())


class TestApplyRankingUpdate:
    @pytest.mark.asyncio
    async def test_applies_deltas(self, db_session, make_user):
        user = await make_user(fame=10, daily_streams=100, total_streams=1000, fanbase=20)

        updated = await apply_ranking_update(
            db_session,
            user.id,
            _update(fame_change=4, daily_streams_change=3000, total_streams_change=21000, fanbase_change=500),
            now=NOW,
        )
        assert updated.fame == 14
        assert updated.daily_streams == 3100
        assert updated.total_streams == 22000
        assert updated.fanbase == 520
        assert updated.last_activity_date == NOW

    @pytest.mark.asyncio
    async def test_fame_clamped(self, db_session, make_user):
        high = await make_user(fame=99)
        low = await make_user(fame=1)

        assert (await apply_ranking_update(db_session, high.id, _update(fame_change=12))).fame == 100
        assert (await apply_ranking_update(db_session, low.id, _update(fame_change=-2))).fame == 1

    @pytest.mark.asyncio
    async def test_counts_floored_at_zero(self, db_session, make_user):
        user = await make_user(daily_streams=100, total_streams=500, fanbase=10)

        updated = await apply_ranking_update(
            db_session,
            user.id,
            _update(daily_streams_change=-250, total_streams_change=-1750, fanbase_change=-100),
        )
        assert updated.daily_streams == 0
        assert updated.total_streams == 0
        assert updated.fanbase == 0

    @pytest.mark.asyncio
    async def test_projection_does_not_touch_chart_position(self, db_session, make_user):
        user = await make_user(fame=20, chart_position=0)

        updated = await apply_ranking_update(db_session, user.id, _update(chart_position_change=-20))
        assert updated.projected_chart_position == 80
        assert updated.chart_position == 0

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            await apply_ranking_update(db_session, 9999, _update())


class TestUpdateGlobalRankings:
    @pytest.mark.asyncio
    async def test_positions_are_contiguous_and_unique(self, db_session, make_user):
        a = await make_user(fame=30)
        b = await make_user(fame=50)
        c = await make_user(fame=1, total_streams=200)
        idle = await make_user()

        ranked = await update_global_rankings(db_session)
        assert ranked == 3

        positions = await _positions(db_session)
        assert positions[b.id] == 1
        assert positions[a.id] == 2
        assert positions[c.id] == 3
        assert positions[idle.id] == 0

    @pytest.mark.asyncio
    async def test_tie_goes_to_lower_user_id(self, db_session, make_user):
        first = await make_user(fame=10, fanbase=5)
        second = await make_user(fame=10, fanbase=5)

        await update_global_rankings(db_session)
        positions = await _positions(db_session)
        assert positions[first.id] == 1
        assert positions[second.id] == 2

    @pytest.mark.asyncio
    async def test_only_top_of_chart_is_ranked(self, db_session, make_user):
        users = [await make_user(fame=10 + i) for i in range(4)]

        ranked = await update_global_rankings(db_session, chart_size=2)
        assert ranked == 2

        positions = await _positions(db_session)
        assert positions[users[3].id] == 1
        assert positions[users[2].id] == 2
        assert positions[users[1].id] == 0
        assert positions[users[0].id] == 0

    @pytest.mark.asyncio
    async def test_recompute_replaces_stale_positions(self, db_session, make_user):
        leader = await make_user(fame=5, chart_position=1, projected_chart_position=1)
        riser = await make_user(fame=60, chart_position=2)

        await update_global_rankings(db_session)
        positions = await _positions(db_session)
        assert positions[riser.id] == 1
        assert positions[leader.id] == 2

        await db_session.refresh(leader)
        assert leader.projected_chart_position is None

    @pytest.mark.asyncio
    async def test_user_falling_inactive_is_unranked(self, db_session, make_user):
        user = await make_user(fame=1, total_streams=0, fanbase=0, chart_position=1)

        assert await update_global_rankings(db_session) == 0
        assert (await _positions(db_session))[user.id] == 0

    @pytest.mark.asyncio
    async def test_mirrors_chart_to_redis(self, db_session, make_user):
        a = await make_user(fame=30)
        b = await make_user(fame=50)
        redis = _fake_redis()

        await update_global_rankings(db_session, redis)

        redis.lock.assert_called_once()
        assert redis.lock.call_args.args[0] == RANKINGS_LOCK_KEY
        redis.lock.return_value.release.assert_awaited_once()
        pipe = redis.pipeline.return_value
        pipe.delete.assert_called_once_with(CHARTS_KEY)
        mapping = pipe.zadd.call_args.args[1]
        assert mapping == {str(b.id): 50_000.0, str(a.id): 30_000.0}
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lock_unavailable_skips_recompute(self, db_session, make_user):
        user = await make_user(fame=30)
        redis = _fake_redis()
        redis.lock.return_value.acquire = AsyncMock(return_value=False)

        assert await update_global_rankings(db_session, redis) == 0
        assert (await _positions(db_session))[user.id] == 0
        redis.lock.return_value.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lock_expiring_mid_run_keeps_ranked_count(self, db_session, make_user):
        user = await make_user(fame=30)
        redis = _fake_redis()
        redis.lock.return_value.release = AsyncMock(side_effect=LockError("no longer owned"))

        assert await update_global_rankings(db_session, redis) == 1
        assert (await _positions(db_session))[user.id] == 1
        redis.pipeline.return_value.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mirror_failure_keeps_database_chart(self, db_session, make_user):
        user = await make_user(fame=30)
        redis = _fake_redis()
        redis.pipeline.return_value.execute = AsyncMock(side_effect=ConnectionError("down"))

        assert await update_global_rankings(db_session, redis) == 1
        assert (await _positions(db_session))[user.id] == 1


class TestChartReads:
    @pytest.mark.asyncio
    async def test_get_charts_in_order(self, db_session, make_user):
        await make_user(fame=20, display_name="Low")
        await make_user(fame=80, display_name="High")
        await update_global_rankings(db_session)

        charts = await get_charts(db_session)
        assert [e["display_name"] for e in charts] == ["High", "Low"]
        assert [e["chart_position"] for e in charts] == [1, 2]
        assert charts[0]["score"] == 80_000.0

    @pytest.mark.asyncio
    async def test_user_rank(self, db_session, make_user):
        top = await make_user(fame=50, total_streams=100)
        mid = await make_user(fame=30, total_streams=900)
        tied = await make_user(fame=30, total_streams=10)

        assert await get_user_rank(db_session, top.id) == {"fame_rank": 1, "streams_rank": 2, "total_users": 3}
        assert await get_user_rank(db_session, mid.id) == {"fame_rank": 2, "streams_rank": 1, "total_users": 3}
        assert await get_user_rank(db_session, tied.id) == {"fame_rank": 3, "streams_rank": 3, "total_users": 3}

    @pytest.mark.asyncio
    async def test_inactive_user_rank(self, db_session, make_user):
        await make_user(fame=40)
        idle = await make_user()

        assert await get_user_rank(db_session, idle.id) == {"fame_rank": 0, "streams_rank": 0, "total_users": 1}

    @pytest.mark.asyncio
    async def test_seed_starting_stats_only_once(self, db_session, make_user, fixed_rng):
        user = await make_user()

        seeded = await seed_starting_stats(db_session, user.id, fixed_rng(0.5))
        assert (seeded.total_streams, seeded.daily_streams, seeded.fanbase) == (50, 25, 12)

        again = await seed_starting_stats(db_session, user.id, fixed_rng(0.9))
        assert again.total_streams == 50


class TestActivityDecay:
    @pytest.mark.asyncio
    async def test_decays_idle_users_only(self, db_session, make_user):
        idle = await make_user(daily_streams=1000, last_activity_date=NOW - timedelta(days=3))
        recent = await make_user(daily_streams=1000, last_activity_date=NOW - timedelta(hours=20))
        never = await make_user(daily_streams=1000)

        assert await apply_activity_decay(db_session, now=NOW) == 1

        for user in (idle, recent, never):
            await db_session.refresh(user)
        assert idle.daily_streams == 857
        assert recent.daily_streams == 1000
        assert never.daily_streams == 1000

    @pytest.mark.asyncio
    async def test_chart_position_untouched(self, db_session, make_user):
        user = await make_user(
            fame=20, daily_streams=500, chart_position=1, last_activity_date=NOW - timedelta(days=5)
        )

        await apply_activity_decay(db_session, now=NOW)
        await db_session.refresh(user)
        assert user.chart_position == 1
        assert user.daily_streams < 500
