"""Scheduled progression jobs run against the shared session factory."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from aetherwave.workers.progression_worker import (
    ProgressionWorkerSettings,
    activity_decay,
    monthly_credit_renewal,
    refresh_global_rankings,
)


class TestWorkerTasks:
    @pytest.mark.asyncio
    async def test_refresh_global_rankings(self, db_session, make_user):
        user = await make_user(fame=12)

        assert await refresh_global_rankings({"redis": None}) == 1

        await db_session.refresh(user)
        assert user.chart_position == 1

    @pytest.mark.asyncio
    async def test_monthly_credit_renewal(self, db_session, make_user):
        user = await make_user(
            subscription_tier="Artist",
            credits=0,
            last_credit_renewal=datetime.now(timezone.utc) - timedelta(days=40),
        )

        assert await monthly_credit_renewal({}) == 1
        assert await monthly_credit_renewal({}) == 0

        await db_session.refresh(user)
        assert user.credits == 1500

    @pytest.mark.asyncio
    async def test_activity_decay_reranks(self, db_session, make_user):
        idle = await make_user(
            fame=5, daily_streams=1000, last_activity_date=datetime.now(timezone.utc) - timedelta(days=4)
        )

        assert await activity_decay({"redis": None}) == 1

        await db_session.refresh(idle)
        assert idle.daily_streams < 1000
        assert idle.chart_position == 1


class TestWorkerSettings:
    def test_registered_jobs(self):
        names = {f.__name__ for f in ProgressionWorkerSettings.functions}
        assert names == {"refresh_global_rankings", "monthly_credit_renewal", "activity_decay"}
        assert len(ProgressionWorkerSettings.cron_jobs) == 3
