"""Liveness, readiness and build info for the progression service.

/ready reports the chart as stored in the database next to its Redis mirror.
A mirror that lags is reported but does not fail readiness; the next
recompute rebuilds it.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.config import SERVICE_NAME, get_settings
from aetherwave.database import get_session
from aetherwave.db.models import User
from aetherwave.economy.tiers import TIER_CONFIGS
from aetherwave.ranking.ranking_engine import CHARTS_KEY
from aetherwave.redis_client import get_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Database is required; without Redis the service runs degraded."""
    checks: dict[str, str] = {}
    charted: int | None = None
    mirrored: int | None = None

    try:
        charted = (await db.execute(select(func.count(User.id)).where(User.chart_position > 0))).scalar_one()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    try:
        mirrored = await get_redis().zcard(CHARTS_KEY)
        checks["redis"] = "ok"
    except Exception as exc:
        checks["redis"] = f"error: {exc}"

    status = "ready" if all(v == "ok" for v in checks.values()) else "degraded"
    return {
        "status": status,
        "checks": checks,
        "chart": {
            "ranked": charted,
            "mirrored": mirrored,
            "in_sync": charted is not None and charted == mirrored,
        },
    }


@router.get("/version")
async def version() -> dict[str, object]:
    settings = get_settings()
    return {
        "service": SERVICE_NAME,
        "version": settings.app_version,
        "environment": settings.environment,
        "chart_size": settings.chart_size,
        "subscription_tiers": list(TIER_CONFIGS),
    }
