"""Health endpoint tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    """GET /health returns 200 with healthy status."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "aetherwave-progression"}


@pytest.mark.asyncio
async def test_readiness_without_redis(client: AsyncClient, make_user) -> None:
    """Database is reachable; missing Redis reports degraded with no mirror count."""
    await make_user(fame=40, chart_position=1)
    await make_user(fame=20)

    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["redis"].startswith("error")
    assert data["chart"] == {"ranked": 1, "mirrored": None, "in_sync": False}


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    """GET /version names the service, chart size and tier catalogue."""
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "aetherwave-progression"
    assert data["version"] == "0.1.0"
    assert data["chart_size"] == 100
    assert data["subscription_tiers"] == ["Fan", "Artist", "Record Label", "Mogul"]
    assert "environment" in data
