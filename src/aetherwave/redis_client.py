"""Redis connection pool and best-effort event publishing."""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client (FastAPI dependency)."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def publish_event(client: object, channel: str, payload: dict[str, Any]) -> None:
    """Publish a JSON event on a pub/sub channel.

    Notifications are advisory: a missing client is a no-op and a Redis
    failure is logged, never raised into the calling transaction.
    """
    if client is None:
        return
    try:
        await client.publish(channel, json.dumps(payload, default=str))  # type: ignore[attr-defined]
    except Exception:
        logger.warning("event_publish_failed", channel=channel, exc_info=True)
