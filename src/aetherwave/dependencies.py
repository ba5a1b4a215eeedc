"""Shared FastAPI dependencies."""

import random
from collections.abc import AsyncGenerator

from aetherwave.redis_client import get_redis as _get_redis

_rng = random.Random()


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client as a FastAPI dependency."""
    yield _get_redis()


def get_rng() -> random.Random:
    """Random source for the progression formulas (overridden in tests)."""
    return _rng
