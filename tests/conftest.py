"""Shared test fixtures."""

from __future__ import annotations

import os

# Settings are read at import time by the app factory.
os.environ["AW_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AW_JWT_SECRET"] = "test-secret-not-for-production"
os.environ["AW_LOG_FORMAT"] = "console"

import random  # noqa: E402
from collections.abc import AsyncGenerator, Callable, Sequence  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from aetherwave.config import get_settings  # noqa: E402

get_settings.cache_clear()

from aetherwave.auth.jwt import create_access_token  # noqa: E402
from aetherwave.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from aetherwave.db.base import Base  # noqa: E402
from aetherwave.db.models import ArtistCard, User  # noqa: E402
from aetherwave.dependencies import get_redis_dep, get_rng  # noqa: E402
from aetherwave.main import create_app  # noqa: E402


class FixedRandom(random.Random):
    """random() replays the given values in a loop."""

    def __init__(self, values: Sequence[float]) -> None:
        super().__init__(0)
        self._values = list(values)
        self._index = 0

    def random(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


@pytest.fixture
def fixed_rng() -> Callable[..., FixedRandom]:
    """Factory: fixed_rng(0.5, 1.0) replays 0.5, 1.0, 0.5, ..."""
    return lambda *values: FixedRandom(values)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory schema per test, and a session on it."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session_factory()() as session:
        yield session

    await close_db()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client on the app, sharing the test database. No Redis."""
    app = create_app()
    app.dependency_overrides[get_redis_dep] = lambda: None
    app.dependency_overrides[get_rng] = lambda: FixedRandom([0.5, 1.0])

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory for committed users. Keyword arguments override column defaults."""

    async def _make(**overrides: Any) -> User:
        user = User(**overrides)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_card(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory for committed artist cards."""

    async def _make(user: User, **overrides: Any) -> ArtistCard:
        fields: dict[str, Any] = {
            "user_id": user.id,
            "band_name": "Neon Tides",
            "genre": "Techno",
        }
        fields.update(overrides)
        card = ArtistCard(**fields)
        db_session.add(card)
        await db_session.commit()
        return card

    return _make


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    return auth_headers_for
