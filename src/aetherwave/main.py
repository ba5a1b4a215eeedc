"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from aetherwave.career.router import router as career_router
from aetherwave.config import get_settings
from aetherwave.database import close_db, init_db
from aetherwave.economy.router import router as economy_router
from aetherwave.health.router import router as health_router
from aetherwave.middleware import setup_middleware
from aetherwave.ranking.router import router as ranking_router
from aetherwave.redis_client import close_redis, init_redis


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open and close the database and Redis pools."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="AetherWave Progression API",
        description="Fame, charts, career progression and subscription economy for AetherWave virtual bands",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(ranking_router)
    app.include_router(career_router)
    app.include_router(economy_router)

    return app


app = create_app()
