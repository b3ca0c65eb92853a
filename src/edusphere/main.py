"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from edusphere.achievements.catalog import get_catalog
from edusphere.achievements.router import router as achievements_router
from edusphere.config import get_settings
from edusphere.database import close_db, init_db
from edusphere.health.router import router as health_router
from edusphere.middleware import setup_middleware
from edusphere.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    catalog = get_catalog()
    logger.info(
        "Badge catalog loaded: %d badges (%d evaluated automatically)",
        len(catalog), sum(1 for _ in catalog.auto_evaluated()),
    )

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EduSphere Achievements API",
        description="Badge awarding and leaderboard engine for EduSphere AI",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(achievements_router)

    return app


app = create_app()
