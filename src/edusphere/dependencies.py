"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.achievements.catalog import BadgeCatalog, get_catalog
from edusphere.achievements.evaluator import AchievementEvaluator
from edusphere.achievements.leaderboard import LeaderboardService
from edusphere.database import get_session as _get_session
from edusphere.redis_client import get_optional_redis

get_db = _get_session


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client, or None when Redis is not configured."""
    yield get_optional_redis()


def get_evaluator(
    db: AsyncSession = Depends(get_db),  # noqa: B008
    catalog: BadgeCatalog = Depends(get_catalog),  # noqa: B008
    redis: object = Depends(get_redis_dep),  # noqa: B008
) -> AchievementEvaluator:
    """Per-request evaluator bound to the request's session."""
    return AchievementEvaluator(db, catalog, redis)


def get_leaderboard_service(
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> LeaderboardService:
    return LeaderboardService(db)
