"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.achievements.catalog import BadgeCatalog, get_catalog
from edusphere.database import close_db, get_engine, get_session_factory, init_db
from edusphere.db.base import Base
from edusphere.db.models import SharedContent, UserProgress


@pytest_asyncio.fixture
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Session on a throwaway SQLite database with all tables created."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'edusphere_test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session_factory()() as session:
        yield session

    await close_db()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, sharing the test database."""
    from edusphere.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def catalog() -> BadgeCatalog:
    return get_catalog()


@pytest.fixture
def add_progress(db_session: AsyncSession) -> Callable[..., Awaitable[None]]:
    """Insert a user_progress row."""

    async def _add(
        user_id: str,
        subject: str = "math",
        attempted: int = 0,
        correct: int = 0,
        streak_days: int = 0,
        grade: str = "grade-3",
    ) -> None:
        db_session.add(UserProgress(
            user_id=user_id,
            subject=subject,
            grade=grade,
            total_attempted=attempted,
            total_correct=correct,
            streak_days=streak_days,
        ))
        await db_session.commit()

    return _add


@pytest.fixture
def add_share(db_session: AsyncSession) -> Callable[..., Awaitable[None]]:
    """Insert a shared_content row."""

    async def _add(user_id: str, likes: int = 0, title: str = "My volcano story") -> None:
        db_session.add(SharedContent(
            user_id=user_id,
            content_type="story",
            content_title=title,
            share_url=f"https://edusphere.example/share/{user_id}/{title.replace(' ', '-')}",
            likes=likes,
        ))
        await db_session.commit()

    return _add
