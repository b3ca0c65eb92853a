"""Award ledger: append-only, de-duplicated record of earned badges.

At-most-once awarding is enforced by UNIQUE(user_id, badge_key): every award
is a single ``INSERT ... ON CONFLICT DO NOTHING RETURNING id``. The
existence check in ``award`` only skips a round trip for the common case.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.achievements.catalog import BadgeDefinition
from edusphere.database import storage_errors
from edusphere.db.models import UserAchievement

logger = logging.getLogger(__name__)


class AwardLedger:
    """Reads and appends rows of ``user_achievements``."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _insert(self) -> Any:  # noqa: ANN401
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite_insert(UserAchievement)
        return pg_insert(UserAchievement)

    async def has_badge(self, user_id: str, badge_key: str) -> bool:
        """Check if user already holds a specific badge."""
        async with storage_errors(self.db):
            result = await self.db.execute(
                select(UserAchievement.id).where(
                    UserAchievement.user_id == user_id,
                    UserAchievement.badge_key == badge_key,
                )
            )
            return result.scalar_one_or_none() is not None

    async def award(
        self,
        user_id: str,
        badge: BadgeDefinition,
        metadata: dict[str, Any] | None = None,
        *,
        precheck: bool = True,
    ) -> bool:
        """Append an award record.

        Returns True if a new row was written, False if the user already had
        the badge (including when a concurrent award won the race).
        """
        if precheck and await self.has_badge(user_id, badge.key):
            return False

        stmt = (
            self._insert()
            .values(
                user_id=user_id,
                badge_key=badge.key,
                points=badge.points,
                category=badge.category.value,
                earned_at=datetime.now(timezone.utc),
                badge_metadata=metadata or {},
            )
            .on_conflict_do_nothing(index_elements=["user_id", "badge_key"])
            .returning(UserAchievement.id)
        )
        async with storage_errors(self.db):
            result = await self.db.execute(stmt)
            created = result.scalar_one_or_none() is not None
            await self.db.commit()

        if created:
            logger.info("Awarded badge %s (%d pts) to %s", badge.key, badge.points, user_id)
        else:
            logger.debug("Badge %s already held by %s", badge.key, user_id)
        return created

    async def list_badges(self, user_id: str) -> set[str]:
        """Keys of every badge the user holds."""
        async with storage_errors(self.db):
            result = await self.db.execute(
                select(UserAchievement.badge_key).where(UserAchievement.user_id == user_id)
            )
            return set(result.scalars().all())

    async def list_awards(self, user_id: str) -> list[UserAchievement]:
        """Award records for a user, most recent first."""
        async with storage_errors(self.db):
            result = await self.db.execute(
                select(UserAchievement)
                .where(UserAchievement.user_id == user_id)
                .order_by(UserAchievement.earned_at.desc(), UserAchievement.id.desc())
            )
            return list(result.scalars().all())

    async def total_points(self, user_id: str) -> int:
        async with storage_errors(self.db):
            result = await self.db.execute(
                select(func.coalesce(func.sum(UserAchievement.points), 0)).where(
                    UserAchievement.user_id == user_id
                )
            )
            return int(result.scalar_one())

    async def total_points_all_users(self) -> dict[str, int]:
        """Grouped point totals, keyed in order of each user's first award."""
        async with storage_errors(self.db):
            result = await self.db.execute(
                select(
                    UserAchievement.user_id,
                    func.sum(UserAchievement.points).label("total_points"),
                )
                .group_by(UserAchievement.user_id)
                .order_by(func.min(UserAchievement.id))
            )
            return {row.user_id: int(row.total_points or 0) for row in result}
