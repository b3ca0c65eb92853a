"""Achievement evaluator: checks a user's snapshot against the badge catalog."""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.achievements.catalog import BadgeCatalog, BadgeDefinition
from edusphere.achievements.ledger import AwardLedger
from edusphere.achievements.stats import UserActivitySnapshot, aggregate

logger = logging.getLogger(__name__)

BADGE_EARNED_CHANNEL = "pubsub:badge_earned"


class AchievementEvaluator:
    """Evaluates badge eligibility and records new awards."""

    def __init__(
        self,
        db: AsyncSession,
        catalog: BadgeCatalog,
        redis: Any = None,  # noqa: ANN401
    ) -> None:
        self.db = db
        self.catalog = catalog
        self.redis = redis
        self.ledger = AwardLedger(db)

    async def evaluate(self, user_id: str) -> list[BadgeDefinition]:
        """Award every badge the user now qualifies for.

        Returns the badges newly written to the ledger (may be empty).
        """
        snapshot = await aggregate(self.db, user_id)
        earned = await self.ledger.list_badges(user_id)

        awarded: list[BadgeDefinition] = []
        for badge in self.eligible_badges(snapshot, earned):
            if await self.ledger.award(user_id, badge, metadata={"source": "auto"}):
                awarded.append(badge)
                await self._emit_badge_earned(user_id, badge)

        if awarded:
            logger.info(
                "User %s earned %d new badge(s): %s",
                user_id, len(awarded), ", ".join(b.key for b in awarded),
            )
        return awarded

    def eligible_badges(
        self,
        snapshot: UserActivitySnapshot,
        earned: set[str],
    ) -> list[BadgeDefinition]:
        """Unearned, automatically evaluated badges whose predicate holds."""
        return [
            badge
            for badge in self.catalog.auto_evaluated()
            if badge.key not in earned and badge.is_eligible(snapshot)
        ]

    async def award_manually(self, user_id: str, badge_key: str) -> bool:
        """Grant a badge regardless of its predicate.

        Raises UnknownBadge for keys outside the catalog. Returns False when
        the user already holds the badge.
        """
        badge = self.catalog.lookup(badge_key)
        created = await self.ledger.award(user_id, badge, metadata={"source": "manual"})
        if created:
            await self._emit_badge_earned(user_id, badge)
        return created

    async def _emit_badge_earned(self, user_id: str, badge: BadgeDefinition) -> None:
        """Publish a badge-earned event for connected clients."""
        if self.redis is None:
            return
        try:
            await self.redis.publish(
                BADGE_EARNED_CHANNEL,
                json.dumps({
                    "user_id": user_id,
                    "badge_key": badge.key,
                    "badge_name": badge.name,
                    "icon": badge.icon,
                    "points": badge.points,
                    "category": badge.category.value,
                }),
            )
        except Exception:
            logger.warning("Failed to publish badge_earned notification", exc_info=True)
