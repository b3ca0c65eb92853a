"""Stat aggregator: reduces raw activity rows into a per-user snapshot.

Snapshots are recomputed on every call and never stored. A user with no
rows gets the zero snapshot rather than an error.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.database import storage_errors
from edusphere.db.models import SharedContent, UserProgress

logger = logging.getLogger(__name__)

HIGH_ACCURACY_MIN_ATTEMPTED = 10
HIGH_ACCURACY_RATIO = 0.9


@dataclass(frozen=True)
class ProgressRecord:
    subject: str
    attempted: int
    correct: int
    streak_days: int

    @property
    def is_perfect(self) -> bool:
        return self.attempted > 0 and self.correct == self.attempted

    @property
    def is_high_accuracy(self) -> bool:
        return (
            self.attempted >= HIGH_ACCURACY_MIN_ATTEMPTED
            and self.correct / self.attempted >= HIGH_ACCURACY_RATIO
        )


@dataclass(frozen=True)
class ShareRecord:
    likes: int


@dataclass(frozen=True)
class UserActivitySnapshot:
    total_attempted: int = 0
    total_correct: int = 0
    max_streak_days: int = 0
    subjects_tried: int = 0
    perfect_lesson_recorded: bool = False
    high_accuracy_lesson_count: int = 0
    shares_count: int = 0
    total_likes_received: int = 0

    @property
    def accuracy(self) -> float:
        """Overall correct/attempted ratio, 0.0 when nothing was attempted."""
        if self.total_attempted == 0:
            return 0.0
        return self.total_correct / self.total_attempted


def build_snapshot(
    progress: Sequence[ProgressRecord],
    shares: Sequence[ShareRecord],
) -> UserActivitySnapshot:
    """Fold progress and share records into a snapshot."""
    return UserActivitySnapshot(
        total_attempted=sum(p.attempted for p in progress),
        total_correct=sum(p.correct for p in progress),
        max_streak_days=max((p.streak_days for p in progress), default=0),
        subjects_tried=len({p.subject for p in progress}),
        perfect_lesson_recorded=any(p.is_perfect for p in progress),
        high_accuracy_lesson_count=sum(1 for p in progress if p.is_high_accuracy),
        shares_count=len(shares),
        total_likes_received=sum(s.likes for s in shares),
    )


async def list_progress(db: AsyncSession, user_id: str) -> list[ProgressRecord]:
    """All progress rows for a user, across subjects and grades."""
    async with storage_errors(db):
        result = await db.execute(
            select(
                UserProgress.subject,
                UserProgress.total_attempted,
                UserProgress.total_correct,
                UserProgress.streak_days,
            ).where(UserProgress.user_id == user_id)
        )
        rows = result.all()
    return [
        ProgressRecord(
            subject=row.subject,
            attempted=row.total_attempted or 0,
            correct=row.total_correct or 0,
            streak_days=row.streak_days or 0,
        )
        for row in rows
    ]


async def list_shares(db: AsyncSession, user_id: str) -> list[ShareRecord]:
    """Like counts of every item the user shared."""
    async with storage_errors(db):
        result = await db.execute(
            select(SharedContent.likes).where(SharedContent.user_id == user_id)
        )
        likes = result.scalars().all()
    return [ShareRecord(likes=value or 0) for value in likes]


async def aggregate(db: AsyncSession, user_id: str) -> UserActivitySnapshot:
    """Build a fresh activity snapshot for ``user_id``."""
    progress = await list_progress(db, user_id)
    shares = await list_shares(db, user_id)
    snapshot = build_snapshot(progress, shares)
    logger.debug(
        "Snapshot for %s: %d progress rows, %d shares, max streak %d",
        user_id, len(progress), len(shares), snapshot.max_streak_days,
    )
    return snapshot
