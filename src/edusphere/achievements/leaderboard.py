"""Leaderboard aggregator: ranks users by total badge points.

Totals are recomputed from the award ledger on every query. Ranks are
1-based positions in a stable descending sort: users with equal points get
distinct consecutive ranks, the one whose first award came earlier first.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.achievements.ledger import AwardLedger

logger = logging.getLogger(__name__)

AVATAR_URL_TEMPLATE = "https://api.dicebear.com/7.x/avataaars/svg?seed={user_id}"


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    total_points: int
    rank: int

    @property
    def display_name(self) -> str:
        return f"User {self.user_id[:8]}"

    @property
    def avatar_url(self) -> str:
        return AVATAR_URL_TEMPLATE.format(user_id=self.user_id)


@dataclass(frozen=True)
class UserRank:
    total_points: int
    rank: int
    total_users: int


@dataclass(frozen=True)
class LeaderboardPage:
    """Top entries plus the board size, and the caller's standing when asked for."""

    entries: list[LeaderboardEntry]
    total_users: int
    user_rank: UserRank | None = None


def rank_totals(totals: Mapping[str, int]) -> list[LeaderboardEntry]:
    """Rank users by points DESC, keeping input order among equal totals."""
    ordered = sorted(totals.items(), key=lambda item: -item[1])
    return [
        LeaderboardEntry(user_id=user_id, total_points=points, rank=position)
        for position, (user_id, points) in enumerate(ordered, 1)
    ]


def _standing(ranking: list[LeaderboardEntry], user_id: str) -> UserRank | None:
    for entry in ranking:
        if entry.user_id == user_id:
            return UserRank(total_points=entry.total_points, rank=entry.rank, total_users=len(ranking))
    return None


class LeaderboardService:
    """Leaderboard queries over the award ledger."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.ledger = AwardLedger(db)

    async def ranking(self) -> list[LeaderboardEntry]:
        """The full ranked list of users holding at least one badge."""
        return rank_totals(await self.ledger.total_points_all_users())

    async def page(self, n: int, user_id: str | None = None) -> LeaderboardPage:
        """Top ``n`` entries, the board size and ``user_id``'s rank from one ranking query."""
        if n < 0:
            raise ValueError(f"Leaderboard size must be non-negative, got {n}")
        ranking = await self.ranking()
        page = LeaderboardPage(
            entries=ranking[:n],
            total_users=len(ranking),
            user_rank=_standing(ranking, user_id) if user_id else None,
        )
        logger.debug("Leaderboard top %d: %d of %d users", n, len(page.entries), page.total_users)
        return page

    async def top_n(self, n: int) -> list[LeaderboardEntry]:
        return (await self.page(n)).entries

    async def rank_of(self, user_id: str) -> UserRank | None:
        """Rank of one user, or None when they have no award records."""
        return (await self.page(0, user_id)).user_rank
