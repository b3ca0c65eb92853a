"""Pydantic response models for achievement and leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

# --- Badge ---


class BadgeResponse(BaseModel):
    key: str
    name: str
    description: str
    icon: str
    points: int
    category: str
    auto_awarded: bool
    requirements: dict[str, Any] = {}


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]
    total: int


# --- Stats ---


class UserStatsResponse(BaseModel):
    user_id: str
    total_attempted: int
    total_correct: int
    accuracy: float
    max_streak_days: int
    subjects_tried: int
    perfect_lesson_recorded: bool
    high_accuracy_lesson_count: int
    shares_count: int
    total_likes_received: int


# --- Awards ---


class AwardResponse(BaseModel):
    badge_key: str
    name: str
    description: str
    icon: str
    points: int
    category: str
    earned_at: datetime
    metadata: dict[str, Any] = {}


class UserAchievementsResponse(BaseModel):
    user_id: str
    achievements: list[AwardResponse]
    total_achievements: int
    total_points: int


class UserRankResponse(BaseModel):
    user_id: str
    total_points: int
    rank: int | None = None
    total_users: int
    streak: int = 0


class CheckAchievementsResponse(BaseModel):
    new_achievements: list[BadgeResponse]
    total_achievements: int
    user_stats: UserRankResponse
    message: str


class ManualAwardResponse(BaseModel):
    awarded: bool
    achievement: BadgeResponse
    message: str


# --- Leaderboard ---


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    display_name: str
    avatar: str
    total_points: int


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntryResponse]
    total_users: int
    user_rank: int | None = None
    user_points: int = 0
    user_streak: int = 0
