"""Achievement and leaderboard API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from edusphere.achievements.catalog import BadgeCatalog, BadgeDefinition, get_catalog
from edusphere.achievements.evaluator import AchievementEvaluator
from edusphere.achievements.leaderboard import LeaderboardService
from edusphere.achievements.schemas import (
    AllBadgesResponse,
    AwardResponse,
    BadgeResponse,
    CheckAchievementsResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    ManualAwardResponse,
    UserAchievementsResponse,
    UserRankResponse,
    UserStatsResponse,
)
from edusphere.achievements.stats import aggregate
from edusphere.config import get_settings
from edusphere.db.models import UserAchievement
from edusphere.dependencies import get_evaluator, get_leaderboard_service

router = APIRouter(prefix="/api/v1", tags=["Achievements"])


def _badge_response(badge: BadgeDefinition) -> BadgeResponse:
    return BadgeResponse(
        key=badge.key,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        points=badge.points,
        category=badge.category.value,
        auto_awarded=badge.auto_awarded,
        requirements=dict(badge.requirements),
    )


def _award_response(award: UserAchievement, catalog: BadgeCatalog) -> AwardResponse:
    # Rows for badges retired from the catalog still render with their stored data.
    if award.badge_key in catalog:
        badge = catalog.lookup(award.badge_key)
        name, description, icon = badge.name, badge.description, badge.icon
    else:
        name, description, icon = award.badge_key, "", ""
    return AwardResponse(
        badge_key=award.badge_key,
        name=name,
        description=description,
        icon=icon,
        points=award.points,
        category=award.category,
        earned_at=award.earned_at,
        metadata=award.badge_metadata or {},
    )


def _congratulation(count: int) -> str:
    if count == 0:
        return "Keep learning to unlock more achievements!"
    plural = "s" if count > 1 else ""
    return f"Congratulations! You earned {count} new achievement{plural}!"


async def _user_rank(service: LeaderboardService, user_id: str) -> UserRankResponse:
    page = await service.page(0, user_id)
    snapshot = await aggregate(service.db, user_id)
    standing = page.user_rank
    return UserRankResponse(
        user_id=user_id,
        total_points=standing.total_points if standing else 0,
        rank=standing.rank if standing else None,
        total_users=page.total_users,
        streak=snapshot.max_streak_days,
    )


# ── Catalog ──


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(catalog: BadgeCatalog = Depends(get_catalog)):  # noqa: B008
    """Get all badge definitions in catalog order."""
    return AllBadgesResponse(
        badges=[_badge_response(b) for b in catalog.all()],
        total=len(catalog),
    )


@router.get("/badges/{badge_key}", response_model=BadgeResponse)
async def get_badge(badge_key: str, catalog: BadgeCatalog = Depends(get_catalog)):  # noqa: B008
    """Get a single badge definition."""
    return _badge_response(catalog.lookup(badge_key))


# ── Per-user ──


@router.get("/users/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(
    user_id: str,
    evaluator: AchievementEvaluator = Depends(get_evaluator),  # noqa: B008
):
    """Current activity snapshot used for badge eligibility."""
    snapshot = await aggregate(evaluator.db, user_id)
    return UserStatsResponse(
        user_id=user_id,
        total_attempted=snapshot.total_attempted,
        total_correct=snapshot.total_correct,
        accuracy=round(snapshot.accuracy, 4),
        max_streak_days=snapshot.max_streak_days,
        subjects_tried=snapshot.subjects_tried,
        perfect_lesson_recorded=snapshot.perfect_lesson_recorded,
        high_accuracy_lesson_count=snapshot.high_accuracy_lesson_count,
        shares_count=snapshot.shares_count,
        total_likes_received=snapshot.total_likes_received,
    )


@router.get("/users/{user_id}/achievements", response_model=UserAchievementsResponse)
async def get_user_achievements(
    user_id: str,
    evaluator: AchievementEvaluator = Depends(get_evaluator),  # noqa: B008
):
    """Earned badges, most recent first."""
    awards = await evaluator.ledger.list_awards(user_id)
    return UserAchievementsResponse(
        user_id=user_id,
        achievements=[_award_response(a, evaluator.catalog) for a in awards],
        total_achievements=len(awards),
        total_points=sum(a.points for a in awards),
    )


@router.post("/users/{user_id}/achievements/check", response_model=CheckAchievementsResponse)
async def check_achievements(
    user_id: str,
    evaluator: AchievementEvaluator = Depends(get_evaluator),  # noqa: B008
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),  # noqa: B008
):
    """Evaluate the user's activity and award any newly earned badges."""
    awarded = await evaluator.evaluate(user_id)
    earned = await evaluator.ledger.list_badges(user_id)
    return CheckAchievementsResponse(
        new_achievements=[_badge_response(b) for b in awarded],
        total_achievements=len(earned),
        user_stats=await _user_rank(leaderboard, user_id),
        message=_congratulation(len(awarded)),
    )


@router.post("/users/{user_id}/achievements/{badge_key}", response_model=ManualAwardResponse)
async def award_achievement(
    user_id: str,
    badge_key: str,
    evaluator: AchievementEvaluator = Depends(get_evaluator),  # noqa: B008
):
    """Grant a badge directly (manual-only badges and admin corrections)."""
    awarded = await evaluator.award_manually(user_id, badge_key)
    badge = evaluator.catalog.lookup(badge_key)
    message = (
        f'Achievement "{badge.name}" awarded successfully!'
        if awarded
        else "Achievement already earned"
    )
    return ManualAwardResponse(awarded=awarded, achievement=_badge_response(badge), message=message)


# ── Leaderboard ──


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: int | None = Query(None, ge=1),
    user_id: str | None = Query(None),
    service: LeaderboardService = Depends(get_leaderboard_service),  # noqa: B008
):
    """Top users by badge points, plus the caller's standing when user_id is given."""
    settings = get_settings()
    size = min(limit or settings.leaderboard_default_limit, settings.leaderboard_max_limit)

    page = await service.page(size, user_id)
    response = LeaderboardResponse(
        leaderboard=[
            LeaderboardEntryResponse(
                rank=e.rank,
                user_id=e.user_id,
                display_name=e.display_name,
                avatar=e.avatar_url,
                total_points=e.total_points,
            )
            for e in page.entries
        ],
        total_users=page.total_users,
    )

    if user_id:
        snapshot = await aggregate(service.db, user_id)
        response.user_rank = page.user_rank.rank if page.user_rank else None
        response.user_points = page.user_rank.total_points if page.user_rank else 0
        response.user_streak = snapshot.max_streak_days

    return response


@router.get("/leaderboard/users/{user_id}", response_model=UserRankResponse)
async def get_user_rank(
    user_id: str,
    service: LeaderboardService = Depends(get_leaderboard_service),  # noqa: B008
):
    """A single user's rank; rank is null for users with no badges."""
    return await _user_rank(service, user_id)
