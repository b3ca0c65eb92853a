"""Achievement evaluator tests: awarding, idempotence, manual path."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from edusphere.achievements.evaluator import BADGE_EARNED_CHANNEL, AchievementEvaluator
from edusphere.achievements.ledger import AwardLedger
from edusphere.achievements.stats import UserActivitySnapshot
from edusphere.exceptions import UnknownBadge


@pytest.fixture
def evaluator(db_session, catalog) -> AchievementEvaluator:
    return AchievementEvaluator(db_session, catalog)


class TestEvaluate:

    @pytest.mark.asyncio
    async def test_first_perfect_lesson(self, evaluator, add_progress):
        await add_progress("maya", subject="math", attempted=1, correct=1, streak_days=1)

        awarded = await evaluator.evaluate("maya")

        assert [b.key for b in awarded] == ["first_lesson", "perfect_score"]
        assert await evaluator.ledger.list_badges("maya") == {"first_lesson", "perfect_score"}

    @pytest.mark.asyncio
    async def test_second_evaluation_is_empty(self, evaluator, add_progress):
        await add_progress("maya", subject="math", attempted=1, correct=1, streak_days=1)

        await evaluator.evaluate("maya")
        before = await evaluator.ledger.list_awards("maya")
        again = await evaluator.evaluate("maya")
        after = await evaluator.ledger.list_awards("maya")

        assert again == []
        assert len(after) == len(before) == 2

    @pytest.mark.asyncio
    async def test_unknown_user_earns_nothing(self, evaluator):
        assert await evaluator.evaluate("ghost") == []
        assert await evaluator.ledger.list_badges("ghost") == set()

    @pytest.mark.asyncio
    async def test_six_day_streak_misses_week_badge(self, evaluator, add_progress):
        await add_progress("leo", attempted=3, correct=1, streak_days=6)
        keys = {b.key for b in await evaluator.evaluate("leo")}
        assert "streak_3" in keys
        assert "streak_7" not in keys

    @pytest.mark.asyncio
    async def test_seven_day_streak_earns_week_badge(self, evaluator, add_progress):
        await add_progress("leo", attempted=3, correct=1, streak_days=7)
        keys = {b.key for b in await evaluator.evaluate("leo")}
        assert {"streak_3", "streak_7"} <= keys
        assert "streak_30" not in keys

    @pytest.mark.asyncio
    async def test_accuracy_master_boundary(self, evaluator, add_progress):
        await add_progress("ana", subject="reading", attempted=10, correct=8)
        assert "accuracy_master" not in {b.key for b in await evaluator.evaluate("ana")}

        await add_progress("bea", subject="reading", attempted=10, correct=9)
        assert "accuracy_master" in {b.key for b in await evaluator.evaluate("bea")}

    @pytest.mark.asyncio
    async def test_social_badges(self, evaluator, add_share):
        await add_share("sam", likes=4, title="Fractions comic")
        await add_share("sam", likes=6, title="Solar system song")
        keys = [b.key for b in await evaluator.evaluate("sam")]
        assert keys == ["social_sharer", "community_star"]

    @pytest.mark.asyncio
    async def test_new_activity_awards_only_new_badges(self, evaluator, add_progress):
        await add_progress("kai", subject="math", attempted=2, correct=1, streak_days=2)
        assert [b.key for b in await evaluator.evaluate("kai")] == ["first_lesson"]

        await add_progress("kai", subject="science", attempted=4, correct=4, streak_days=3)
        assert [b.key for b in await evaluator.evaluate("kai")] == ["streak_3", "perfect_score"]

    @pytest.mark.asyncio
    async def test_manual_badges_never_awarded_automatically(self, evaluator, add_progress, add_share):
        subjects = ["math", "science", "reading", "writing", "history", "geography", "art"]
        for subject in subjects:
            await add_progress("max", subject=subject, attempted=40, correct=40, streak_days=31)
        await add_share("max", likes=25)

        keys = {b.key for b in await evaluator.evaluate("max")}
        assert keys == {
            "first_lesson", "streak_3", "streak_7", "streak_30", "perfect_score",
            "accuracy_master", "social_sharer", "community_star",
            "problem_solver", "subject_explorer",
        }

    def test_eligible_badges_skips_earned(self, evaluator):
        snapshot = UserActivitySnapshot(total_attempted=5, total_correct=5, perfect_lesson_recorded=True)
        keys = [b.key for b in evaluator.eligible_badges(snapshot, {"first_lesson"})]
        assert keys == ["perfect_score"]

    @pytest.mark.asyncio
    async def test_badge_won_by_concurrent_award_is_not_reported(self, evaluator, add_progress, catalog, db_session):
        await add_progress("zoe", attempted=1, correct=0)
        # Another request awards the badge after this one read the earned set.
        evaluator.ledger.list_badges = AsyncMock(return_value=set())
        await AwardLedger(db_session).award("zoe", catalog.lookup("first_lesson"))

        assert await evaluator.evaluate("zoe") == []


class TestAwardManually:

    @pytest.mark.asyncio
    async def test_awards_manual_only_badge(self, evaluator):
        assert await evaluator.award_manually("nia", "ai_tutor_fan") is True
        [record] = await evaluator.ledger.list_awards("nia")
        assert record.badge_key == "ai_tutor_fan"
        assert record.points == 40
        assert record.category == "feature"
        assert record.badge_metadata == {"source": "manual"}

    @pytest.mark.asyncio
    async def test_repeat_manual_award_returns_false(self, evaluator):
        assert await evaluator.award_manually("nia", "early_bird") is True
        assert await evaluator.award_manually("nia", "early_bird") is False

    @pytest.mark.asyncio
    async def test_unknown_badge_rejected_without_write(self, evaluator):
        with pytest.raises(UnknownBadge):
            await evaluator.award_manually("nia", "time_traveller")
        assert await evaluator.ledger.list_awards("nia") == []

    @pytest.mark.asyncio
    async def test_manual_award_blocks_later_automatic_award(self, evaluator, add_progress):
        await evaluator.award_manually("ivy", "first_lesson")
        await add_progress("ivy", attempted=1, correct=0)
        assert await evaluator.evaluate("ivy") == []


class TestBadgeEarnedEvents:

    @pytest.mark.asyncio
    async def test_publishes_each_new_badge(self, db_session, catalog, add_progress):
        redis = MagicMock()
        redis.publish = AsyncMock(return_value=1)
        evaluator = AchievementEvaluator(db_session, catalog, redis)
        await add_progress("omar", attempted=1, correct=1, streak_days=1)

        await evaluator.evaluate("omar")

        assert redis.publish.await_count == 2
        channel, payload = redis.publish.await_args_list[0].args
        assert channel == BADGE_EARNED_CHANNEL
        assert json.loads(payload) == {
            "user_id": "omar",
            "badge_key": "first_lesson",
            "badge_name": "First Steps",
            "icon": "🎯",
            "points": 10,
            "category": "milestone",
        }

    @pytest.mark.asyncio
    async def test_no_event_for_duplicate(self, db_session, catalog):
        redis = MagicMock()
        redis.publish = AsyncMock(return_value=1)
        evaluator = AchievementEvaluator(db_session, catalog, redis)

        await evaluator.award_manually("omar", "night_owl")
        await evaluator.award_manually("omar", "night_owl")

        assert redis.publish.await_count == 1

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_undo_award(self, db_session, catalog):
        redis = MagicMock()
        redis.publish = AsyncMock(side_effect=ConnectionError("redis down"))
        evaluator = AchievementEvaluator(db_session, catalog, redis)

        assert await evaluator.award_manually("omar", "speed_learner") is True
        assert await evaluator.ledger.list_badges("omar") == {"speed_learner"}
