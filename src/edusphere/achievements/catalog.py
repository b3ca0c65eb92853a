"""Badge catalog: the 14 EduSphere badges and their eligibility predicates.

The catalog is built once per process and never mutated. Badges without an
eligibility predicate (AI tutor, early/late sessions, speed learner) are never
evaluated automatically; they can only be granted through a manual award.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from edusphere.exceptions import UnknownBadge

if TYPE_CHECKING:
    from edusphere.achievements.stats import UserActivitySnapshot

Predicate = Callable[["UserActivitySnapshot"], bool]


class BadgeCategory(str, Enum):
    MILESTONE = "milestone"
    STREAK = "streak"
    PERFORMANCE = "performance"
    SOCIAL = "social"
    FEATURE = "feature"
    EXPLORATION = "exploration"
    HABIT = "habit"
    INTENSITY = "intensity"


@dataclass(frozen=True)
class BadgeDefinition:
    key: str
    name: str
    description: str
    icon: str
    points: int
    category: BadgeCategory
    requirements: Mapping[str, Any] = field(default_factory=dict, compare=False)
    eligibility: Predicate | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.points < 0:
            raise ValueError(f"Badge {self.key!r} has negative points: {self.points}")
        object.__setattr__(self, "requirements", MappingProxyType(dict(self.requirements)))

    @property
    def auto_awarded(self) -> bool:
        """True when the evaluator can grant this badge on its own."""
        return self.eligibility is not None

    def is_eligible(self, snapshot: UserActivitySnapshot) -> bool:
        if self.eligibility is None:
            return False
        return bool(self.eligibility(snapshot))


class BadgeCatalog:
    """Ordered, read-only registry of badge definitions keyed by badge key."""

    def __init__(self, definitions: Iterable[BadgeDefinition]) -> None:
        ordered = tuple(definitions)
        by_key: dict[str, BadgeDefinition] = {}
        for badge in ordered:
            if badge.key in by_key:
                raise ValueError(f"Duplicate badge key: {badge.key}")
            by_key[badge.key] = badge
        self._ordered = ordered
        self._by_key = MappingProxyType(by_key)

    def all(self) -> tuple[BadgeDefinition, ...]:
        """All badges in declaration order."""
        return self._ordered

    def lookup(self, key: str) -> BadgeDefinition:
        """Return the badge for ``key`` or raise UnknownBadge."""
        try:
            return self._by_key[key]
        except KeyError:
            raise UnknownBadge(key) from None

    def auto_evaluated(self) -> Iterator[BadgeDefinition]:
        """Badges that carry an eligibility predicate, in declaration order."""
        return (b for b in self._ordered if b.auto_awarded)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[BadgeDefinition]:
        return iter(self._ordered)


def _at_least(attr: str, threshold: int) -> Predicate:
    def check(snapshot: UserActivitySnapshot) -> bool:
        return getattr(snapshot, attr) >= threshold

    check.__name__ = f"{attr}_at_least_{threshold}"
    return check


def _has_perfect_lesson(snapshot: UserActivitySnapshot) -> bool:
    return snapshot.perfect_lesson_recorded


BADGE_DEFINITIONS: tuple[BadgeDefinition, ...] = (
    BadgeDefinition(
        key="first_lesson",
        name="First Steps",
        description="Completed your first lesson",
        icon="🎯",
        points=10,
        category=BadgeCategory.MILESTONE,
        requirements={"lessons_completed": 1},
        eligibility=_at_least("total_attempted", 1),
    ),
    BadgeDefinition(
        key="streak_3",
        name="3-Day Streak",
        description="Learned for 3 days in a row",
        icon="🔥",
        points=25,
        category=BadgeCategory.STREAK,
        requirements={"streak_days": 3},
        eligibility=_at_least("max_streak_days", 3),
    ),
    BadgeDefinition(
        key="streak_7",
        name="Week Warrior",
        description="Learned for 7 days in a row",
        icon="⚡",
        points=50,
        category=BadgeCategory.STREAK,
        requirements={"streak_days": 7},
        eligibility=_at_least("max_streak_days", 7),
    ),
    BadgeDefinition(
        key="streak_30",
        name="Monthly Master",
        description="Learned for 30 days in a row",
        icon="👑",
        points=200,
        category=BadgeCategory.STREAK,
        requirements={"streak_days": 30},
        eligibility=_at_least("max_streak_days", 30),
    ),
    BadgeDefinition(
        key="perfect_score",
        name="Perfect Score",
        description="Got 100% on a lesson",
        icon="⭐",
        points=30,
        category=BadgeCategory.PERFORMANCE,
        requirements={"perfect_lessons": 1},
        eligibility=_has_perfect_lesson,
    ),
    BadgeDefinition(
        key="accuracy_master",
        name="Accuracy Master",
        description="Maintained 90%+ accuracy over 10 lessons",
        icon="🎖️",
        points=75,
        category=BadgeCategory.PERFORMANCE,
        requirements={"high_accuracy_lessons": 10, "min_accuracy": 90},
        # One qualifying lesson record (>= 10 attempted at >= 90%) is enough.
        eligibility=_at_least("high_accuracy_lesson_count", 1),
    ),
    BadgeDefinition(
        key="social_sharer",
        name="Social Butterfly",
        description="Shared your first creation",
        icon="🦋",
        points=20,
        category=BadgeCategory.SOCIAL,
        requirements={"shares_made": 1},
        eligibility=_at_least("shares_count", 1),
    ),
    BadgeDefinition(
        key="community_star",
        name="Community Star",
        description="Received 10 likes on shared content",
        icon="🌟",
        points=50,
        category=BadgeCategory.SOCIAL,
        requirements={"likes_received": 10},
        eligibility=_at_least("total_likes_received", 10),
    ),
    BadgeDefinition(
        key="ai_tutor_fan",
        name="AI Tutor Fan",
        description="Used AI tutor 5 times",
        icon="🤖",
        points=40,
        category=BadgeCategory.FEATURE,
        requirements={"ai_tutor_sessions": 5},
    ),
    BadgeDefinition(
        key="problem_solver",
        name="Problem Solver",
        description="Solved 100 problems",
        icon="🧩",
        points=100,
        category=BadgeCategory.MILESTONE,
        requirements={"problems_solved": 100},
        eligibility=_at_least("total_correct", 100),
    ),
    BadgeDefinition(
        key="subject_explorer",
        name="Subject Explorer",
        description="Tried all 7 subjects",
        icon="🗺️",
        points=60,
        category=BadgeCategory.EXPLORATION,
        requirements={"subjects_tried": 7},
        eligibility=_at_least("subjects_tried", 7),
    ),
    BadgeDefinition(
        key="early_bird",
        name="Early Bird",
        description="Completed lessons before 9 AM",
        icon="🌅",
        points=15,
        category=BadgeCategory.HABIT,
        requirements={"early_sessions": 5},
    ),
    BadgeDefinition(
        key="night_owl",
        name="Night Owl",
        description="Completed lessons after 9 PM",
        icon="🦉",
        points=15,
        category=BadgeCategory.HABIT,
        requirements={"late_sessions": 5},
    ),
    BadgeDefinition(
        key="speed_learner",
        name="Speed Learner",
        description="Completed 5 lessons in one day",
        icon="💨",
        points=35,
        category=BadgeCategory.INTENSITY,
        requirements={"daily_lessons": 5},
    ),
)


@lru_cache
def get_catalog() -> BadgeCatalog:
    """Get the process-wide badge catalog (FastAPI dependency)."""
    return BadgeCatalog(BADGE_DEFINITIONS)
