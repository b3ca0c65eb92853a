"""ORM models for learner activity and the badge award ledger.

Schema provisioning happens outside this service; the models only map the
tables. JSON columns use JSONB on PostgreSQL and plain JSON elsewhere.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from edusphere.db.base import Base

_JSONType = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Activity sources (written by the progress and sharing handlers)
# ---------------------------------------------------------------------------


class UserProgress(Base):
    """Per-user progress for one subject and grade."""

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "subject", "grade", name="user_progress_user_subject_grade_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    subject: Mapped[str] = mapped_column(String(50), nullable=False)
    grade: Mapped[str] = mapped_column(String(20), nullable=False)
    total_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_correct: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    streak_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_activity: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, server_default=func.now()
    )


class SharedContent(Base):
    """Content a user shared with the community."""

    __tablename__ = "shared_content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    content_type: Mapped[str] = mapped_column(String(50), nullable=False)
    content_title: Mapped[str] = mapped_column(String(255), nullable=False)
    share_url: Mapped[str] = mapped_column(Text, nullable=False)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Award ledger
# ---------------------------------------------------------------------------


class UserAchievement(Base):
    """Badges earned by users. UNIQUE(user_id, badge_key) prevents duplicates."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_key", name="user_achievements_user_id_badge_key_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    badge_key: Mapped[str] = mapped_column(String(64), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    badge_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", _JSONType, nullable=False, default=dict)
