"""
LevelUp Learning - Progress Models
Per-question practice history and daily level score snapshots
"""
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from levelup.core.database import Base, JSONType, UTCDateTime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubtopicQuestionRecord(Base):
    """
    One answered question during subtopic practice/testing.

    Append-only; mastery state is always recomputed from these rows.
    """

    __tablename__ = "subtopic_questions"
    __table_args__ = (
        Index("ix_subtopic_questions_user_subtopic_answered", "user_id", "subtopic_id", "answered_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
    )
    subtopic_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subtopics.id", ondelete="CASCADE"),
    )
    quiz_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("quizzes.id", ondelete="SET NULL"),
        nullable=True
    )
    question_id: Mapped[str] = mapped_column(String(100))
    is_correct: Mapped[bool] = mapped_column(Boolean)
    question_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_hash: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    difficulty_level: Mapped[int] = mapped_column(Integer, default=1)

    # Python-side default keeps sub-second ordering on every backend
    answered_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=_utcnow
    )


class DailyLevelScore(Base):
    """Average mastery across a level's subtopics, one row per user, level and day."""

    __tablename__ = "daily_level_scores"
    __table_args__ = (
        UniqueConstraint("user_id", "level_id", "score_date", name="uq_daily_level_scores_user_level_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
    )
    level_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("levels.id", ondelete="CASCADE"),
    )
    score_date: Mapped[date] = mapped_column(Date)
    avg_score: Mapped[float] = mapped_column(Float)
    # {subtopic_id: score}
    subtopic_scores: Mapped[dict] = mapped_column(JSONType, default=dict)
