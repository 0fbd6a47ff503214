"""
LevelUp Learning - Lesson Models
SQLAlchemy models for AI-generated lessons and lesson completion
"""
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from levelup.core.database import Base, JSONType, UTCDateTime

if TYPE_CHECKING:
    from levelup.models.curriculum import Subtopic


class Lesson(Base):
    """AI-generated lesson content for a subtopic."""

    __tablename__ = "lessons"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    subtopic_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subtopics.id", ondelete="CASCADE"),
        index=True
    )

    # Lesson content
    title: Mapped[str] = mapped_column(String(300))
    introduction: Mapped[str] = mapped_column(Text)
    # {"sections": [{"heading": ..., "content": ..., "examples": [...]}]}
    content: Mapped[dict] = mapped_column(JSONType)
    key_takeaways: Mapped[list] = mapped_column(JSONType, default=list)
    sort_order: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now()
    )

    # Relationships
    subtopic: Mapped["Subtopic"] = relationship("Subtopic", back_populates="lessons")


class LessonProgress(Base):
    """Lesson completion per user."""

    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_lesson_progress_user_lesson"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("lessons.id", ondelete="CASCADE"),
        index=True
    )
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    quiz_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Pending lesson quiz, with answers; cleared once it is submitted
    quiz_questions: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    first_viewed_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoDeeperExchange(Base):
    """A follow-up question about a lesson and the answer it got."""

    __tablename__ = "go_deeper_exchanges"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("lessons.id", ondelete="CASCADE"),
        index=True
    )
    prompt: Mapped[str] = mapped_column(Text)
    response: Mapped[str] = mapped_column(Text)
    is_relevant: Mapped[bool] = mapped_column(Boolean)
    confidence: Mapped[float] = mapped_column(Float, default=0.0)

    # Python-side default so history orders below one second
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=_utcnow
    )
