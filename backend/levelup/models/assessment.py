"""
LevelUp Learning - Assessment Models
SQLAlchemy models for adaptive placement sessions and placement results
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from levelup.core.database import Base, JSONType, UTCDateTime

if TYPE_CHECKING:
    from levelup.models.curriculum import Level, Subject


class Assessment(Base):
    """
    One adaptive placement session for a (user, subject) pair.

    ``completed_at IS NULL`` means the session is in progress. Completion is
    terminal: score_by_level, suggested_level_id and completed_at are written
    together, once.
    """

    __tablename__ = "assessments"

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
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        index=True
    )

    # Immutable snapshot of the generated pool
    # {"levels": [{id, name, sort_order}], "questions_by_level": {level_id: [question, ...]}}
    question_pool: Mapped[dict] = mapped_column(JSONType)
    starting_level_id: Mapped[str] = mapped_column(String(36))

    # Walk state
    current_level_index: Mapped[int] = mapped_column(Integer)
    current_question_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    used_question_ids: Mapped[list] = mapped_column(JSONType, default=list)
    answers: Mapped[list] = mapped_column(JSONType, default=list)
    last_direction: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Result (written once at completion)
    score_by_level: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    suggested_level_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("levels.id", ondelete="SET NULL"),
        nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True
    )

    # Relationships
    subject: Mapped["Subject"] = relationship("Subject")
    suggested_level: Mapped["Level | None"] = relationship("Level")

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class UserSubjectLevel(Base):
    """Where a user currently stands in a subject, updated by placement."""

    __tablename__ = "user_subject_levels"
    __table_args__ = (
        UniqueConstraint("user_id", "subject_id", name="uq_user_subject_levels_user_subject"),
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
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subjects.id", ondelete="CASCADE"),
    )
    current_level_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("levels.id", ondelete="CASCADE"),
    )
    suggested_level_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("levels.id", ondelete="SET NULL"),
        nullable=True
    )
    last_assessed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True
    )
