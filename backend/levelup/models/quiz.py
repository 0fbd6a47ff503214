"""
LevelUp Learning - Quiz Models
Generated quizzes (custom or subtopic tests) and their attempts
"""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from levelup.core.database import Base, JSONType, UTCDateTime


class Quiz(Base):
    """A generated multiple choice quiz."""

    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        index=True
    )
    level_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("levels.id", ondelete="CASCADE"),
        index=True
    )
    # Set for subtopic tests; answers then feed mastery tracking
    subtopic_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("subtopics.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    topic_name: Mapped[str] = mapped_column(String(200))

    # List of {id, question, options, correct_answer, explanation}
    questions: Mapped[list] = mapped_column(JSONType)
    difficulty_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    question_count: Mapped[int] = mapped_column(Integer)
    time_limit_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now()
    )


class QuizAttempt(Base):
    """A submitted attempt at a quiz."""

    __tablename__ = "quiz_attempts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("quizzes.id", ondelete="CASCADE"),
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    is_first_attempt: Mapped[bool] = mapped_column(Boolean, default=False)
    score: Mapped[int] = mapped_column(Integer)
    total_questions: Mapped[int] = mapped_column(Integer)
    answered_count: Mapped[int] = mapped_column(Integer)

    # List of {question_id, selected_answer, is_correct}
    answers: Mapped[list] = mapped_column(JSONType)
    time_taken_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    completed_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now()
    )

    @property
    def is_complete(self) -> bool:
        return self.answered_count == self.total_questions
