"""
LevelUp Learning - Curriculum Models
SQLAlchemy models for subjects, ordered levels, and subtopics
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from levelup.core.database import Base, UTCDateTime

if TYPE_CHECKING:
    from levelup.models.lesson import Lesson


class Subject(Base):
    """Academic subjects (Math, Reading, ...)."""

    __tablename__ = "subjects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)  # Icon name or emoji
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now()
    )

    # Relationships
    levels: Mapped[list["Level"]] = relationship(
        "Level",
        back_populates="subject",
        cascade="all, delete-orphan",
        order_by="Level.sort_order",
    )


class Level(Base):
    """
    Ordered proficiency tier within a subject (e.g. 1st Grade, 2nd Grade).

    Levels are totally ordered by ``sort_order``; adjacent levels define
    "up" and "down" during placement.
    """

    __tablename__ = "levels"
    __table_args__ = (
        UniqueConstraint("subject_id", "sort_order", name="uq_levels_subject_sort_order"),
    )

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
    name: Mapped[str] = mapped_column(String(100))
    sort_order: Mapped[int] = mapped_column(Integer)

    # Relationships
    subject: Mapped["Subject"] = relationship("Subject", back_populates="levels")
    subtopics: Mapped[list["Subtopic"]] = relationship(
        "Subtopic",
        back_populates="level",
        cascade="all, delete-orphan",
        order_by="Subtopic.sort_order",
    )


class Subtopic(Base):
    """Unit of curriculum within a level; mastery is tracked per subtopic."""

    __tablename__ = "subtopics"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    level_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("levels.id", ondelete="CASCADE"),
        index=True
    )
    name: Mapped[str] = mapped_column(String(200))
    # Fixed generation prompt used for lessons and subtopic tests
    prompt: Mapped[str] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    # Relationships
    level: Mapped["Level"] = relationship("Level", back_populates="subtopics")
    lessons: Mapped[list["Lesson"]] = relationship(
        "Lesson",
        back_populates="subtopic",
        cascade="all, delete-orphan",
        order_by="Lesson.sort_order",
    )
