"""
LevelUp Learning - User Models
SQLAlchemy models for user accounts and streak state
"""
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from levelup.core.database import Base, UTCDateTime


class User(Base):
    """Learner account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    display_name: Mapped[str] = mapped_column(String(100))
    timezone: Mapped[str] = mapped_column(String(50), default="UTC")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Streaks (first complete quiz attempt per calendar day)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_quiz_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now()
    )
