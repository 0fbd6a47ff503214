"""
LevelUp Learning - Streak Service
Daily quiz streaks, counted in the learner's own timezone
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from levelup.models.user import User

logger = logging.getLogger(__name__)


def local_today(tz_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date for ``now`` (default: current time) in the given timezone."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def next_streak(last_quiz_date: Optional[date], today: date, current_streak: int) -> Optional[int]:
    """
    Streak after a quiz on ``today``.

    Returns None when the streak already counts today; consecutive days
    extend it, anything else starts over at 1.
    """
    if last_quiz_date is None:
        return 1

    gap = (today - last_quiz_date).days
    if gap == 0:
        return None
    if gap == 1:
        return current_streak + 1
    return 1


class StreakService:
    """Maintains current and longest streaks on the user row."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_streak(
        self,
        user: User,
        tz_name: str = "UTC",
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Record a quiz day for the user.

        Called for the first complete attempt of a quiz. Same-day repeats
        leave the streak unchanged.
        """
        today = local_today(tz_name, now)
        streak = next_streak(user.last_quiz_date, today, user.current_streak)

        if streak is not None:
            if streak == 1 and user.current_streak > 1:
                logger.info("Streak reset for user %s (was %d days)", user.id, user.current_streak)
            user.current_streak = streak
            user.longest_streak = max(streak, user.longest_streak)
            user.last_quiz_date = today
            await self.db.flush()

        return {
            "current_streak": user.current_streak,
            "longest_streak": user.longest_streak,
            "last_quiz_date": user.last_quiz_date,
        }
