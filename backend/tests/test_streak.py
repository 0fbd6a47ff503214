"""
LevelUp Learning - Streak Tests
"""
from datetime import date, datetime, timezone

import pytest

from levelup.services.streak import StreakService, local_today, next_streak


def test_local_today_uses_the_learners_timezone():
    now = datetime(2024, 3, 10, 3, 30, tzinfo=timezone.utc)
    assert local_today("UTC", now) == date(2024, 3, 10)
    assert local_today("America/New_York", now) == date(2024, 3, 9)
    assert local_today("Asia/Tokyo", now) == date(2024, 3, 10)


@pytest.mark.parametrize("last,current,expected", [
    (None, 0, 1),
    (date(2024, 3, 9), 4, 5),
    (date(2024, 3, 10), 4, None),
    (date(2024, 3, 7), 4, 1),
])
def test_next_streak(last, current, expected):
    assert next_streak(last, date(2024, 3, 10), current) == expected


@pytest.mark.asyncio
async def test_update_streak_over_several_days(db_session, user):
    service = StreakService(db_session)

    def at(day: int) -> datetime:
        return datetime(2024, 3, day, 12, tzinfo=timezone.utc)

    assert (await service.update_streak(user, now=at(1)))["current_streak"] == 1
    assert (await service.update_streak(user, now=at(2)))["current_streak"] == 2
    # Same day: unchanged
    assert (await service.update_streak(user, now=at(2)))["current_streak"] == 2
    assert (await service.update_streak(user, now=at(3)))["current_streak"] == 3

    # Missed a day: restart, longest is kept
    state = await service.update_streak(user, now=at(5))
    assert state == {"current_streak": 1, "longest_streak": 3, "last_quiz_date": date(2024, 3, 5)}


@pytest.mark.asyncio
async def test_update_streak_counts_local_days(db_session, user):
    service = StreakService(db_session)

    # 23:00 and 01:00 UTC on consecutive UTC days are the same day in Los Angeles
    await service.update_streak(user, "America/Los_Angeles", now=datetime(2024, 6, 1, 23, tzinfo=timezone.utc))
    state = await service.update_streak(user, "America/Los_Angeles", now=datetime(2024, 6, 2, 1, tzinfo=timezone.utc))

    assert state["current_streak"] == 1
    assert state["last_quiz_date"] == date(2024, 6, 1)
