"""
LevelUp Learning - Mastery Tracking Tests
"""
import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select

from levelup.core.exceptions import NotFound
from levelup.models.progress import DailyLevelScore
from levelup.services.mastery import (
    MasteryService,
    difficulty_level,
    is_passed,
    questions_until_pass,
    round_half_up,
    test_number,
    trailing_score,
)

from factories import add_answers, add_lessons


class TestRules:

    @pytest.mark.parametrize("outcomes,expected", [
        ([], 0),
        ([True, True, False], 67),
        ([True, False], 50),
        ([True] + [False] * 7, 13),
        ([False] * 3, 0),
    ])
    def test_trailing_score(self, outcomes, expected):
        assert trailing_score(outcomes) == expected

    def test_trailing_score_only_counts_the_window(self):
        # Newest first: 40 correct answers then 10 older misses
        outcomes = [True] * 40 + [False] * 10
        assert trailing_score(outcomes, window=40) == 100
        assert trailing_score(outcomes, window=50) == 80

    @pytest.mark.parametrize("answered,score,expected", [
        (40, 91, True),
        (40, 90, False),
        (39, 100, False),
        (120, 95, True),
    ])
    def test_is_passed(self, answered, score, expected):
        assert is_passed(answered, score) is expected

    @pytest.mark.parametrize("answered,expected", [(0, 1), (9, 1), (10, 2), (25, 3), (30, 4), (39, 4), (40, 4), (100, 4)])
    def test_difficulty_level(self, answered, expected):
        assert difficulty_level(answered) == expected

    @pytest.mark.parametrize("answered,expected", [(0, 1), (19, 2), (39, 4), (40, "practice"), (70, "practice")])
    def test_test_number(self, answered, expected):
        assert test_number(answered) == expected

    def test_questions_until_pass(self):
        assert questions_until_pass(10) == 30
        assert questions_until_pass(40) == 0
        assert questions_until_pass(45) == 0

    def test_round_half_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(12.49) == 12


@pytest.mark.asyncio
async def test_subtopic_mastery_uses_newest_answers(db_session, user, curriculum):
    subtopic = curriculum.subtopics[0]
    # Oldest five wrong, newest forty right
    await add_answers(db_session, user, subtopic, [False] * 5 + [True] * 40)

    state = await MasteryService(db_session).get_subtopic_mastery(user.id, subtopic.id)

    assert state.questions_answered == 45
    assert state.score == 100
    assert state.passed is True
    assert state.test_number == "practice"
    assert state.difficulty_level == 4


@pytest.mark.asyncio
async def test_subtopic_without_answers(db_session, user, curriculum):
    state = await MasteryService(db_session).get_subtopic_mastery(user.id, curriculum.subtopics[0].id)

    assert state.score == 0
    assert state.passed is False
    assert state.test_number == 1
    assert state.questions_until_pass == 40


@pytest.mark.asyncio
async def test_daily_score_upsert_overwrites_same_day(db_session, user, curriculum):
    service = MasteryService(db_session)
    level = curriculum.levels[0]
    a, b = curriculum.subtopics
    today = date(2024, 5, 1)

    assert await service.record_daily_score(user.id, level.id, {a.id: 80, b.id: 40}, on_date=today) == 60
    assert await service.record_daily_score(user.id, level.id, {a.id: 100, b.id: 0}, on_date=today) == 50

    count = (await db_session.execute(select(func.count()).select_from(DailyLevelScore))).scalar_one()
    assert count == 1

    history = await service.get_daily_history(user.id, level.id, today=today)
    assert [(p.date, p.score) for p in history] == [(today, 50)]


@pytest.mark.asyncio
async def test_daily_history_window(db_session, user, curriculum):
    service = MasteryService(db_session)
    level = curriculum.levels[0]
    scores = {curriculum.subtopics[0].id: 70}

    await service.record_daily_score(user.id, level.id, scores, on_date=date(2024, 1, 1))
    await service.record_daily_score(user.id, level.id, scores, on_date=date(2024, 5, 20))

    history = await service.get_daily_history(user.id, level.id, today=date(2024, 6, 1))
    assert [p.date for p in history] == [date(2024, 5, 20)]


@pytest.mark.asyncio
async def test_level_progress(db_session, user, curriculum):
    passed_subtopic, other = curriculum.subtopics
    await add_answers(db_session, user, passed_subtopic, [True] * 40)
    await add_lessons(db_session, other, count=2)

    progress = await MasteryService(db_session).get_level_progress(user.id, curriculum.levels[0].id)

    assert progress.level.name == "1st Grade"
    assert progress.level.subject_name == "Math"
    assert [s.name for s in progress.subtopics] == [passed_subtopic.name, other.name]
    assert progress.subtopics[0].passed is True
    assert progress.subtopics[1].total_lessons == 2
    assert progress.subtopics[1].completed_lessons == 0
    assert (progress.progress.total, progress.progress.passed, progress.progress.percent) == (2, 1, 50)

    today = datetime.now(timezone.utc).date()
    assert [(p.date, p.score) for p in progress.daily_history] == [(today, 50)]


@pytest.mark.asyncio
async def test_level_progress_unknown_level(db_session, user):
    with pytest.raises(NotFound):
        await MasteryService(db_session).get_level_progress(user.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_test_eligibility(db_session, user, curriculum):
    with_lessons, without_lessons = curriculum.subtopics
    await add_lessons(db_session, with_lessons, count=3)
    service = MasteryService(db_session)

    blocked = await service.get_test_eligibility(user.id, with_lessons.id)
    assert blocked.eligible is False
    assert (blocked.lessons_completed, blocked.lessons_total) == (0, 3)
    assert blocked.level_name == "1st Grade"

    open_ = await service.get_test_eligibility(user.id, without_lessons.id)
    assert open_.eligible is True
    assert open_.test_number == 1
