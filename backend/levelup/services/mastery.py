"""
LevelUp Learning - Mastery Tracker
Trailing-window subtopic mastery, pass rules, and daily level snapshots
"""
import logging
import uuid
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from levelup.core.config import settings
from levelup.core.exceptions import NotFound
from levelup.models.curriculum import Level, Subtopic
from levelup.models.progress import DailyLevelScore, SubtopicQuestionRecord
from levelup.schemas.progress import (
    DailyScorePoint,
    LevelProgress,
    LevelRef,
    ProgressTotals,
    SubtopicEligibility,
    SubtopicMasteryState,
    SubtopicProgress,
)
from levelup.services.lesson import LessonService, lessons_unlock_test

logger = logging.getLogger(__name__)

PRACTICE = "practice"


# ============================================================================
# Rules
# ============================================================================

def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (non-negative input)."""
    return int(value + 0.5)


def trailing_score(outcomes: Sequence[bool], window: Optional[int] = None) -> int:
    """
    Percent correct over the most recent outcomes.

    ``outcomes`` is newest first. Only the first ``window`` entries count;
    shorter histories use what they have. No outcomes scores 0.
    """
    window = window or settings.MASTERY_WINDOW_SIZE
    recent = list(outcomes)[:window]
    if not recent:
        return 0
    correct = sum(1 for outcome in recent if outcome)
    # Integer form of floor(100 * correct / n + 0.5)
    return (200 * correct + len(recent)) // (2 * len(recent))


def is_passed(total_answered: int, score: int) -> bool:
    """Passing needs the minimum history AND a score strictly above the threshold."""
    return total_answered >= settings.MASTERY_MIN_QUESTIONS and score > settings.MASTERY_PASS_THRESHOLD


def difficulty_level(total_answered: int) -> int:
    """1-4, stepping up every 10 answered questions."""
    return min(4, total_answered // 10 + 1)


def test_number(total_answered: int) -> Union[int, str]:
    if total_answered >= settings.MASTERY_MIN_QUESTIONS:
        return PRACTICE
    return total_answered // 10 + 1


# Not a pytest test function
test_number.__test__ = False


def questions_until_pass(total_answered: int) -> int:
    return max(0, settings.MASTERY_MIN_QUESTIONS - total_answered)


def mastery_state(subtopic_id: uuid.UUID, total_answered: int, score: int) -> SubtopicMasteryState:
    return SubtopicMasteryState(
        subtopic_id=subtopic_id,
        score=score,
        questions_answered=total_answered,
        passed=is_passed(total_answered, score),
        difficulty_level=difficulty_level(total_answered),
        test_number=test_number(total_answered),
        questions_until_pass=questions_until_pass(total_answered),
    )


# ============================================================================
# Service
# ============================================================================

class MasteryService:
    """Computes mastery from SubtopicQuestionRecord history on every read."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_answered(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(SubtopicQuestionRecord)
            .where(
                SubtopicQuestionRecord.user_id == user_id,
                SubtopicQuestionRecord.subtopic_id == subtopic_id,
            )
        )
        return result.scalar_one()

    async def recent_outcomes(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> list[bool]:
        """Correctness of the most recent answers, newest first."""
        result = await self.db.execute(
            select(SubtopicQuestionRecord.is_correct)
            .where(
                SubtopicQuestionRecord.user_id == user_id,
                SubtopicQuestionRecord.subtopic_id == subtopic_id,
            )
            .order_by(SubtopicQuestionRecord.answered_at.desc())
            .limit(settings.MASTERY_WINDOW_SIZE)
        )
        return list(result.scalars().all())

    async def get_subtopic_mastery(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> SubtopicMasteryState:
        total = await self.count_answered(user_id, subtopic_id)
        score = trailing_score(await self.recent_outcomes(user_id, subtopic_id)) if total else 0
        return mastery_state(subtopic_id, total, score)

    async def record_daily_score(
        self,
        user_id: uuid.UUID,
        level_id: uuid.UUID,
        subtopic_scores: Mapping[Union[uuid.UUID, str], int],
        on_date: Optional[date] = None,
    ) -> float:
        """
        Upsert today's average subtopic score for a level.

        Every subtopic counts, including ones with no answers (score 0).
        A second call on the same UTC day overwrites the first.
        """
        on_date = on_date or datetime.now(timezone.utc).date()
        scores = {str(key): value for key, value in subtopic_scores.items()}
        avg_score = sum(scores.values()) / len(scores) if scores else 0.0

        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise RuntimeError(f"Daily score upsert not supported on {dialect}")

        stmt = insert(DailyLevelScore).values(
            id=uuid.uuid4(),
            user_id=user_id,
            level_id=level_id,
            score_date=on_date,
            avg_score=avg_score,
            subtopic_scores=scores,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "level_id", "score_date"],
            set_={
                "avg_score": stmt.excluded.avg_score,
                "subtopic_scores": stmt.excluded.subtopic_scores,
            },
        )
        await self.db.execute(stmt)
        await self.db.flush()
        logger.debug("Daily score %.1f recorded for level %s on %s", avg_score, level_id, on_date)
        return avg_score

    async def get_daily_history(
        self,
        user_id: uuid.UUID,
        level_id: uuid.UUID,
        today: Optional[date] = None,
    ) -> list[DailyScorePoint]:
        today = today or datetime.now(timezone.utc).date()
        since = today - timedelta(days=settings.DAILY_HISTORY_DAYS)
        result = await self.db.execute(
            select(DailyLevelScore)
            .where(
                DailyLevelScore.user_id == user_id,
                DailyLevelScore.level_id == level_id,
                DailyLevelScore.score_date >= since,
            )
            .order_by(DailyLevelScore.score_date)
            .execution_options(populate_existing=True)
        )
        return [
            DailyScorePoint(date=row.score_date, score=round_half_up(row.avg_score))
            for row in result.scalars().all()
        ]

    async def get_level_progress(self, user_id: uuid.UUID, level_id: uuid.UUID) -> LevelProgress:
        """Per-subtopic mastery for a level, today's snapshot, and the recent trend."""
        result = await self.db.execute(
            select(Level)
            .options(selectinload(Level.subject), selectinload(Level.subtopics))
            .where(Level.id == level_id)
        )
        level = result.scalar_one_or_none()
        if level is None:
            raise NotFound("Level", level_id)

        lessons = LessonService(self.db)
        subtopics: list[SubtopicProgress] = []
        for subtopic in sorted(level.subtopics, key=lambda s: s.sort_order):
            state = await self.get_subtopic_mastery(user_id, subtopic.id)
            total_lessons, completed_lessons = await lessons.get_lesson_counts(user_id, subtopic.id)
            subtopics.append(SubtopicProgress(
                **state.model_dump(),
                name=subtopic.name,
                total_lessons=total_lessons,
                completed_lessons=completed_lessons,
            ))

        passed = sum(1 for s in subtopics if s.passed)
        percent = round_half_up(passed * 100 / len(subtopics)) if subtopics else 0

        today = datetime.now(timezone.utc).date()
        await self.record_daily_score(
            user_id, level_id, {s.subtopic_id: s.score for s in subtopics}, on_date=today
        )

        return LevelProgress(
            level=LevelRef(
                id=level.id,
                name=level.name,
                subject_id=level.subject.id,
                subject_name=level.subject.name,
            ),
            subtopics=subtopics,
            progress=ProgressTotals(total=len(subtopics), passed=passed, percent=percent),
            daily_history=await self.get_daily_history(user_id, level_id, today),
        )

    async def get_test_eligibility(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> SubtopicEligibility:
        """Subtopic tests unlock once every lesson is complete (or there are none)."""
        result = await self.db.execute(
            select(Subtopic)
            .options(selectinload(Subtopic.level).selectinload(Level.subject))
            .where(Subtopic.id == subtopic_id)
        )
        subtopic = result.scalar_one_or_none()
        if subtopic is None:
            raise NotFound("Subtopic", subtopic_id)

        lessons_total, lessons_completed = await LessonService(self.db).get_lesson_counts(user_id, subtopic_id)
        state = await self.get_subtopic_mastery(user_id, subtopic_id)

        return SubtopicEligibility(
            **state.model_dump(),
            eligible=lessons_unlock_test(lessons_total, lessons_completed),
            lessons_completed=lessons_completed,
            lessons_total=lessons_total,
            subtopic_name=subtopic.name,
            level_name=subtopic.level.name,
            subject_name=subtopic.level.subject.name,
        )
