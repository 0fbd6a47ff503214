"""
LevelUp Learning - Lesson Service
Stored lessons, view and quiz-based completion, and follow-up questions
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from levelup.ai.go_deeper import GoDeeperTutor
from levelup.ai.lesson_quiz_generator import LessonQuizGenerator
from levelup.core.config import settings
from levelup.core.exceptions import NotFound, ValidationFailed
from levelup.models.curriculum import Level, Subtopic
from levelup.models.lesson import GoDeeperExchange, Lesson, LessonProgress
from levelup.schemas.lesson import (
    GeneratedLesson,
    GoDeeperHistory,
    GoDeeperReply,
    LessonContext,
    LessonDetail,
    LessonNavigation,
    LessonProgressState,
    LessonQuiz,
    LessonQuizResult,
    LessonQuizResultItem,
    LessonResponse,
    LessonSection,
    LessonViewed,
    NamedRef,
    SubtopicLessons,
)
from levelup.schemas.quiz import AttemptAnswerIn, QuestionOut

logger = logging.getLogger(__name__)


def lessons_unlock_test(lessons_total: int, lessons_completed: int) -> bool:
    """Subtopic tests unlock once every lesson is complete (or there are none)."""
    return lessons_total == 0 or lessons_completed >= lessons_total


def percent_score(correct: int, total: int) -> int:
    """Whole percentage, halves rounded up."""
    if total == 0:
        return 0
    return (200 * correct + total) // (2 * total)


class LessonService:
    """Lesson reads and writes for one request session."""

    def __init__(
        self,
        db: AsyncSession,
        quiz_generator: Optional[LessonQuizGenerator] = None,
        tutor: Optional[GoDeeperTutor] = None,
    ):
        self.db = db
        self.quiz_generator = quiz_generator
        self.tutor = tutor

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    async def count_lessons(self, subtopic_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Lesson).where(Lesson.subtopic_id == subtopic_id)
        )
        return result.scalar_one()

    async def get_lesson_counts(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> tuple[int, int]:
        """(total lessons, lessons the user completed) for a subtopic."""
        total = await self.count_lessons(subtopic_id)
        result = await self.db.execute(
            select(func.count())
            .select_from(LessonProgress)
            .join(Lesson, Lesson.id == LessonProgress.lesson_id)
            .where(
                Lesson.subtopic_id == subtopic_id,
                LessonProgress.user_id == user_id,
                LessonProgress.completed.is_(True),
            )
        )
        return total, result.scalar_one()

    # ------------------------------------------------------------------
    # Reading lessons
    # ------------------------------------------------------------------

    async def get_lesson(self, lesson_id: uuid.UUID) -> Lesson:
        """Lesson with its subtopic, level and subject loaded."""
        result = await self.db.execute(
            select(Lesson)
            .options(
                selectinload(Lesson.subtopic)
                .selectinload(Subtopic.level)
                .selectinload(Level.subject)
            )
            .where(Lesson.id == lesson_id)
        )
        lesson = result.scalar_one_or_none()
        if lesson is None:
            raise NotFound("Lesson", lesson_id)
        return lesson

    async def get_progress(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> Optional[LessonProgress]:
        result = await self.db.execute(
            select(LessonProgress).where(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id == lesson_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_subtopic(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> SubtopicLessons:
        subtopic = await self.db.get(Subtopic, subtopic_id)
        if subtopic is None:
            raise NotFound("Subtopic", subtopic_id)

        lessons = (await self.db.execute(
            select(Lesson)
            .where(Lesson.subtopic_id == subtopic_id)
            .order_by(Lesson.sort_order)
        )).scalars().all()

        progress_rows = (await self.db.execute(
            select(LessonProgress).where(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id.in_([lesson.id for lesson in lessons]),
            )
        )).scalars().all()
        progress = {row.lesson_id: row for row in progress_rows}

        items = [self.to_response(lesson, progress.get(lesson.id)) for lesson in lessons]
        return SubtopicLessons(
            subtopic_id=subtopic.id,
            subtopic_name=subtopic.name,
            lessons=items,
            total_lessons=len(items),
            completed_lessons=sum(1 for item in items if item.completed),
        )

    async def get_lesson_detail(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> LessonDetail:
        """A lesson with its curriculum path and the ids of its neighbours."""
        lesson = await self.get_lesson(lesson_id)
        progress = await self.get_progress(user_id, lesson_id)

        sibling_ids = list((await self.db.execute(
            select(Lesson.id)
            .where(Lesson.subtopic_id == lesson.subtopic_id)
            .order_by(Lesson.sort_order)
        )).scalars().all())
        position = sibling_ids.index(lesson.id)

        subtopic = lesson.subtopic
        level = subtopic.level
        return LessonDetail(
            lesson=self.to_response(lesson, progress),
            total_lessons=len(sibling_ids),
            subtopic=NamedRef(id=subtopic.id, name=subtopic.name),
            level=NamedRef(id=level.id, name=level.name),
            subject=NamedRef(id=level.subject.id, name=level.subject.name),
            progress=LessonProgressState.model_validate(progress) if progress else None,
            navigation=LessonNavigation(
                previous_lesson_id=sibling_ids[position - 1] if position > 0 else None,
                next_lesson_id=sibling_ids[position + 1] if position + 1 < len(sibling_ids) else None,
            ),
        )

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def record_view(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> LessonViewed:
        """Start tracking a lesson for the user; an existing row is left as is."""
        await self.get_lesson(lesson_id)
        row = await self._get_or_create_progress(user_id, lesson_id)
        await self.db.commit()
        return LessonViewed(lesson_id=lesson_id, completed=row.completed)

    async def create_quiz(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> LessonQuiz:
        """
        Generate a check-up quiz for the lesson.

        The questions, answers included, are kept on the user's progress
        row until they are submitted. A new quiz replaces a pending one.
        """
        if self.quiz_generator is None:
            raise RuntimeError("LessonService.create_quiz needs a LessonQuizGenerator")

        lesson = await self.get_lesson(lesson_id)
        questions = await self.quiz_generator.generate(self.lesson_context(lesson))

        row = await self._get_or_create_progress(user_id, lesson_id)
        row.quiz_questions = [q.model_dump() for q in questions]
        await self.db.commit()

        logger.info("Generated %d-question quiz for lesson %s", len(questions), lesson_id)
        return LessonQuiz(
            lesson_id=lesson_id,
            questions=[QuestionOut(id=q.id, question=q.question, options=q.options) for q in questions],
        )

    async def submit_quiz(
        self,
        user_id: uuid.UUID,
        lesson_id: uuid.UUID,
        answers: list[AttemptAnswerIn],
    ) -> LessonQuizResult:
        """
        Score the pending lesson quiz and complete the lesson.

        The score is kept from the latest submission; the completion time
        from the first.
        """
        await self.get_lesson(lesson_id)
        row = await self.get_progress(user_id, lesson_id)
        if row is None or not row.quiz_questions:
            raise ValidationFailed("No lesson quiz to submit; generate one first")

        selected = {answer.question_id: answer.selected_answer for answer in answers}
        results = [
            LessonQuizResultItem(
                question_id=q["id"],
                selected_answer=selected.get(q["id"], ""),
                correct_answer=q["correct_answer"],
                is_correct=selected.get(q["id"]) == q["correct_answer"],
                explanation=q.get("explanation", ""),
            )
            for q in row.quiz_questions
        ]
        correct = sum(1 for item in results if item.is_correct)
        score = percent_score(correct, len(results))

        row.completed = True
        row.quiz_score = score
        row.quiz_questions = None
        if row.completed_at is None:
            row.completed_at = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info("Lesson %s completed by user %s with quiz score %d", lesson_id, user_id, score)
        return LessonQuizResult(
            lesson_id=lesson_id,
            score=score,
            correct=correct,
            total=len(results),
            results=results,
            completed_at=row.completed_at,
        )

    async def _get_or_create_progress(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> LessonProgress:
        row = await self.get_progress(user_id, lesson_id)
        if row is None:
            row = LessonProgress(user_id=user_id, lesson_id=lesson_id, completed=False)
            self.db.add(row)
            await self.db.flush()
        return row

    # ------------------------------------------------------------------
    # Go deeper
    # ------------------------------------------------------------------

    async def go_deeper(self, user_id: uuid.UUID, lesson_id: uuid.UUID, prompt: str) -> GoDeeperReply:
        """Answer a follow-up question about the lesson and keep the exchange."""
        if self.tutor is None:
            raise RuntimeError("LessonService.go_deeper needs a GoDeeperTutor")

        lesson = await self.get_lesson(lesson_id)
        answer = await self.tutor.answer(self.lesson_context(lesson), prompt)

        exchange = GoDeeperExchange(
            user_id=user_id,
            lesson_id=lesson_id,
            prompt=prompt,
            response=answer.response,
            is_relevant=answer.is_relevant,
            confidence=answer.confidence,
        )
        self.db.add(exchange)
        await self.db.commit()
        await self.db.refresh(exchange)
        return GoDeeperReply.model_validate(exchange)

    async def go_deeper_history(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> GoDeeperHistory:
        await self.get_lesson(lesson_id)
        result = await self.db.execute(
            select(GoDeeperExchange)
            .where(GoDeeperExchange.user_id == user_id, GoDeeperExchange.lesson_id == lesson_id)
            .order_by(GoDeeperExchange.created_at.desc())
            .limit(settings.GO_DEEPER_HISTORY_LIMIT)
        )
        return GoDeeperHistory(
            history=[GoDeeperReply.model_validate(row) for row in result.scalars().all()]
        )

    # ------------------------------------------------------------------
    # Writing lessons
    # ------------------------------------------------------------------

    async def save_generated(self, subtopic_id: uuid.UUID, lessons: list[GeneratedLesson]) -> list[Lesson]:
        """Persist generated lessons in plan order."""
        rows = [
            Lesson(
                subtopic_id=subtopic_id,
                title=lesson.title,
                introduction=lesson.introduction,
                content={"sections": [section.model_dump() for section in lesson.sections]},
                key_takeaways=lesson.key_takeaways,
                sort_order=number,
            )
            for number, lesson in enumerate(lessons, start=1)
        ]
        self.db.add_all(rows)
        await self.db.commit()
        return rows

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    @staticmethod
    def sections(lesson: Lesson) -> list[LessonSection]:
        return [LessonSection(**s) for s in (lesson.content or {}).get("sections", [])]

    @classmethod
    def to_response(cls, lesson: Lesson, progress: Optional[LessonProgress] = None) -> LessonResponse:
        return LessonResponse(
            id=lesson.id,
            subtopic_id=lesson.subtopic_id,
            title=lesson.title,
            introduction=lesson.introduction,
            sections=cls.sections(lesson),
            key_takeaways=lesson.key_takeaways or [],
            sort_order=lesson.sort_order,
            completed=bool(progress and progress.completed),
            quiz_score=progress.quiz_score if progress else None,
            completed_at=progress.completed_at if progress else None,
        )

    @classmethod
    def lesson_context(cls, lesson: Lesson) -> LessonContext:
        """Needs the lesson's subtopic, level and subject loaded."""
        return LessonContext(
            title=lesson.title,
            introduction=lesson.introduction,
            sections=cls.sections(lesson),
            key_takeaways=lesson.key_takeaways or [],
            subtopic_name=lesson.subtopic.name,
            level_name=lesson.subtopic.level.name,
            subject_name=lesson.subtopic.level.subject.name,
        )
