"""
LevelUp Learning - Quiz Service
Subtopic tests, custom quizzes, and scored attempts
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from levelup.ai.quiz_generator import QuizGenerator
from levelup.core.exceptions import NotFound, ValidationFailed
from levelup.core.question_hash import hash_question
from levelup.models.curriculum import Level, Subject, Subtopic
from levelup.models.progress import SubtopicQuestionRecord
from levelup.models.quiz import Quiz, QuizAttempt
from levelup.models.user import User
from levelup.schemas.quiz import (
    AttemptAnswerIn,
    AttemptResponse,
    GradedAnswer,
    QuestionOut,
    QuizCreate,
    QuizResponse,
)
from levelup.services.lesson import LessonService, lessons_unlock_test
from levelup.services.mastery import difficulty_level
from levelup.services.streak import StreakService

logger = logging.getLogger(__name__)


def grade_answers(questions: list[dict], answers: list[AttemptAnswerIn]) -> tuple[list[GradedAnswer], int, int]:
    """
    Score submitted answers by exact match.

    Returns (graded answers, score, answered count). Blank answers count as
    unanswered and incorrect; unknown question ids are incorrect.
    """
    correct_by_id = {q["id"]: q["correct_answer"] for q in questions}
    graded: list[GradedAnswer] = []
    score = 0
    answered = 0

    for answer in answers:
        has_answer = bool(answer.selected_answer and answer.selected_answer.strip())
        if has_answer:
            answered += 1
        is_correct = has_answer and correct_by_id.get(answer.question_id) == answer.selected_answer
        if is_correct:
            score += 1
        graded.append(GradedAnswer(
            question_id=answer.question_id,
            selected_answer=answer.selected_answer,
            is_correct=is_correct,
        ))

    return graded, score, answered


class QuizService:
    """Quiz creation and attempt scoring."""

    def __init__(self, db: AsyncSession, generator: Optional[QuizGenerator] = None):
        self.db = db
        self.generator = generator

    # ------------------------------------------------------------------
    # Quiz creation
    # ------------------------------------------------------------------

    async def create_quiz(self, user_id: uuid.UUID, data: QuizCreate) -> QuizResponse:
        if self.generator is None:
            raise RuntimeError("QuizService.create_quiz needs a QuizGenerator")

        if data.subtopic_id is not None:
            return await self.create_subtopic_test(user_id, data)
        return await self.create_custom_quiz(user_id, data)

    async def create_subtopic_test(self, user_id: uuid.UUID, data: QuizCreate) -> QuizResponse:
        """
        Generate a test for a subtopic from its fixed prompt.

        Difficulty follows the practice history, and earlier question texts
        are sent as exclusions to avoid repeats.
        """
        result = await self.db.execute(
            select(Subtopic)
            .options(selectinload(Subtopic.level).selectinload(Level.subject))
            .where(Subtopic.id == data.subtopic_id)
        )
        subtopic = result.scalar_one_or_none()
        if subtopic is None:
            raise NotFound("Subtopic", data.subtopic_id)

        lessons_total, lessons_completed = await LessonService(self.db).get_lesson_counts(user_id, subtopic.id)
        if not lessons_unlock_test(lessons_total, lessons_completed):
            raise ValidationFailed(
                "Complete all lessons first",
                extra={"lessons_completed": lessons_completed, "lessons_total": lessons_total},
            )

        previous = (await self.db.execute(
            select(SubtopicQuestionRecord.question_text)
            .where(
                SubtopicQuestionRecord.user_id == user_id,
                SubtopicQuestionRecord.subtopic_id == subtopic.id,
                SubtopicQuestionRecord.question_text.is_not(None),
            )
            .order_by(SubtopicQuestionRecord.answered_at.desc())
        )).scalars().all()

        questions_answered = len(previous)
        difficulty = difficulty_level(questions_answered)

        questions = await self.generator.generate(
            subject=subtopic.level.subject.name,
            level=subtopic.level.name,
            topic=subtopic.prompt,
            question_count=data.question_count,
            exclude_questions=list(previous),
            difficulty_level=difficulty,
            validate_topic=False,
        )

        quiz = Quiz(
            subject_id=subtopic.level.subject_id,
            level_id=subtopic.level_id,
            subtopic_id=subtopic.id,
            topic_name=subtopic.name,
            questions=[q.model_dump() for q in questions],
            difficulty_level=difficulty,
            question_count=data.question_count,
            time_limit_minutes=data.time_limit_minutes,
            created_by=user_id,
        )
        self.db.add(quiz)
        await self.db.commit()
        await self.db.refresh(quiz)

        logger.info(
            "Created subtopic test %s for %s at difficulty %d (%d prior answers)",
            quiz.id, subtopic.name, difficulty, questions_answered,
        )
        return self.to_response(quiz, questions_answered=questions_answered)

    async def create_custom_quiz(self, user_id: uuid.UUID, data: QuizCreate) -> QuizResponse:
        """Generate a quiz on a free-form topic after checking it fits the level."""
        if data.subject_id is None or data.level_id is None or not data.topic_name:
            raise ValidationFailed("subject_id, level_id and topic_name are required for a custom quiz")

        subject = await self.db.get(Subject, data.subject_id)
        level = await self.db.get(Level, data.level_id)
        if subject is None or level is None or level.subject_id != subject.id:
            raise ValidationFailed("Invalid subject or level")

        questions = await self.generator.generate(
            subject=subject.name,
            level=level.name,
            topic=data.topic_name,
            question_count=data.question_count,
        )

        quiz = Quiz(
            subject_id=subject.id,
            level_id=level.id,
            topic_name=data.topic_name,
            questions=[q.model_dump() for q in questions],
            question_count=data.question_count,
            time_limit_minutes=data.time_limit_minutes,
            created_by=user_id,
        )
        self.db.add(quiz)
        await self.db.commit()
        await self.db.refresh(quiz)

        logger.info("Created custom quiz %s on %r", quiz.id, data.topic_name)
        return self.to_response(quiz)

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    async def get_quiz(self, quiz_id: uuid.UUID) -> Quiz:
        quiz = await self.db.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFound("Quiz", quiz_id)
        return quiz

    async def list_attempts(self, user_id: uuid.UUID, quiz_id: uuid.UUID) -> list[QuizAttempt]:
        """The user's attempts at a quiz, newest first."""
        await self.get_quiz(quiz_id)
        result = await self.db.execute(
            select(QuizAttempt)
            .where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.completed_at.desc())
        )
        return list(result.scalars().all())

    async def submit_attempt(
        self,
        user: User,
        quiz_id: uuid.UUID,
        answers: list[AttemptAnswerIn],
        time_taken_seconds: Optional[int] = None,
        tz_name: str = "UTC",
    ) -> QuizAttempt:
        """
        Score and store an attempt.

        Until the user has a complete attempt, every question must be
        answered. The first complete attempt is flagged and extends the
        streak. Subtopic test answers are appended to the mastery history.
        """
        quiz = await self.get_quiz(quiz_id)
        graded, score, answered = grade_answers(quiz.questions, answers)
        total = len(quiz.questions)
        is_complete = answered == total

        result = await self.db.execute(
            select(QuizAttempt.id)
            .where(
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.user_id == user.id,
                QuizAttempt.answered_count == QuizAttempt.total_questions,
            )
            .limit(1)
        )
        has_complete_attempt = result.scalar_one_or_none() is not None

        if not has_complete_attempt and not is_complete:
            raise ValidationFailed(
                "All questions must be answered on your first attempt",
                extra={"answered_count": answered, "total_questions": total},
            )

        is_first_attempt = not has_complete_attempt and is_complete
        attempt = QuizAttempt(
            quiz_id=quiz_id,
            user_id=user.id,
            is_first_attempt=is_first_attempt,
            score=score,
            total_questions=total,
            answered_count=answered,
            answers=[g.model_dump() for g in graded],
            time_taken_seconds=time_taken_seconds,
        )
        self.db.add(attempt)

        if quiz.subtopic_id is not None:
            self._record_subtopic_answers(user.id, quiz, graded)

        if is_first_attempt:
            await StreakService(self.db).update_streak(user, tz_name)

        await self.db.commit()
        await self.db.refresh(attempt)
        logger.info("Attempt %s on quiz %s scored %d/%d", attempt.id, quiz_id, score, total)
        return attempt

    def _record_subtopic_answers(self, user_id: uuid.UUID, quiz: Quiz, graded: list[GradedAnswer]) -> None:
        text_by_id = {q["id"]: q.get("question", "") for q in quiz.questions}
        difficulty = quiz.difficulty_level or 1

        for answer in graded:
            text = text_by_id.get(answer.question_id, "")
            self.db.add(SubtopicQuestionRecord(
                user_id=user_id,
                subtopic_id=quiz.subtopic_id,
                quiz_id=quiz.id,
                question_id=answer.question_id,
                is_correct=answer.is_correct,
                question_text=text,
                question_hash=hash_question(text) if text else None,
                difficulty_level=difficulty,
            ))

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    @staticmethod
    def to_response(quiz: Quiz, questions_answered: Optional[int] = None) -> QuizResponse:
        """Quiz as sent to the student: no correct answers or explanations."""
        return QuizResponse(
            id=quiz.id,
            subject_id=quiz.subject_id,
            level_id=quiz.level_id,
            subtopic_id=quiz.subtopic_id,
            topic_name=quiz.topic_name,
            question_count=quiz.question_count,
            difficulty_level=quiz.difficulty_level,
            time_limit_minutes=quiz.time_limit_minutes,
            questions=[
                QuestionOut(id=q["id"], question=q["question"], options=q["options"])
                for q in quiz.questions
            ],
            created_at=quiz.created_at,
            questions_answered=questions_answered,
        )

    @staticmethod
    def attempt_response(attempt: QuizAttempt) -> AttemptResponse:
        return AttemptResponse.model_validate(attempt)
