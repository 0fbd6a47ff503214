"""
LevelUp Learning - Assessment Service
Persists adaptive placement sessions and writes placement results
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from levelup.ai.assessment_generator import QuestionPoolBuilder
from levelup.core.config import settings
from levelup.core.exceptions import AlreadyCompleted, NotFound, Unauthorized
from levelup.models.assessment import Assessment, UserSubjectLevel
from levelup.models.curriculum import Subject
from levelup.schemas.assessment import (
    AdaptiveAnswer,
    AssessmentQuestion,
    AssessmentResponse,
    AssessmentSummary,
    LevelInfo,
    LevelScore,
    PublicQuestion,
    QuestionPool,
)
from levelup.services.placement import (
    AggregateResult,
    PlacementSession,
    PlacementStatus,
    default_starting_index,
)

logger = logging.getLogger(__name__)


@dataclass
class AnswerOutcome:
    """What the API reports back after one answer."""
    assessment: Assessment
    answer: AdaptiveAnswer
    question: AssessmentQuestion


class AssessmentService:
    """
    Placement sessions backed by the ``assessments`` table.

    The walk state (level index, used questions, answers, current question)
    lives on the row; every request rebuilds a PlacementSession from it,
    applies one transition and writes the state back.
    """

    def __init__(self, db: AsyncSession, pool_builder: Optional[QuestionPoolBuilder] = None):
        self.db = db
        self.pool_builder = pool_builder

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_subject_with_levels(self, subject_id: uuid.UUID) -> Subject:
        result = await self.db.execute(
            select(Subject)
            .options(selectinload(Subject.levels))
            .where(Subject.id == subject_id)
        )
        subject = result.scalar_one_or_none()
        if subject is None:
            raise NotFound("Subject", subject_id)
        return subject

    async def get(self, user_id: uuid.UUID, assessment_id: uuid.UUID) -> Assessment:
        """Load an assessment owned by the user."""
        assessment = await self.db.get(Assessment, assessment_id)
        if assessment is None:
            raise NotFound("Assessment", assessment_id)
        if assessment.user_id != user_id:
            raise Unauthorized()
        return assessment

    async def list_for_subject(self, user_id: uuid.UUID, subject_id: uuid.UUID) -> list[Assessment]:
        result = await self.db.execute(
            select(Assessment)
            .options(selectinload(Assessment.suggested_level))
            .where(Assessment.user_id == user_id, Assessment.subject_id == subject_id)
            .order_by(Assessment.created_at.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(
        self,
        user_id: uuid.UUID,
        subject_id: uuid.UUID,
        starting_level_id: Optional[uuid.UUID] = None,
    ) -> Assessment:
        """
        Build the question pool and ask the first question.

        An unknown starting level falls back to the middle level. A pool
        with nothing to ask completes the assessment immediately.
        """
        if self.pool_builder is None:
            raise RuntimeError("AssessmentService.start needs a QuestionPoolBuilder")

        subject = await self.get_subject_with_levels(subject_id)
        if not subject.levels:
            raise NotFound("Levels for subject", subject_id)

        levels = [
            LevelInfo(id=str(level.id), name=level.name, sort_order=level.sort_order)
            for level in subject.levels
        ]
        pool = await self.pool_builder.build_pool(subject.name, levels)

        start_index = default_starting_index(len(levels))
        if starting_level_id is not None:
            for index, level in enumerate(levels):
                if level.id == str(starting_level_id):
                    start_index = index
                    break

        session = PlacementSession(pool=pool, current_level_index=start_index)
        session.start()

        assessment = Assessment(
            user_id=user_id,
            subject_id=subject_id,
            question_pool=pool.model_dump(mode="json"),
            starting_level_id=levels[start_index].id,
        )
        self._store_session(assessment, session)
        self.db.add(assessment)
        await self.db.flush()

        logger.info(
            "Started assessment %s for user %s in %s at level %s",
            assessment.id, user_id, subject.name, levels[start_index].name,
        )

        if session.is_completed:
            await self.finalize(assessment, session)

        await self.db.commit()
        await self.db.refresh(assessment)
        return assessment

    async def answer(
        self,
        user_id: uuid.UUID,
        assessment_id: uuid.UUID,
        selected_answer: str,
    ) -> AnswerOutcome:
        """Answer the current question; completes the assessment when the walk ends."""
        assessment = await self.get(user_id, assessment_id)
        if assessment.is_completed:
            raise AlreadyCompleted()

        session = self.load_session(assessment)
        question = session.current_question
        answer = session.answer(selected_answer)
        self._store_session(assessment, session)

        if session.is_completed:
            await self.finalize(assessment, session)

        await self.db.commit()
        return AnswerOutcome(assessment=assessment, answer=answer, question=question)

    async def finalize(
        self,
        assessment: Assessment,
        session: Optional[PlacementSession] = None,
    ) -> AggregateResult:
        """
        Write scores, the suggested level and the completion time together.

        The suggested level is the level the walk ended on. Completion is
        terminal: finalizing twice raises AlreadyCompleted.
        """
        if assessment.completed_at is not None:
            raise AlreadyCompleted()

        session = session or self.load_session(assessment)
        result = session.result()
        completed_at = datetime.now(timezone.utc)

        assessment.score_by_level = [score.model_dump() for score in result.level_scores]
        assessment.suggested_level_id = uuid.UUID(result.suggested_level_id)
        assessment.current_question_id = None
        assessment.completed_at = completed_at

        await self._update_user_level(
            assessment.user_id, assessment.subject_id, assessment.suggested_level_id, completed_at
        )
        await self.db.flush()

        logger.info(
            "Completed assessment %s with %d answers, suggested level %s",
            assessment.id, len(session.answers), result.suggested_level_id,
        )
        return result

    async def _update_user_level(
        self,
        user_id: uuid.UUID,
        subject_id: uuid.UUID,
        suggested_level_id: uuid.UUID,
        assessed_at: datetime,
    ) -> UserSubjectLevel:
        """Record the suggestion; the current level is only set the first time."""
        result = await self.db.execute(
            select(UserSubjectLevel).where(
                UserSubjectLevel.user_id == user_id,
                UserSubjectLevel.subject_id == subject_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = UserSubjectLevel(
                user_id=user_id,
                subject_id=subject_id,
                current_level_id=suggested_level_id,
            )
            self.db.add(row)

        row.suggested_level_id = suggested_level_id
        row.last_assessed_at = assessed_at
        return row

    # ------------------------------------------------------------------
    # Row <-> session
    # ------------------------------------------------------------------

    def load_session(self, assessment: Assessment) -> PlacementSession:
        pool = QuestionPool.model_validate(assessment.question_pool)
        current_question = None
        if assessment.current_question_id:
            current_question = pool.find_question(assessment.current_question_id)

        return PlacementSession(
            pool=pool,
            current_level_index=assessment.current_level_index,
            answers=[AdaptiveAnswer.model_validate(a) for a in assessment.answers or []],
            used_question_ids=list(assessment.used_question_ids or []),
            current_question=current_question,
            last_direction=assessment.last_direction,
            status=PlacementStatus.COMPLETED if assessment.is_completed else PlacementStatus.IN_PROGRESS,
        )

    @staticmethod
    def _store_session(assessment: Assessment, session: PlacementSession) -> None:
        # Fresh containers so the JSON columns are flagged dirty
        assessment.current_level_index = session.current_level_index
        assessment.current_question_id = session.current_question.id if session.current_question else None
        assessment.used_question_ids = list(session.used_question_ids)
        assessment.answers = [answer.model_dump() for answer in session.answers]
        assessment.last_direction = session.last_direction

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    @staticmethod
    def to_response(assessment: Assessment) -> AssessmentResponse:
        """Public view of a session; the current question never carries its answer."""
        pool = QuestionPool.model_validate(assessment.question_pool)
        level_names = pool.level_names
        answers = [AdaptiveAnswer.model_validate(a) for a in assessment.answers or []]

        current = None
        if not assessment.is_completed and assessment.current_question_id:
            question = pool.find_question(assessment.current_question_id)
            if question is not None:
                current = PublicQuestion(
                    id=question.id,
                    question=question.question,
                    options=question.options,
                    level_id=question.level_id,
                    level_name=level_names.get(question.level_id),
                )

        scores = None
        if assessment.score_by_level is not None:
            scores = [LevelScore.model_validate(s) for s in assessment.score_by_level]

        return AssessmentResponse(
            id=assessment.id,
            subject_id=assessment.subject_id,
            status="completed" if assessment.is_completed else "in_progress",
            levels=pool.levels,
            starting_level_id=assessment.starting_level_id,
            current_level_index=assessment.current_level_index,
            current_level_id=pool.levels[assessment.current_level_index].id,
            question_number=len(answers) + 1,
            question_budget=settings.ASSESSMENT_QUESTION_BUDGET,
            current_question=current,
            answers=answers,
            last_direction=assessment.last_direction,
            scores=scores,
            suggested_level_id=assessment.suggested_level_id,
            created_at=assessment.created_at,
            completed_at=assessment.completed_at,
        )

    @staticmethod
    def to_summary(assessment: Assessment) -> AssessmentSummary:
        return AssessmentSummary(
            id=assessment.id,
            status="completed" if assessment.is_completed else "in_progress",
            starting_level_id=assessment.starting_level_id,
            suggested_level_id=assessment.suggested_level_id,
            suggested_level_name=assessment.suggested_level.name if assessment.suggested_level else None,
            questions_answered=len(assessment.answers or []),
            created_at=assessment.created_at,
            completed_at=assessment.completed_at,
        )
