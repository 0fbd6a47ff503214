"""
LevelUp Learning - Placement Assessment API
Start adaptive placement sessions and answer their questions
"""
from uuid import UUID

from fastapi import APIRouter, status

from levelup.ai.assessment_generator import QuestionPoolBuilder
from levelup.api.deps import ContentGenerator, CurrentUser, DbSession
from levelup.schemas.assessment import (
    AnswerRequest,
    AnswerResponse,
    AssessmentResponse,
    AssessmentStartRequest,
    AssessmentSummary,
)
from levelup.services.assessment import AssessmentService

router = APIRouter(tags=["Assessments"])


@router.post(
    "/subjects/{subject_id}/assessments",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a placement assessment",
)
async def start_assessment(
    subject_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
    llm: ContentGenerator,
    body: AssessmentStartRequest | None = None,
):
    """
    Generate the question pool and return the first question.

    Starts at the requested level, or the middle level when none (or an
    unknown one) is given.
    """
    service = AssessmentService(db, QuestionPoolBuilder(llm))
    assessment = await service.start(
        current_user.id,
        subject_id,
        starting_level_id=body.starting_level_id if body else None,
    )
    return service.to_response(assessment)


@router.get(
    "/subjects/{subject_id}/assessments",
    response_model=list[AssessmentSummary],
    summary="List my assessments for a subject",
)
async def list_assessments(subject_id: UUID, db: DbSession, current_user: CurrentUser):
    service = AssessmentService(db)
    assessments = await service.list_for_subject(current_user.id, subject_id)
    return [service.to_summary(a) for a in assessments]


@router.get(
    "/assessments/{assessment_id}",
    response_model=AssessmentResponse,
    summary="Get assessment state",
)
async def get_assessment(assessment_id: UUID, db: DbSession, current_user: CurrentUser):
    service = AssessmentService(db)
    assessment = await service.get(current_user.id, assessment_id)
    return service.to_response(assessment)


@router.post(
    "/assessments/{assessment_id}/answers",
    response_model=AnswerResponse,
    summary="Answer the current question",
)
async def answer_question(
    assessment_id: UUID,
    body: AnswerRequest,
    db: DbSession,
    current_user: CurrentUser,
):
    """
    Submit an answer to the current question.

    Returns the correct answer for the question just answered, the move
    direction, and either the next question or the final placement.
    """
    service = AssessmentService(db)
    outcome = await service.answer(current_user.id, assessment_id, body.selected_answer)
    return AnswerResponse(
        answer=outcome.answer,
        correct_answer=outcome.question.correct_answer,
        explanation=outcome.question.explanation,
        assessment=service.to_response(outcome.assessment),
    )
