"""
LevelUp Learning - Quiz API
Subtopic tests, custom quizzes, and attempts
"""
from uuid import UUID

from fastapi import APIRouter, status

from levelup.ai.quiz_generator import QuizGenerator
from levelup.api.deps import ContentGenerator, CurrentUser, DbSession
from levelup.schemas.quiz import AttemptCreate, AttemptList, AttemptResponse, QuizCreate, QuizResponse
from levelup.services.quiz import QuizService

router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


@router.post(
    "",
    response_model=QuizResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a subtopic test or custom quiz",
)
async def create_quiz(
    data: QuizCreate,
    db: DbSession,
    current_user: CurrentUser,
    llm: ContentGenerator,
):
    """
    Generate a quiz.

    With ``subtopic_id`` this is a subtopic test (lessons must be complete).
    Otherwise ``subject_id``, ``level_id`` and ``topic_name`` describe a
    custom quiz whose topic must fit the level.
    """
    service = QuizService(db, QuizGenerator(llm))
    return await service.create_quiz(current_user.id, data)


@router.get("/{quiz_id}/attempts", response_model=AttemptList)
async def list_attempts(quiz_id: UUID, db: DbSession, current_user: CurrentUser):
    service = QuizService(db)
    attempts = await service.list_attempts(current_user.id, quiz_id)
    return AttemptList(
        attempts=[service.attempt_response(a) for a in attempts],
        has_complete_attempt=any(a.is_complete for a in attempts),
    )


@router.post(
    "/{quiz_id}/attempts",
    response_model=AttemptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a quiz attempt",
)
async def submit_attempt(
    quiz_id: UUID,
    data: AttemptCreate,
    db: DbSession,
    current_user: CurrentUser,
):
    service = QuizService(db)
    attempt = await service.submit_attempt(
        current_user,
        quiz_id,
        data.answers,
        time_taken_seconds=data.time_taken_seconds,
        tz_name=data.timezone,
    )
    return service.attempt_response(attempt)
