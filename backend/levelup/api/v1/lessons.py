"""
LevelUp Learning - Lessons API
Subtopic lessons, lesson quizzes, and follow-up questions
"""
from uuid import UUID

from fastapi import APIRouter, status

from levelup.ai.go_deeper import GoDeeperTutor
from levelup.ai.lesson_quiz_generator import LessonQuizGenerator
from levelup.api.deps import ContentGenerator, CurrentUser, DbSession
from levelup.schemas.lesson import (
    GoDeeperHistory,
    GoDeeperReply,
    GoDeeperRequest,
    LessonDetail,
    LessonQuiz,
    LessonQuizResult,
    LessonQuizSubmission,
    LessonViewed,
    SubtopicLessons,
)
from levelup.services.lesson import LessonService

router = APIRouter(tags=["Lessons"])


@router.get("/subtopics/{subtopic_id}/lessons", response_model=SubtopicLessons)
async def list_lessons(subtopic_id: UUID, db: DbSession, current_user: CurrentUser):
    """Lessons of a subtopic in order, with the user's completion flags."""
    return await LessonService(db).list_for_subtopic(current_user.id, subtopic_id)


@router.get("/lessons/{lesson_id}", response_model=LessonDetail)
async def get_lesson(lesson_id: UUID, db: DbSession, current_user: CurrentUser):
    return await LessonService(db).get_lesson_detail(current_user.id, lesson_id)


@router.post("/lessons/{lesson_id}/view", response_model=LessonViewed)
async def record_lesson_view(lesson_id: UUID, db: DbSession, current_user: CurrentUser):
    return await LessonService(db).record_view(current_user.id, lesson_id)


@router.post(
    "/lessons/{lesson_id}/quiz",
    response_model=LessonQuiz,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a lesson quiz",
)
async def create_lesson_quiz(
    lesson_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
    llm: ContentGenerator,
):
    service = LessonService(db, quiz_generator=LessonQuizGenerator(llm))
    return await service.create_quiz(current_user.id, lesson_id)


@router.put("/lessons/{lesson_id}/quiz", response_model=LessonQuizResult, summary="Submit the lesson quiz")
async def submit_lesson_quiz(
    lesson_id: UUID,
    data: LessonQuizSubmission,
    db: DbSession,
    current_user: CurrentUser,
):
    """
    Score the pending lesson quiz.

    Submitting is what completes a lesson, whatever the score.
    """
    return await LessonService(db).submit_quiz(current_user.id, lesson_id, data.answers)


@router.post("/lessons/{lesson_id}/go-deeper", response_model=GoDeeperReply)
async def go_deeper(
    lesson_id: UUID,
    data: GoDeeperRequest,
    db: DbSession,
    current_user: CurrentUser,
    llm: ContentGenerator,
):
    """Ask a follow-up question; off-topic questions get a redirect."""
    service = LessonService(db, tutor=GoDeeperTutor(llm))
    return await service.go_deeper(current_user.id, lesson_id, data.prompt)


@router.get("/lessons/{lesson_id}/go-deeper", response_model=GoDeeperHistory)
async def go_deeper_history(lesson_id: UUID, db: DbSession, current_user: CurrentUser):
    return await LessonService(db).go_deeper_history(current_user.id, lesson_id)
