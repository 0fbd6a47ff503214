"""LevelUp Learning - API v1 Router."""
from fastapi import APIRouter

from levelup.api.v1.auth import router as auth_router
from levelup.api.v1.curriculum import router as curriculum_router
from levelup.api.v1.assessments import router as assessments_router
from levelup.api.v1.progress import router as progress_router
from levelup.api.v1.quizzes import router as quizzes_router
from levelup.api.v1.lessons import router as lessons_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(curriculum_router)
api_router.include_router(assessments_router)
api_router.include_router(progress_router)
api_router.include_router(quizzes_router)
api_router.include_router(lessons_router)
