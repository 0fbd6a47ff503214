"""
LevelUp Learning - Progress API
Level mastery overview and subtopic test eligibility
"""
from uuid import UUID

from fastapi import APIRouter

from levelup.api.deps import CurrentUser, DbSession
from levelup.schemas.progress import LevelProgress, SubtopicEligibility
from levelup.services.mastery import MasteryService

router = APIRouter(tags=["Progress"])


@router.get("/levels/{level_id}/progress", response_model=LevelProgress)
async def get_level_progress(level_id: UUID, db: DbSession, current_user: CurrentUser):
    """
    Mastery for every subtopic of a level, with the daily trend.

    Also records today's snapshot for the level.
    """
    return await MasteryService(db).get_level_progress(current_user.id, level_id)


@router.get("/subtopics/{subtopic_id}/test-eligibility", response_model=SubtopicEligibility)
async def get_test_eligibility(subtopic_id: UUID, db: DbSession, current_user: CurrentUser):
    return await MasteryService(db).get_test_eligibility(current_user.id, subtopic_id)
