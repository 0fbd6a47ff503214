"""
LevelUp Learning - Curriculum API
Endpoints for browsing subjects, levels, and subtopics
"""
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from levelup.api.deps import CurrentUser, DbSession
from levelup.models.curriculum import Level, Subject, Subtopic
from levelup.schemas.curriculum import SubjectResponse, SubjectWithLevels, SubtopicResponse

router = APIRouter(tags=["Curriculum"])


@router.get("/subjects", response_model=list[SubjectResponse])
async def list_subjects(db: DbSession, current_user: CurrentUser):
    """
    List all subjects.
    """
    result = await db.execute(select(Subject).order_by(Subject.sort_order, Subject.name))
    return result.scalars().all()


@router.get("/subjects/{subject_id}", response_model=SubjectWithLevels)
async def get_subject(subject_id: UUID, db: DbSession, current_user: CurrentUser):
    """
    Get a subject with its ordered levels.
    """
    result = await db.execute(
        select(Subject)
        .where(Subject.id == subject_id)
        .options(selectinload(Subject.levels))
    )
    subject = result.scalar_one_or_none()

    if not subject:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subject not found"
        )

    return subject


@router.get("/levels/{level_id}/subtopics", response_model=list[SubtopicResponse])
async def list_subtopics(level_id: UUID, db: DbSession, current_user: CurrentUser):
    level = await db.get(Level, level_id)
    if not level:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Level not found"
        )

    result = await db.execute(
        select(Subtopic)
        .where(Subtopic.level_id == level_id)
        .order_by(Subtopic.sort_order)
    )
    return result.scalars().all()
