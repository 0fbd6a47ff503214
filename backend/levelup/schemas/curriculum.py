"""
LevelUp Learning - Curriculum Schemas
Pydantic schemas for subjects, levels, and subtopics
"""
import uuid

from pydantic import BaseModel, ConfigDict


class LevelResponse(BaseModel):
    """Schema for level response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    subject_id: uuid.UUID
    name: str
    sort_order: int


class SubjectResponse(BaseModel):
    """Schema for subject response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    icon: str | None = None
    sort_order: int


class SubjectWithLevels(SubjectResponse):
    """Subject with its levels, easiest first."""
    levels: list[LevelResponse] = []


class SubtopicResponse(BaseModel):
    """Schema for subtopic response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    level_id: uuid.UUID
    name: str
    sort_order: int
