"""
LevelUp Learning - Progress Schemas
Pydantic schemas for subtopic mastery, level progress, and test eligibility
"""
import uuid
from datetime import date
from typing import Literal, Union

from pydantic import BaseModel

TestNumber = Union[int, Literal["practice"]]


class SubtopicMasteryState(BaseModel):
    """Mastery derived from a subtopic's answer history."""
    subtopic_id: uuid.UUID
    score: int
    questions_answered: int
    passed: bool
    difficulty_level: int
    test_number: TestNumber
    questions_until_pass: int


class SubtopicProgress(SubtopicMasteryState):
    """Mastery plus lesson completion, as listed on the level progress view."""
    name: str
    total_lessons: int
    completed_lessons: int


class ProgressTotals(BaseModel):
    total: int
    passed: int
    percent: int


class DailyScorePoint(BaseModel):
    date: date
    score: int


class LevelRef(BaseModel):
    id: uuid.UUID
    name: str
    subject_id: uuid.UUID
    subject_name: str


class LevelProgress(BaseModel):
    """Level progress view with the daily trend."""
    level: LevelRef
    subtopics: list[SubtopicProgress]
    progress: ProgressTotals
    daily_history: list[DailyScorePoint]


class SubtopicEligibility(SubtopicMasteryState):
    """Whether a subtopic test can be taken, with current mastery."""
    eligible: bool
    lessons_completed: int
    lessons_total: int
    subtopic_name: str
    level_name: str
    subject_name: str
