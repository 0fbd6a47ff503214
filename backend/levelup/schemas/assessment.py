"""
LevelUp Learning - Assessment Schemas
Pydantic schemas for the placement question pool, answers, and API payloads
"""
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from levelup.schemas.quiz import QuizQuestion


# ============================================================================
# Question pool (generator boundary)
# ============================================================================

class LevelInfo(BaseModel):
    """Ordered level as seen by the placement engine."""
    id: str
    name: str
    sort_order: int


class AssessmentQuestion(QuizQuestion):
    """A diagnostic question tagged with the level it belongs to."""
    level_id: str
    level: str | None = None  # Level name as echoed by the generator


class GeneratedAssessment(BaseModel):
    """Shape the content generator must return for a placement pool."""
    questions: list[AssessmentQuestion]

    @model_validator(mode="after")
    def unique_question_ids(self) -> "GeneratedAssessment":
        ids = [q.id for q in self.questions]
        if len(set(ids)) != len(ids):
            raise ValueError("Question ids must be unique within the pool")
        return self


class QuestionPool(BaseModel):
    """Questions grouped by level id, in generation order, plus the ordered levels."""
    levels: list[LevelInfo]
    questions_by_level: dict[str, list[AssessmentQuestion]]

    @property
    def level_ids(self) -> list[str]:
        return [level.id for level in self.levels]

    @property
    def level_names(self) -> dict[str, str]:
        return {level.id: level.name for level in self.levels}

    def questions_for(self, level_id: str) -> list[AssessmentQuestion]:
        return self.questions_by_level.get(level_id, [])

    def find_question(self, question_id: str) -> AssessmentQuestion | None:
        for questions in self.questions_by_level.values():
            for question in questions:
                if question.id == question_id:
                    return question
        return None


# ============================================================================
# Placement walk
# ============================================================================

class AdaptiveAnswer(BaseModel):
    """One answered placement question."""
    question_id: str
    selected_answer: str
    is_correct: bool
    level_id: str
    question_number: int


class LevelScore(BaseModel):
    """Correct / total per level, derived from the answers."""
    level_id: str
    level_name: str | None = None
    correct: int = 0
    total: int = 0


# ============================================================================
# API payloads
# ============================================================================

class AssessmentStartRequest(BaseModel):
    """Optional starting level for a placement session."""
    starting_level_id: uuid.UUID | None = None


class PublicQuestion(BaseModel):
    """A placement question without its answer."""
    id: str
    question: str
    options: list[str]
    level_id: str
    level_name: str | None = None


class AnswerRequest(BaseModel):
    """Answer to the current placement question."""
    selected_answer: str = Field(min_length=1)


class AssessmentResponse(BaseModel):
    """Current state of a placement session."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    subject_id: uuid.UUID
    status: Literal["in_progress", "completed"]
    levels: list[LevelInfo]
    starting_level_id: str
    current_level_index: int
    current_level_id: str
    question_number: int
    question_budget: int
    current_question: PublicQuestion | None = None
    answers: list[AdaptiveAnswer] = Field(default_factory=list)
    last_direction: Literal["up", "down"] | None = None
    scores: list[LevelScore] | None = None
    suggested_level_id: uuid.UUID | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None


class AnswerResponse(BaseModel):
    """Feedback on one answer plus the updated session."""
    answer: AdaptiveAnswer
    correct_answer: str
    explanation: str
    assessment: AssessmentResponse


class AssessmentSummary(BaseModel):
    """Row in a user's assessment history."""
    id: uuid.UUID
    status: Literal["in_progress", "completed"]
    starting_level_id: str
    suggested_level_id: uuid.UUID | None = None
    suggested_level_name: str | None = None
    questions_answered: int
    created_at: datetime | None = None
    completed_at: datetime | None = None
