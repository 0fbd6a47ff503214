"""
LevelUp Learning - Quiz Schemas
Pydantic schemas for generated questions, quizzes, and attempts
"""
import uuid
from datetime import datetime
from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Generated content
# ============================================================================

class QuizQuestion(BaseModel):
    """A four-option multiple choice question."""
    id: Annotated[str, Field(min_length=1)]
    question: Annotated[str, Field(min_length=1)]
    options: list[str]
    correct_answer: str
    explanation: str = ""

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: list[str]) -> list[str]:
        if len(v) != 4:
            raise ValueError(f"Expected exactly 4 options, got {len(v)}")
        if len(set(v)) != len(v):
            raise ValueError("Options must be distinct")
        return v

    @model_validator(mode="after")
    def correct_answer_is_an_option(self):
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must match one of the options")
        return self


class GeneratedQuiz(BaseModel):
    """Shape the content generator must return for a quiz."""
    questions: list[QuizQuestion]

    @model_validator(mode="after")
    def unique_question_ids(self):
        ids = [q.id for q in self.questions]
        if len(set(ids)) != len(ids):
            raise ValueError("Question ids must be unique within a quiz")
        return self


class TopicValidation(BaseModel):
    """Generator verdict on whether a topic fits a level."""
    is_appropriate: bool
    reason: str = ""
    suggested_topic: str | None = None


# ============================================================================
# Quiz API
# ============================================================================

class QuizCreate(BaseModel):
    """
    Create a quiz.

    Either ``subtopic_id`` (subtopic test) or ``subject_id`` + ``level_id`` +
    ``topic_name`` (custom quiz) must be given.
    """
    subtopic_id: uuid.UUID | None = None
    subject_id: uuid.UUID | None = None
    level_id: uuid.UUID | None = None
    topic_name: Annotated[str, Field(min_length=1, max_length=200)] | None = None
    question_count: Annotated[int, Field(ge=10, le=20)] = 10
    time_limit_minutes: Annotated[int, Field(ge=1)] | None = None


class QuestionOut(BaseModel):
    """Question as shown to a student taking the quiz."""
    id: str
    question: str
    options: list[str]


class QuizResponse(BaseModel):
    """Created quiz without answers."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    subject_id: uuid.UUID
    level_id: uuid.UUID
    subtopic_id: uuid.UUID | None = None
    topic_name: str
    question_count: int
    difficulty_level: int | None = None
    time_limit_minutes: int | None = None
    questions: list[QuestionOut]
    created_at: datetime | None = None
    # Subtopic tests only: practice history the difficulty was based on
    questions_answered: int | None = None


# ============================================================================
# Attempts
# ============================================================================

class AttemptAnswerIn(BaseModel):
    """One submitted answer; blank means skipped."""
    question_id: str
    selected_answer: str = ""


class AttemptCreate(BaseModel):
    """Submit an attempt at a quiz."""
    answers: list[AttemptAnswerIn]
    time_taken_seconds: Annotated[int, Field(ge=0)] | None = None
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class GradedAnswer(BaseModel):
    """Submitted answer with its correctness."""
    question_id: str
    selected_answer: str
    is_correct: bool


class AttemptResponse(BaseModel):
    """A stored attempt."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quiz_id: uuid.UUID
    is_first_attempt: bool
    score: int
    total_questions: int
    answered_count: int
    answers: list[GradedAnswer]
    time_taken_seconds: int | None = None
    completed_at: datetime | None = None


class AttemptList(BaseModel):
    """A user's attempts at one quiz, newest first."""
    attempts: list[AttemptResponse]
    has_complete_attempt: bool
