"""
LevelUp Learning - Lesson Schemas
Pydantic schemas for AI-generated lessons, lesson quizzes, and follow-up questions
"""
import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from levelup.schemas.quiz import AttemptAnswerIn, GeneratedQuiz, QuestionOut, QuizQuestion

MAX_GO_DEEPER_PROMPT = 500


# ============================================================================
# Lesson Content Structure
# ============================================================================

class LessonSection(BaseModel):
    """A section within a lesson."""
    heading: str
    content: str
    examples: List[str] = Field(default_factory=list)


class PlannedLesson(BaseModel):
    """One entry in a subtopic lesson plan."""
    title: str
    focus: str


class LessonPlan(BaseModel):
    """Ordered lesson outline for a subtopic."""
    lessons: List[PlannedLesson] = Field(min_length=1)


class GeneratedLesson(BaseModel):
    """Full lesson as returned by the generator."""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    introduction: str
    sections: List[LessonSection] = Field(min_length=1)
    key_takeaways: List[str] = Field(default_factory=list, alias="keyTakeaways")


class LessonContext(BaseModel):
    """A stored lesson with its place in the curriculum, as the generators see it."""
    title: str
    introduction: str
    sections: List[LessonSection] = Field(default_factory=list)
    key_takeaways: List[str] = Field(default_factory=list)
    subtopic_name: str
    level_name: str
    subject_name: str


class GeneratedLessonQuiz(GeneratedQuiz):
    """Lesson check-up quiz; at least one question."""
    questions: List[QuizQuestion] = Field(min_length=1)


class RelevanceVerdict(BaseModel):
    """Generator verdict on whether a follow-up question is about the lesson."""
    is_relevant: bool
    confidence: Annotated[float, Field(ge=0, le=1)] = 0.0
    reason: str = ""
    suggested_redirect: Optional[str] = None


class DeeperExplanation(BaseModel):
    explanation: Annotated[str, Field(min_length=1)]


# ============================================================================
# API Response Schemas
# ============================================================================

class LessonResponse(BaseModel):
    """A stored lesson with the current user's completion flag."""
    id: uuid.UUID
    subtopic_id: uuid.UUID
    title: str
    introduction: str
    sections: List[LessonSection]
    key_takeaways: List[str]
    sort_order: int
    completed: bool = False
    quiz_score: Optional[int] = None
    completed_at: Optional[datetime] = None


class SubtopicLessons(BaseModel):
    """Lessons of a subtopic with completion totals."""
    subtopic_id: uuid.UUID
    subtopic_name: str
    lessons: List[LessonResponse]
    total_lessons: int
    completed_lessons: int


class NamedRef(BaseModel):
    id: uuid.UUID
    name: str


class LessonProgressState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    completed: bool
    quiz_score: Optional[int] = None
    first_viewed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class LessonNavigation(BaseModel):
    previous_lesson_id: Optional[uuid.UUID] = None
    next_lesson_id: Optional[uuid.UUID] = None


class LessonDetail(BaseModel):
    """One lesson with its curriculum path, the user's progress and neighbours."""
    lesson: LessonResponse
    total_lessons: int
    subtopic: NamedRef
    level: NamedRef
    subject: NamedRef
    progress: Optional[LessonProgressState] = None
    navigation: LessonNavigation


class LessonViewed(BaseModel):
    lesson_id: uuid.UUID
    completed: bool


# ============================================================================
# Lesson Quiz
# ============================================================================

class LessonQuiz(BaseModel):
    """Lesson quiz as shown to the student: no answers."""
    lesson_id: uuid.UUID
    questions: List[QuestionOut]


class LessonQuizSubmission(BaseModel):
    answers: List[AttemptAnswerIn] = Field(min_length=1)


class LessonQuizResultItem(BaseModel):
    question_id: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str = ""


class LessonQuizResult(BaseModel):
    """Scored lesson quiz; submitting it completes the lesson."""
    lesson_id: uuid.UUID
    score: int
    correct: int
    total: int
    results: List[LessonQuizResultItem]
    completed: bool = True
    completed_at: Optional[datetime] = None


# ============================================================================
# Go Deeper
# ============================================================================

class GoDeeperRequest(BaseModel):
    prompt: Annotated[str, Field(min_length=1, max_length=MAX_GO_DEEPER_PROMPT)]

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Prompt must not be blank")
        return v


class GoDeeperReply(BaseModel):
    """One follow-up exchange about a lesson."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    prompt: str
    response: str
    is_relevant: bool
    confidence: float = 0.0
    created_at: Optional[datetime] = None


class GoDeeperHistory(BaseModel):
    """The user's latest follow-up exchanges for a lesson, newest first."""
    history: List[GoDeeperReply]
