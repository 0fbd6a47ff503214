"""
LevelUp Learning - Test Factories
Builders for generated-content payloads and database fixtures
"""
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Sequence

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from sqlalchemy.ext.asyncio import AsyncSession

from levelup.ai.core.llm import LLMClient
from levelup.core.security import get_password_hash
from levelup.models.curriculum import Level, Subject, Subtopic
from levelup.models.lesson import Lesson, LessonProgress
from levelup.models.progress import SubtopicQuestionRecord
from levelup.models.user import User
from levelup.schemas.assessment import AssessmentQuestion, LevelInfo, QuestionPool

PASSWORD = "Learner123"
CORRECT = "B"


# ============================================================================
# Generated content
# ============================================================================

def fake_llm(responses: list[str], max_retries: int = 3) -> LLMClient:
    """LLM client replaying canned responses, cycling when they run out."""
    return LLMClient(
        llm=FakeListChatModel(responses=responses),
        max_retries=max_retries,
        retry_delay=0,
    )


def question(qid: str, level_id=None, text: str | None = None) -> dict:
    """A valid four-option question whose correct answer is "B"."""
    data = {
        "id": qid,
        "question": text or f"What is the answer to {qid}?",
        "options": ["A", "B", "C", "D"],
        "correct_answer": CORRECT,
        "explanation": "B is correct.",
    }
    if level_id is not None:
        data["level_id"] = str(level_id)
    return data


def quiz_json(count: int = 10) -> str:
    return json.dumps({"questions": [question(f"q{i}") for i in range(1, count + 1)]})


def pool_json(level_ids: Sequence, per_level: int = 3) -> str:
    """Pool response with ``per_level`` questions for each level, ids L<level>-q<n>."""
    questions = [
        question(f"L{index}-q{n}", level_id=level_id)
        for index, level_id in enumerate(level_ids)
        for n in range(per_level)
    ]
    return json.dumps({"questions": questions})


def topic_verdict(appropriate: bool = True, reason: str = "Fits the level", suggested: str | None = None) -> str:
    return json.dumps({"is_appropriate": appropriate, "reason": reason, "suggested_topic": suggested})


def lesson_plan_json(titles: Sequence[str]) -> str:
    return json.dumps({"lessons": [{"title": t, "focus": f"All about {t}"} for t in titles]})


def lesson_json(title: str) -> str:
    return json.dumps({
        "title": title,
        "introduction": f"Welcome to {title}.",
        "sections": [{"heading": "Basics", "content": "Some content.", "examples": ["An example"]}],
        "keyTakeaways": ["Point one", "Point two", "Point three"],
    })


def relevance_json(relevant: bool = True, confidence: float = 0.9, redirect: str | None = None) -> str:
    return json.dumps({
        "is_relevant": relevant,
        "confidence": confidence,
        "reason": "On topic" if relevant else "Different topic",
        "suggested_redirect": redirect,
    })


def explanation_json(text: str) -> str:
    return json.dumps({"explanation": text})


def make_pool(level_count: int, per_level: int, empty_levels: Sequence[int] = ()) -> QuestionPool:
    """In-memory pool with level ids L0..Ln-1 and question ids L<i>-q<n>."""
    levels = [LevelInfo(id=f"L{i}", name=f"Level {i}", sort_order=i + 1) for i in range(level_count)]
    questions_by_level = {
        level.id: (
            []
            if i in empty_levels
            else [AssessmentQuestion(**question(f"L{i}-q{n}", level_id=level.id)) for n in range(per_level)]
        )
        for i, level in enumerate(levels)
    }
    return QuestionPool(levels=levels, questions_by_level=questions_by_level)


# ============================================================================
# Database
# ============================================================================

@dataclass
class Curriculum:
    subject: Subject
    levels: list[Level]

    @property
    def subtopics(self) -> list[Subtopic]:
        """Subtopics of the first level."""
        return self.levels[0].subtopics


async def create_user(db: AsyncSession, email: str = "learner@example.com", tz: str = "UTC") -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        display_name="Learner",
        timezone=tz,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_curriculum(
    db: AsyncSession,
    subject_name: str = "Math",
    level_names: Sequence[str] = ("1st Grade", "2nd Grade", "3rd Grade"),
    subtopics_per_level: int = 2,
) -> Curriculum:
    subject = Subject(
        name=subject_name,
        sort_order=1,
        levels=[
            Level(
                name=name,
                sort_order=order,
                subtopics=[
                    Subtopic(name=f"{name} topic {n}", prompt=f"{name} skills part {n}", sort_order=n)
                    for n in range(1, subtopics_per_level + 1)
                ],
            )
            for order, name in enumerate(level_names, start=1)
        ],
    )
    db.add(subject)
    await db.commit()
    return Curriculum(subject=subject, levels=list(subject.levels))


async def add_lessons(db: AsyncSession, subtopic: Subtopic, count: int = 2) -> list[Lesson]:
    lessons = [
        Lesson(
            subtopic_id=subtopic.id,
            title=f"Lesson {n}",
            introduction="Intro",
            content={"sections": [{"heading": "Part", "content": "Text", "examples": []}]},
            key_takeaways=["Remember this"],
            sort_order=n,
        )
        for n in range(1, count + 1)
    ]
    db.add_all(lessons)
    await db.commit()
    return lessons


async def add_answers(db: AsyncSession, user: User, subtopic: Subtopic, outcomes: Sequence[bool]) -> None:
    """Answer history, oldest first, one second apart."""
    start = datetime.now(timezone.utc) - timedelta(days=1)
    db.add_all([
        SubtopicQuestionRecord(
            user_id=user.id,
            subtopic_id=subtopic.id,
            question_id=f"h{n}",
            is_correct=outcome,
            question_text=f"History question {n}",
            answered_at=start + timedelta(seconds=n),
        )
        for n, outcome in enumerate(outcomes)
    ])
    await db.commit()


async def complete_lesson(db: AsyncSession, user: User, lesson: Lesson, quiz_score: int = 100) -> LessonProgress:
    row = LessonProgress(
        user_id=user.id,
        lesson_id=lesson.id,
        completed=True,
        quiz_score=quiz_score,
        completed_at=datetime.now(timezone.utc),
    )
    db.add(row)
    await db.commit()
    return row
