"""
LevelUp Learning - Adaptive Placement Engine
Question selection, the placement walk, and score aggregation
"""
import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from levelup.core.config import settings
from levelup.core.exceptions import AlreadyCompleted
from levelup.schemas.assessment import (
    AdaptiveAnswer,
    AssessmentQuestion,
    LevelScore,
    QuestionPool,
)

logger = logging.getLogger(__name__)

Direction = Literal["up", "down"]


class PlacementStatus(str, Enum):
    """Placement session states."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def default_starting_index(level_count: int) -> int:
    """Placement starts in the middle level unless told otherwise."""
    return level_count // 2


def select_next_question(
    pool: QuestionPool,
    current_level_index: int,
    used_question_ids: Collection[str],
) -> Optional[AssessmentQuestion]:
    """
    Pick the next placement question.

    Prefers the first unused question at the current level, then searches
    outward one level at a time, checking the harder level before the easier
    one at each distance. Returns None when no level has anything left.
    """
    level_ids = pool.level_ids
    if not 0 <= current_level_index < len(level_ids):
        return None

    def first_unused(index: int) -> Optional[AssessmentQuestion]:
        for question in pool.questions_for(level_ids[index]):
            if question.id not in used_question_ids:
                return question
        return None

    question = first_unused(current_level_index)
    if question is not None:
        return question

    for offset in range(1, len(level_ids)):
        up_index = current_level_index + offset
        if up_index < len(level_ids):
            question = first_unused(up_index)
            if question is not None:
                return question

        down_index = current_level_index - offset
        if down_index >= 0:
            question = first_unused(down_index)
            if question is not None:
                return question

    return None


@dataclass
class AggregateResult:
    """Per-level scores and the suggested level of a finished walk."""
    level_scores: list[LevelScore]
    suggested_level_id: str


def aggregate_scores(
    answers: list[AdaptiveAnswer],
    final_level_id: str,
    level_names: Optional[dict[str, str]] = None,
) -> AggregateResult:
    """
    Reduce a finished answer list to correct/total per level.

    Levels without answers are omitted. The suggested level is where the
    walk ended, not a recomputation from the score table.
    """
    level_names = level_names or {}
    scores: dict[str, LevelScore] = {}

    for answer in answers:
        score = scores.get(answer.level_id)
        if score is None:
            score = LevelScore(
                level_id=answer.level_id,
                level_name=level_names.get(answer.level_id),
            )
            scores[answer.level_id] = score
        score.total += 1
        if answer.is_correct:
            score.correct += 1

    return AggregateResult(
        level_scores=list(scores.values()),
        suggested_level_id=final_level_id,
    )


@dataclass
class PlacementSession:
    """
    The adaptive placement walk over a question pool.

    NOT_STARTED -> IN_PROGRESS -> COMPLETED. Each answer moves the level
    index at most one step (up on correct, down on incorrect, clamped to
    the level range). The session completes when the question budget is
    spent or the selector finds nothing left.
    """

    pool: QuestionPool
    current_level_index: int
    question_budget: int = field(default_factory=lambda: settings.ASSESSMENT_QUESTION_BUDGET)
    answers: list[AdaptiveAnswer] = field(default_factory=list)
    used_question_ids: list[str] = field(default_factory=list)
    current_question: Optional[AssessmentQuestion] = None
    last_direction: Optional[Direction] = None
    status: PlacementStatus = PlacementStatus.NOT_STARTED

    def __post_init__(self):
        if not self.pool.levels:
            raise ValueError("A placement session needs at least one level")
        if not 0 <= self.current_level_index < len(self.pool.levels):
            raise ValueError(
                f"Level index {self.current_level_index} out of range "
                f"for {len(self.pool.levels)} levels"
            )
        if self.question_budget < 1:
            raise ValueError("Question budget must be at least 1")

    @property
    def level_count(self) -> int:
        return len(self.pool.levels)

    @property
    def current_level_id(self) -> str:
        return self.pool.levels[self.current_level_index].id

    @property
    def question_number(self) -> int:
        """1-based number of the question being asked (or of the next one)."""
        return len(self.answers) + 1

    @property
    def is_completed(self) -> bool:
        return self.status == PlacementStatus.COMPLETED

    def start(self) -> Optional[AssessmentQuestion]:
        """Select the first question; an empty pool completes immediately."""
        if self.status != PlacementStatus.NOT_STARTED:
            raise ValueError("Placement session already started")

        self.status = PlacementStatus.IN_PROGRESS
        self._advance()
        return self.current_question

    def answer(self, selected_answer: str) -> AdaptiveAnswer:
        """Record an answer to the current question and apply the movement rule."""
        if self.status == PlacementStatus.COMPLETED:
            raise AlreadyCompleted()
        if self.status == PlacementStatus.NOT_STARTED or self.current_question is None:
            raise ValueError("Placement session has not started")

        question = self.current_question
        answer = AdaptiveAnswer(
            question_id=question.id,
            selected_answer=selected_answer,
            is_correct=selected_answer == question.correct_answer,
            level_id=question.level_id,
            question_number=self.question_number,
        )
        self.answers.append(answer)

        if answer.is_correct and self.current_level_index < self.level_count - 1:
            self.current_level_index += 1
            self.last_direction = "up"
        elif not answer.is_correct and self.current_level_index > 0:
            self.current_level_index -= 1
            self.last_direction = "down"
        else:
            self.last_direction = None

        if len(self.answers) >= self.question_budget:
            self._complete("question budget reached")
        else:
            self._advance()

        return answer

    def result(self) -> AggregateResult:
        """Aggregate the walk; the suggested level is the final level index."""
        return aggregate_scores(self.answers, self.current_level_id, self.pool.level_names)

    def _advance(self) -> None:
        question = select_next_question(self.pool, self.current_level_index, self.used_question_ids)
        if question is None:
            self._complete("question pool exhausted")
            return

        self.used_question_ids.append(question.id)
        self.current_question = question

    def _complete(self, reason: str) -> None:
        self.current_question = None
        self.status = PlacementStatus.COMPLETED
        logger.info(
            "Placement completed after %d answers (%s), final level index %d",
            len(self.answers), reason, self.current_level_index,
        )
