"""
LevelUp Learning - Placement Question Pool Builder
Generates the per-level diagnostic question pool for an adaptive assessment
"""
import logging
from typing import Optional, Sequence

from langchain_core.prompts import PromptTemplate

from levelup.ai.core.llm import LLMClient
from levelup.ai.core.telemetry import agent_span
from levelup.core.config import settings
from levelup.schemas.assessment import (
    AssessmentQuestion,
    GeneratedAssessment,
    LevelInfo,
    QuestionPool,
)

logger = logging.getLogger(__name__)


class QuestionPoolBuilder:
    """Build a placement question pool with one batched generator call."""

    PROMPT_TEMPLATE = """Generate an adaptive placement assessment pool for {subject} with {total_questions} questions.

The levels for this subject, in order from beginner to advanced, are:
{level_list}

Generate exactly {per_level} questions for EACH level. Tag each question with its level name and level_id.

Return JSON in this exact format:
{{
  "questions": [
    {{
      "id": "q1",
      "question": "Question text here?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correct_answer": "Option B",
      "explanation": "Brief explanation of why this is correct.",
      "level": "Level Name",
      "level_id": "uuid-of-level"
    }}
  ]
}}

Important:
- Make questions genuinely diagnostic of that specific level's skills
- Each question must have exactly 4 distinct options
- The correct_answer must match one of the options exactly
- Questions for each level should vary in topic/skill tested
- Generate exactly {total_questions} questions total ({per_level} per level)
- Use unique IDs q1, q2, q3, etc."""

    def __init__(self, llm: LLMClient, questions_per_level: Optional[int] = None):
        self.llm = llm
        self.questions_per_level = questions_per_level or settings.ASSESSMENT_QUESTIONS_PER_LEVEL
        self.prompt = PromptTemplate.from_template(self.PROMPT_TEMPLATE)

    def render_prompt(self, subject_name: str, levels: Sequence[LevelInfo]) -> str:
        level_list = "\n".join(f"- {level.name} (ID: {level.id})" for level in levels)
        return self.prompt.format(
            subject=subject_name,
            total_questions=self.questions_per_level * len(levels),
            per_level=self.questions_per_level,
            level_list=level_list,
        )

    async def build_pool(self, subject_name: str, levels: Sequence[LevelInfo]) -> QuestionPool:
        """
        Generate and bucket the placement questions.

        Every requested level gets a key (possibly an empty list). Questions
        tagged with a level outside the request are dropped. Raises
        GenerationFailed when the generator cannot produce a valid response.
        """
        if not levels:
            raise ValueError("Cannot build a question pool without levels")

        with agent_span("build_pool", "QuestionPoolBuilder", {
            "subject": subject_name,
            "levels": len(levels),
        }) as span:
            generated = await self.llm.generate_structured(
                self.render_prompt(subject_name, levels),
                GeneratedAssessment,
                agent_name="QuestionPoolBuilder",
            )

            questions_by_level: dict[str, list[AssessmentQuestion]] = {
                level.id: [] for level in levels
            }
            dropped = 0
            for question in generated.questions:
                bucket = questions_by_level.get(question.level_id)
                if bucket is None:
                    dropped += 1
                    continue
                bucket.append(question)

            if dropped:
                logger.warning(
                    "Dropped %d generated questions with unknown level ids for %s",
                    dropped, subject_name,
                )
            span.set_attribute("questions", len(generated.questions) - dropped)

            return QuestionPool(levels=list(levels), questions_by_level=questions_by_level)
