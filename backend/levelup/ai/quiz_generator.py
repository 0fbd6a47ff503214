"""
LevelUp Learning - Quiz Generator
Topic validation and multiple choice quiz generation
"""
import logging
from typing import Optional, Sequence

from langchain_core.prompts import PromptTemplate

from levelup.ai.core.llm import LLMClient
from levelup.ai.core.telemetry import agent_span
from levelup.core.exceptions import TopicOutOfScope
from levelup.schemas.quiz import GeneratedQuiz, QuizQuestion, TopicValidation

logger = logging.getLogger(__name__)

# Previously asked questions shown to the model as examples to avoid
MAX_EXCLUSION_EXAMPLES = 20

DIFFICULTY_INSTRUCTIONS = {
    1: """DIFFICULTY LEVEL 1 - FOUNDATIONAL:
- Focus on basic recall and recognition
- Questions should be straightforward with clear, unambiguous answers
- Use simple, direct language
- Test one concept at a time
- Avoid tricky wording or complex scenarios""",
    2: """DIFFICULTY LEVEL 2 - DEVELOPING:
- Include simple application of concepts
- Questions may combine two related concepts
- Introduce basic problem-solving scenarios
- Some questions may require a single step of reasoning
- Still avoid overly complex wording""",
    3: """DIFFICULTY LEVEL 3 - PROFICIENT:
- Include word problems and real-world applications
- Questions should require multi-step thinking
- Combine multiple concepts in meaningful ways
- Include some analysis and comparison questions
- Require deeper understanding beyond memorization""",
    4: """DIFFICULTY LEVEL 4 - ADVANCED:
- Focus on complex reasoning and critical thinking
- Include nuanced scenarios with subtle distinctions
- Questions may require synthesis of multiple concepts
- Include some questions where wrong answers are plausible
- Test ability to apply knowledge in novel situations
- May include questions about edge cases or exceptions""",
}


def difficulty_instructions(level: int) -> str:
    """Prompt guidance for a 1-4 difficulty level (unknown levels read as 1)."""
    return DIFFICULTY_INSTRUCTIONS.get(level, DIFFICULTY_INSTRUCTIONS[1])


def exclusion_instructions(exclude_questions: Sequence[str]) -> str:
    if not exclude_questions:
        return ""

    examples = list(exclude_questions)[-MAX_EXCLUSION_EXAMPLES:]
    numbered = "\n".join(f"{i}. {text}" for i, text in enumerate(examples, start=1))
    return f"""
IMPORTANT - AVOID DUPLICATE QUESTIONS:
The student has already been asked {len(exclude_questions)} questions on this topic.
DO NOT generate questions that are similar to or cover the same concept as these recent examples:
{numbered}

Generate COMPLETELY NEW questions that test different aspects of the topic.
"""


class QuizGenerator:
    """Generate level-appropriate multiple choice quizzes."""

    VALIDATION_TEMPLATE = """You are validating whether a quiz topic is appropriate for a student's current level.

Subject: {subject}
Student's Current Level: {level}
Requested Topic: {topic}

Analyze whether the requested topic is appropriate for this level. Consider:
1. Is the topic within the curriculum scope of {level} {subject}?
2. Does the topic require prerequisite knowledge beyond {level}?
3. If the user included a different grade level in their topic (e.g., "8th grade algebra" when level is "7th Grade"), IGNORE the grade level they specified and evaluate whether the core topic concept can be taught at {level}.

Return JSON in this exact format:
{{
  "is_appropriate": true/false,
  "reason": "Brief explanation of why this topic is or isn't appropriate for this level",
  "suggested_topic": "If not appropriate, suggest a similar topic that IS appropriate for this level (optional)"
}}

Examples:
- Topic "Systems of equations" at level "1st Grade" Math -> NOT appropriate (too advanced)
- Topic "8th grade algebra" at level "7th Grade" Math -> appropriate (evaluate as "algebra", which has 7th grade components)
- Topic "Quadratic equations" at level "7th Grade" Math -> NOT appropriate (typically 9th grade+)
- Topic "Fractions" at level "8th Grade" Math -> appropriate"""

    QUIZ_TEMPLATE = """Generate a {question_count}-question multiple choice quiz.

Subject: {subject}
Level: {level}
Topic: {topic}
{difficulty}
{exclusions}
IMPORTANT INSTRUCTIONS:
- All questions MUST be appropriate for {level} level students
- If the topic mentions a different grade level (e.g., "8th grade algebra"), IGNORE that and generate questions at {level} difficulty
- Do NOT exceed the complexity expected at {level}
- Focus on concepts that students at {level} would be learning

Each question should:
- Be appropriate for the {level} level
- Focus on the topic: {topic}
- Have exactly 4 answer options
- Have one clear correct answer
- Include a brief explanation of why the answer is correct

Return JSON in this exact format:
{{
  "questions": [
    {{
      "id": "q1",
      "question": "Question text here?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correct_answer": "Option B",
      "explanation": "Brief explanation of why this is correct."
    }}
  ]
}}

Generate exactly {question_count} questions with IDs q1, q2, q3, etc."""

    def __init__(self, llm: LLMClient):
        self.llm = llm
        self.validation_prompt = PromptTemplate.from_template(self.VALIDATION_TEMPLATE)
        self.quiz_prompt = PromptTemplate.from_template(self.QUIZ_TEMPLATE)

    async def validate_topic(self, subject: str, level: str, topic: str) -> TopicValidation:
        """Ask the generator whether a free-form topic fits the level."""
        return await self.llm.generate_structured(
            self.validation_prompt.format(subject=subject, level=level, topic=topic),
            TopicValidation,
            agent_name="QuizGenerator",
        )

    async def generate(
        self,
        subject: str,
        level: str,
        topic: str,
        question_count: int,
        exclude_questions: Optional[Sequence[str]] = None,
        difficulty_level: Optional[int] = None,
        validate_topic: bool = True,
    ) -> list[QuizQuestion]:
        """
        Generate a quiz.

        Custom topics are validated first and raise TopicOutOfScope when the
        generator judges them outside the level. Subtopic tests use a fixed
        curriculum prompt and skip validation.
        """
        with agent_span("generate_quiz", "QuizGenerator", {
            "subject": subject,
            "level": level,
            "question_count": question_count,
            "difficulty_level": difficulty_level,
        }):
            if validate_topic:
                verdict = await self.validate_topic(subject, level, topic)
                if not verdict.is_appropriate:
                    logger.info("Rejected quiz topic %r for %s %s: %s", topic, level, subject, verdict.reason)
                    raise TopicOutOfScope(verdict.reason, verdict.suggested_topic)

            prompt = self.quiz_prompt.format(
                question_count=question_count,
                subject=subject,
                level=level,
                topic=topic,
                difficulty=f"\n{difficulty_instructions(difficulty_level)}\n" if difficulty_level else "",
                exclusions=exclusion_instructions(exclude_questions or []),
            )
            generated = await self.llm.generate_structured(prompt, GeneratedQuiz, agent_name="QuizGenerator")
            return generated.questions
