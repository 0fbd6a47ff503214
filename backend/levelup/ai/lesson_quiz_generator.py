"""
LevelUp Learning - Lesson Quiz Generator
Short multiple choice check-up on a single lesson
"""
import logging
from typing import Optional

from langchain_core.prompts import PromptTemplate

from levelup.ai.core.llm import LLMClient
from levelup.ai.core.telemetry import agent_span
from levelup.core.config import settings
from levelup.schemas.lesson import GeneratedLessonQuiz, LessonContext
from levelup.schemas.quiz import QuizQuestion

logger = logging.getLogger(__name__)

# Characters of each section shown to the model
SECTION_PREVIEW_CHARS = 200


class LessonQuizGenerator:
    """Generate questions that test one lesson's content."""

    PROMPT_TEMPLATE = """You are creating a quiz to test a student's understanding of a lesson they just completed.

LESSON DETAILS:
- Subject: {subject}
- Level: {level}
- Subtopic: {subtopic}
- Title: "{title}"
- Introduction: {introduction}
- Sections covered:
{sections}
- Key Takeaways:
{takeaways}

Generate exactly {question_count} multiple-choice questions that test understanding of THIS specific lesson.

Guidelines:
- Questions should directly test concepts from the lesson content
- Use age-appropriate language for {level} students
- Each question should have exactly 4 options
- Include a mix of recall and application questions
- Make wrong answers plausible but clearly incorrect
- Explanations should help students learn, not just state the answer

Return a JSON object with this structure:
{{
  "questions": [
    {{
      "id": "q1",
      "question": "Question text",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correct_answer": "The exact text of the correct option",
      "explanation": "Why this is correct and how it relates to the lesson"
    }}
  ]
}}

Make questions unique and ensure they cover different aspects of the lesson."""

    def __init__(self, llm: LLMClient, question_count: Optional[int] = None):
        self.llm = llm
        self.question_count = question_count or settings.LESSON_QUIZ_QUESTIONS
        self.prompt = PromptTemplate.from_template(self.PROMPT_TEMPLATE)

    def render_prompt(self, lesson: LessonContext) -> str:
        sections = "\n".join(
            f"{section.heading}: {section.content[:SECTION_PREVIEW_CHARS]}..."
            for section in lesson.sections
        )
        takeaways = "\n".join(f"{i}. {t}" for i, t in enumerate(lesson.key_takeaways, start=1))
        return self.prompt.format(
            subject=lesson.subject_name,
            level=lesson.level_name,
            subtopic=lesson.subtopic_name,
            title=lesson.title,
            introduction=lesson.introduction,
            sections=sections,
            takeaways=takeaways,
            question_count=self.question_count,
        )

    async def generate(self, lesson: LessonContext) -> list[QuizQuestion]:
        with agent_span("generate_lesson_quiz", "LessonQuizGenerator", {
            "subject": lesson.subject_name,
            "lesson": lesson.title,
            "question_count": self.question_count,
        }):
            generated = await self.llm.generate_structured(
                self.render_prompt(lesson),
                GeneratedLessonQuiz,
                agent_name="LessonQuizGenerator",
            )

            questions = generated.questions[:self.question_count]
            if len(questions) < self.question_count:
                logger.warning(
                    "Lesson quiz for %r came back with %d of %d questions",
                    lesson.title, len(questions), self.question_count,
                )
            return questions
