"""
LevelUp Learning - Lesson Generator
Plans and writes the lesson sequence for a curriculum subtopic
"""
import asyncio
import logging
from typing import List, Optional

from langchain_core.prompts import PromptTemplate

from levelup.ai.core.llm import LLMClient
from levelup.ai.core.telemetry import agent_span
from levelup.schemas.lesson import GeneratedLesson, LessonPlan, PlannedLesson

logger = logging.getLogger(__name__)


class LessonGenerator:
    """
    Two-stage lesson generation.

    A plan call outlines N progressive lessons (title + focus), then one call
    per planned lesson writes its sections and key takeaways.
    """

    PLAN_TEMPLATE = """You are an expert curriculum designer. Create a lesson plan for teaching "{subtopic}" in {subject} at the {level} level.

Context about this subtopic: {subtopic_prompt}

Generate exactly {lesson_count} lessons that progressively build understanding. Each lesson should focus on a specific sub-aspect of the topic.

Guidelines:
- Lesson 1: Introduction and fundamentals
- Middle lessons: Core concepts with increasing depth
- Final lesson: Application and synthesis

Return a JSON object with this structure:
{{
  "lessons": [
    {{ "title": "Lesson title", "focus": "Brief description of what this lesson covers" }}
  ]
}}

Make titles specific and engaging (not generic like "Introduction to X").
Ensure each lesson builds on the previous one."""

    LESSON_TEMPLATE = """You are an expert {subject} teacher creating educational content for students at the {level} level.

Topic: {subtopic}
Context: {subtopic_prompt}

Create Lesson {lesson_number} of {total_lessons}: "{title}"
Focus: {focus}

Guidelines:
- Use age-appropriate language for {level} students
- Include concrete examples that relate to students' lives
- Build on concepts progressively
- Make content engaging and memorable
- Each section should be 2-4 paragraphs

Return a JSON object with this EXACT structure:
{{
  "title": "{title}",
  "introduction": "2-3 sentence overview that hooks the reader and explains what they'll learn",
  "sections": [
    {{
      "heading": "Section heading",
      "content": "Detailed explanation (2-4 paragraphs)",
      "examples": ["Concrete example 1", "Concrete example 2"]
    }}
  ],
  "keyTakeaways": [
    "Key point 1 - something memorable",
    "Key point 2 - a core concept",
    "Key point 3 - practical application"
  ]
}}

Include 2-3 sections and 3-4 key takeaways."""

    def __init__(self, llm: LLMClient, lesson_delay: float = 0.5):
        self.llm = llm
        self.lesson_delay = lesson_delay
        self.plan_prompt = PromptTemplate.from_template(self.PLAN_TEMPLATE)
        self.lesson_prompt = PromptTemplate.from_template(self.LESSON_TEMPLATE)

    async def plan(
        self,
        subject: str,
        level: str,
        subtopic: str,
        subtopic_prompt: str,
        lesson_count: int = 4,
    ) -> LessonPlan:
        return await self.llm.generate_structured(
            self.plan_prompt.format(
                subject=subject,
                level=level,
                subtopic=subtopic,
                subtopic_prompt=subtopic_prompt,
                lesson_count=lesson_count,
            ),
            LessonPlan,
            agent_name="LessonGenerator",
        )

    async def write_lesson(
        self,
        subject: str,
        level: str,
        subtopic: str,
        subtopic_prompt: str,
        planned: PlannedLesson,
        lesson_number: int,
        total_lessons: int,
    ) -> GeneratedLesson:
        return await self.llm.generate_structured(
            self.lesson_prompt.format(
                subject=subject,
                level=level,
                subtopic=subtopic,
                subtopic_prompt=subtopic_prompt,
                title=planned.title,
                focus=planned.focus,
                lesson_number=lesson_number,
                total_lessons=total_lessons,
            ),
            GeneratedLesson,
            agent_name="LessonGenerator",
        )

    async def generate_for_subtopic(
        self,
        subject: str,
        level: str,
        subtopic: str,
        subtopic_prompt: str,
        lesson_count: Optional[int] = 4,
    ) -> List[GeneratedLesson]:
        """Plan, then write every planned lesson in order."""
        with agent_span("generate_lessons", "LessonGenerator", {
            "subject": subject,
            "level": level,
            "subtopic": subtopic,
        }):
            plan = await self.plan(subject, level, subtopic, subtopic_prompt, lesson_count)

            lessons: List[GeneratedLesson] = []
            for number, planned in enumerate(plan.lessons, start=1):
                if number > 1 and self.lesson_delay:
                    # Spacing between calls for provider rate limits
                    await asyncio.sleep(self.lesson_delay)
                lessons.append(await self.write_lesson(
                    subject, level, subtopic, subtopic_prompt,
                    planned, number, len(plan.lessons),
                ))

            logger.info("Generated %d lessons for subtopic %s", len(lessons), subtopic)
            return lessons
