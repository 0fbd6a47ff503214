"""
LevelUp Learning - Go Deeper Tutor
Answers follow-up questions about a lesson, but only on-topic ones
"""
import json
import logging
from dataclasses import dataclass

from langchain_core.prompts import PromptTemplate

from levelup.ai.core.llm import LLMClient
from levelup.ai.core.telemetry import agent_span
from levelup.schemas.lesson import DeeperExplanation, LessonContext, RelevanceVerdict

logger = logging.getLogger(__name__)


@dataclass
class GoDeeperAnswer:
    is_relevant: bool
    confidence: float
    response: str


class GoDeeperTutor:
    """
    Strict relevance gate in front of a deeper explanation.

    Off-topic questions get a redirect instead of an explanation.
    """

    RELEVANCE_TEMPLATE = """You are a strict relevance checker for an educational platform. Your job is to determine if a student's question is directly related to a specific lesson they just completed.

LESSON CONTEXT:
- Subject: {subject}
- Level: {level}
- Subtopic: {subtopic}
- Lesson Title: "{title}"
- Lesson Introduction: "{introduction}"
- Key Takeaways: {takeaways}

STUDENT'S QUESTION:
"{question}"

STRICT RULES:
1. The question must be DIRECTLY about concepts covered in THIS specific lesson
2. Questions about related topics (even in the same subtopic) should be marked NOT relevant
3. Questions asking to explain concepts from the lesson in more detail ARE relevant
4. Questions asking for more examples of concepts from the lesson ARE relevant
5. Questions about entirely different subjects are NOT relevant
6. Questions about the next lesson or different topics are NOT relevant

Analyze the question and return a JSON object:
{{
  "is_relevant": true/false,
  "confidence": 0.0-1.0,
  "reason": "Brief explanation of your decision",
  "suggested_redirect": "If not relevant, suggest what the student should do instead"
}}

Be STRICT - when in doubt, mark as NOT relevant. We want students to stay focused on mastering one concept at a time."""

    EXPLANATION_TEMPLATE = """You are an expert {subject} tutor helping a {level} student understand a concept more deeply.

The student just completed a lesson titled "{title}" about {subtopic}.

Key concepts from the lesson:
{numbered_takeaways}

The student asks: "{question}"

Provide a detailed, helpful explanation that:
1. Directly addresses their question
2. Uses age-appropriate language for {level} students
3. Includes concrete examples they can relate to
4. Connects back to concepts from the lesson
5. Is encouraging and supportive

Keep your response focused and helpful (3-5 paragraphs). Do not introduce new topics not covered in the lesson.

Return as JSON: {{ "explanation": "your detailed response here" }}"""

    def __init__(self, llm: LLMClient):
        self.llm = llm
        self.relevance_prompt = PromptTemplate.from_template(self.RELEVANCE_TEMPLATE)
        self.explanation_prompt = PromptTemplate.from_template(self.EXPLANATION_TEMPLATE)

    async def check_relevance(self, lesson: LessonContext, question: str) -> RelevanceVerdict:
        return await self.llm.generate_structured(
            self.relevance_prompt.format(
                subject=lesson.subject_name,
                level=lesson.level_name,
                subtopic=lesson.subtopic_name,
                title=lesson.title,
                introduction=lesson.introduction,
                takeaways=json.dumps(lesson.key_takeaways),
                question=question,
            ),
            RelevanceVerdict,
            agent_name="GoDeeperTutor",
        )

    async def explain(self, lesson: LessonContext, question: str) -> str:
        result = await self.llm.generate_structured(
            self.explanation_prompt.format(
                subject=lesson.subject_name,
                level=lesson.level_name,
                subtopic=lesson.subtopic_name,
                title=lesson.title,
                numbered_takeaways="\n".join(
                    f"{i}. {t}" for i, t in enumerate(lesson.key_takeaways, start=1)
                ),
                question=question,
            ),
            DeeperExplanation,
            agent_name="GoDeeperTutor",
        )
        return result.explanation

    async def answer(self, lesson: LessonContext, question: str) -> GoDeeperAnswer:
        """Explain further when the question is about the lesson, otherwise redirect."""
        with agent_span("go_deeper", "GoDeeperTutor", {"lesson": lesson.title}) as span:
            verdict = await self.check_relevance(lesson, question)
            span.set_attribute("is_relevant", verdict.is_relevant)

            if verdict.is_relevant:
                response = await self.explain(lesson, question)
            else:
                logger.info("Off-topic follow-up on %r: %s", lesson.title, verdict.reason)
                response = verdict.suggested_redirect or self.redirect_message(lesson)

            return GoDeeperAnswer(
                is_relevant=verdict.is_relevant,
                confidence=verdict.confidence,
                response=response,
            )

    @staticmethod
    def redirect_message(lesson: LessonContext) -> str:
        focus = lesson.key_takeaways[0].lower() if lesson.key_takeaways else "the main ideas"
        return (
            f'That question doesn\'t seem to be directly related to this lesson on "{lesson.title}". '
            f"Try asking about the specific concepts we covered, like {focus}."
        )
