"""
LevelUp Learning - AI Module Initialization
Content generators built on the shared LLM client.
"""
from levelup.ai.core.llm import LLMClient, get_llm_client
from levelup.ai.core.telemetry import init_telemetry, get_tracer, agent_span
from levelup.ai.assessment_generator import QuestionPoolBuilder
from levelup.ai.quiz_generator import QuizGenerator
from levelup.ai.lesson_generator import LessonGenerator
from levelup.ai.lesson_quiz_generator import LessonQuizGenerator
from levelup.ai.go_deeper import GoDeeperTutor

__all__ = [
    # Core
    "LLMClient",
    "get_llm_client",

    # Telemetry
    "init_telemetry",
    "get_tracer",
    "agent_span",

    # Generators
    "QuestionPoolBuilder",
    "QuizGenerator",
    "LessonGenerator",
    "LessonQuizGenerator",
    "GoDeeperTutor",
]
