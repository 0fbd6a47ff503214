"""LevelUp Learning - Models initialization."""
from levelup.models.user import User
from levelup.models.curriculum import Subject, Level, Subtopic
from levelup.models.assessment import Assessment, UserSubjectLevel
from levelup.models.progress import SubtopicQuestionRecord, DailyLevelScore
from levelup.models.quiz import Quiz, QuizAttempt
from levelup.models.lesson import GoDeeperExchange, Lesson, LessonProgress


__all__ = [
    # User models
    "User",
    # Curriculum models
    "Subject",
    "Level",
    "Subtopic",
    # Placement models
    "Assessment",
    "UserSubjectLevel",
    # Mastery models
    "SubtopicQuestionRecord",
    "DailyLevelScore",
    # Quiz models
    "Quiz",
    "QuizAttempt",
    # Lesson models
    "Lesson",
    "LessonProgress",
    "GoDeeperExchange",
]
