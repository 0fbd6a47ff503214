"""
LevelUp Learning - Core Configuration
Pydantic Settings for application configuration with environment variable support
"""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "LevelUp Learning"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Security
    SECRET_KEY: str = "your-super-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "levelup"
    DATABASE_URL_OVERRIDE: str = ""

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # LLM Configuration
    LLM_PROVIDER: Literal["openai", "anthropic"] = "anthropic"
    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_MODEL: str = "claude-opus-4-5-20251101"
    LLM_MAX_TOKENS: int = 4096

    # LLM Reliability
    LLM_TIMEOUT_SECONDS: int = 60
    LLM_MAX_RETRIES: int = 3
    LLM_RETRY_DELAY_SECONDS: float = 1.0

    # Adaptive placement
    ASSESSMENT_QUESTIONS_PER_LEVEL: int = 3
    ASSESSMENT_QUESTION_BUDGET: int = 10

    # Mastery tracking
    MASTERY_WINDOW_SIZE: int = 40
    MASTERY_MIN_QUESTIONS: int = 40
    MASTERY_PASS_THRESHOLD: int = 90  # strictly greater than
    DAILY_HISTORY_DAYS: int = 30

    # Lesson seeding
    SEED_CONCURRENCY: int = 3
    SEED_BATCH_DELAY_SECONDS: float = 2.0
    SEED_LESSONS_PER_SUBTOPIC: int = 4
    SEED_CHECKPOINT_PATH: str = "lesson-seed-checkpoint.json"

    # Lesson study tools
    LESSON_QUIZ_QUESTIONS: int = 5
    GO_DEEPER_HISTORY_LIMIT: int = 10

    # Telemetry
    TELEMETRY_ENABLED: bool = False
    OTEL_SERVICE_NAME: str = "levelup-backend"
    OTEL_EXPORTER_OTLP_ENDPOINT: str = ""

    # CORS - stored as comma-separated string
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173"

    @property
    def CORS_ORIGINS(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.CORS_ORIGINS_STR.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
