"""
Application configuration management using Pydantic Settings.

This module provides a type-safe, centralized configuration system
that loads from environment variables with sensible defaults.
"""

from typing import Literal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via .env file or environment variables.
    Settings are validated at startup using Pydantic.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===== API Keys =====
    ANTHROPIC_API_KEY: str | None = Field(
        default=None,
        description="Anthropic API key for Claude (required for content generation)"
    )

    OPENAI_API_KEY: str | None = Field(
        default=None,
        description="OpenAI API key for embeddings (required for knowledge search)"
    )

    # ===== Supabase Configuration =====
    SUPABASE_URL: str | None = Field(
        default=None,
        description="Supabase project URL"
    )

    SUPABASE_SERVICE_KEY: str | None = Field(
        default=None,
        description="Supabase service role key (for server-side operations, bypasses RLS)"
    )

    # ===== LLM Configuration =====
    MODEL_NAME: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model used for every generation sub-task"
    )

    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model for knowledge search"
    )

    TEMPERATURE: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="LLM temperature for generation"
    )

    # ===== Dispatch =====
    DISPATCH_BACKEND: Literal["http", "rq"] = Field(
        default="http",
        description="How jobs are handed to the worker: HTTP call to the worker endpoint, or an RQ queue"
    )

    WORKER_URL: str | None = Field(
        default=None,
        description="Worker entry point URL (defaults to APP_BASE_URL + /api/worker/process-generation)"
    )

    WORKER_API_KEY: str | None = Field(
        default=None,
        description="Shared secret sent as X-API-Key to the worker endpoint"
    )

    DISPATCH_ACK_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        gt=0,
        le=30,
        description="How long the start endpoint waits for the worker to acknowledge a job"
    )

    REDIS_URL: str | None = Field(
        default=None,
        description="Redis URL for the RQ dispatch backend"
    )

    GENERATION_QUEUE: str = Field(
        default="generation",
        description="RQ queue name for generation jobs"
    )

    WORKER_JOB_TIMEOUT_SECONDS: int = Field(
        default=900,
        ge=60,
        description="Hard limit for one worker execution (RQ job_timeout)"
    )

    # ===== Retry Policy =====
    SUBTASK_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per sub-task before it is given up"
    )

    RETRY_INITIAL_DELAY_SECONDS: float = Field(
        default=5.0,
        ge=0,
        description="Delay before the first retry"
    )

    RETRY_MAX_DELAY_SECONDS: float = Field(
        default=60.0,
        ge=0,
        description="Upper bound for the backoff delay"
    )

    RETRY_BACKOFF_MULTIPLIER: float = Field(
        default=2.0,
        ge=1.0,
        description="Delay multiplier between consecutive retries"
    )

    SUBTASK_TIMEOUT_SECONDS: float = Field(
        default=180.0,
        gt=0,
        description="Timeout for a single sub-task attempt"
    )

    # ===== Content Validation =====
    MIN_SECTION_WORDS: int = Field(
        default=50,
        ge=0,
        description="Minimum words for a generated section to be accepted"
    )

    # ===== Knowledge Search =====
    RAG_THRESHOLD: float = Field(
        default=0.3,
        ge=-1.0,
        le=1.0,
        description="Minimum cosine similarity for a knowledge chunk to be used"
    )

    RAG_LIMIT: int = Field(
        default=40,
        ge=1,
        le=200,
        description="Maximum knowledge chunks passed to idea generation"
    )

    # ===== Application Settings =====
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment mode: development or production"
    )

    DEV_MODE: bool = Field(
        default=True,
        description="Enable dev mode: auth bypass for local testing"
    )

    @field_validator('DEV_MODE', mode='before')
    @classmethod
    def parse_bool_string(cls, v):
        """Parse boolean from string values (hosting env vars are strings)."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return False

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    APP_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL for the application (used to reach the worker endpoint)"
    )

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for all (dev only)."
    )

    # ===== Computed Properties =====

    @property
    def worker_url(self) -> str:
        """Worker entry point, derived from APP_BASE_URL unless set explicitly."""
        if self.WORKER_URL:
            return self.WORKER_URL
        return f"{self.APP_BASE_URL.rstrip('/')}/api/worker/process-generation"

    @property
    def worker_auth_required(self) -> bool:
        """The worker endpoint checks X-API-Key only when a key is configured."""
        return bool(self.WORKER_API_KEY)

    @property
    def allowed_origins_list(self) -> list[str]:
        """Get list of allowed CORS origins.

        In production (DEV_MODE=false), '*' falls back to APP_BASE_URL.
        """
        if self.ALLOWED_ORIGINS == "*":
            if self.DEV_MODE:
                return ["*"]
            import sys
            print(
                "⚠️  WARNING: ALLOWED_ORIGINS='*' is not secure in production. "
                f"Using APP_BASE_URL ({self.APP_BASE_URL}) instead.",
                file=sys.stderr
            )
            return [self.APP_BASE_URL]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase is properly configured."""
        return (
            self.SUPABASE_URL is not None
            and self.SUPABASE_SERVICE_KEY is not None
        )

    @property
    def knowledge_search_enabled(self) -> bool:
        """Knowledge search needs an embedding provider."""
        return self.OPENAI_API_KEY is not None


# Global configuration instance
# Import this in other modules: from launchpad.config import config
config = AppConfig()


if __name__ == "__main__":
    print("Configuration loaded successfully!")
    print(f"Model: {config.MODEL_NAME}")
    print(f"Dispatch: {config.DISPATCH_BACKEND} (ack {config.DISPATCH_ACK_TIMEOUT_SECONDS}s)")
    print(f"Worker URL: {config.worker_url}")
    print(f"Retry: {config.SUBTASK_MAX_ATTEMPTS} attempts, {config.SUBTASK_TIMEOUT_SECONDS}s per attempt")
    print(f"Supabase: {'✓' if config.supabase_configured else '✗'}")
    print(f"Knowledge search: {'✓' if config.knowledge_search_enabled else '✗'}")
