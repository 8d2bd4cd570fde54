"""
Application Settings for Gemini Chat

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Daily message limits are keyed by subscription tier:
    - basic: BASIC_DAILY_LIMIT
    - pro: PRO_DAILY_LIMIT
    """

    # Google AI Configuration (accepts GOOGLE_API_KEY or GEMINI_API_KEY)
    google_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    generation_temperature: float = 0.7
    generation_max_output_tokens: int = 2048

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Auth collaborator (token verification only)
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"

    # Daily quota per subscription tier
    basic_daily_limit: int = 5
    pro_daily_limit: int = 100

    # Generation pipeline
    history_window: int = 10
    generation_timeout_seconds: float = 30.0
    generation_max_retries: int = 3
    generation_retry_intervals: list[int] = [5, 30, 120]
    generation_job_timeout_seconds: int = 180
    generation_queue_name: str = "generation"

    # Orphaned placeholder sweep
    sweep_grace_seconds: int = 300
    sweep_batch_size: int = 100

    # Redis (queue + listing cache)
    redis_url: str = "redis://localhost:6379/0"
    chatroom_cache_ttl_seconds: int = 300

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_pipeline(self) -> "Settings":
        """Normalize API key aliases and reject unusable pipeline limits."""
        # Normalize gemini_api_key to google_api_key
        if not self.google_api_key and self.gemini_api_key:
            self.google_api_key = self.gemini_api_key

        positive = {
            "BASIC_DAILY_LIMIT": self.basic_daily_limit,
            "PRO_DAILY_LIMIT": self.pro_daily_limit,
            "HISTORY_WINDOW": self.history_window,
            "GENERATION_TIMEOUT_SECONDS": self.generation_timeout_seconds,
            "GENERATION_JOB_TIMEOUT_SECONDS": self.generation_job_timeout_seconds,
            "CHATROOM_CACHE_TTL_SECONDS": self.chatroom_cache_ttl_seconds,
            "SWEEP_GRACE_SECONDS": self.sweep_grace_seconds,
            "SWEEP_BATCH_SIZE": self.sweep_batch_size,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive")

        if self.generation_max_retries < 0:
            raise ValueError("GENERATION_MAX_RETRIES cannot be negative")

        if any(interval < 0 for interval in self.generation_retry_intervals):
            raise ValueError("GENERATION_RETRY_INTERVALS cannot be negative")

        return self

    @property
    def async_database_url(self) -> Optional[str]:
        """DATABASE_URL rewritten for the asyncpg driver."""
        database_url = self.database_url
        if not database_url:
            return None
        if database_url.startswith("postgresql://"):
            database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql+asyncpg://", 1)
        return database_url

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
