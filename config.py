"""
Configuration settings for the quizmastery service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///./quizmastery.db",
        description="SQLAlchemy connection string (PostgreSQL in production)",
    )
    store_max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts at a learner record write before giving up on version conflicts",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=5001,
        description="API server port",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )

    # ========================================
    # Dashboard & Analytics
    # ========================================
    recent_activity_limit: int = Field(
        default=5,
        ge=1,
        description="Number of attempts shown in the dashboard activity feed",
    )
    review_threshold: float = Field(
        default=0.40,
        ge=0.0,
        le=1.0,
        description="Overall mastery below this flags a student as at risk",
    )
    proficient_threshold: float = Field(
        default=0.70,
        ge=0.0,
        le=1.0,
        description="Overall mastery at or above this counts as proficient",
    )
    default_topics: list[str] = Field(
        default_factory=lambda: ["Algebra", "Calculus", "Geometry"],
        description="Topics offered when the catalog has none of its own",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
