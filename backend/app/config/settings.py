"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from app.config import settings

    # Access settings
    db_url = settings.POSTGRES_URL
    goal = settings.STREAK_DEFAULT_DAILY_GOAL
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Progress Tracker"
    DEBUG: bool = False

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "progress"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "progress"
    # Create missing tables on startup. Turn off where the schema is
    # managed with `alembic upgrade head`.
    DB_AUTO_CREATE_TABLES: bool = True

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Sync PostgreSQL connection URL for Alembic migrations."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis (change notifications)
    REDIS_URL: str = "redis://localhost:6379/0"
    PROGRESS_CHANNEL_PREFIX: str = "progress"

    # Streaks
    # All "today" computations happen in this zone, on client and server alike.
    PROGRESS_TIMEZONE: str = "UTC"
    STREAK_DEFAULT_DAILY_GOAL: int = 3
    STREAK_MILESTONES: list[int] = [7, 30, 100, 365]

    # Recommendations
    RECOMMENDATION_MAX_RESULTS: int = 3
    RECOMMENDATION_WEAK_TOPIC_COUNT: int = 2
    RECOMMENDATION_PROBLEMS_PER_TOPIC: int = 2

    # Topic breakdown bands (percent solved)
    TOPIC_WEAK_PERCENTAGE: int = 30
    TOPIC_STRONG_PERCENTAGE: int = 70

    # Calendar heatmap levels (solved per day)
    CALENDAR_LEVEL_HIGH: int = 5
    CALENDAR_LEVEL_MEDIUM: int = 3
    CALENDAR_MAX_RANGE_DAYS: int = 366

    # Best-effort analytics reads
    ANALYTICS_READ_TIMEOUT_SECONDS: float = 5.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
