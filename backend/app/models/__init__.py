"""Pydantic models for the application."""

from app.models.progress import (
    AttemptEvent,
    CalendarDay,
    CalendarMonth,
    DayCount,
    Problem,
    RecommendationResponse,
    StatsOverview,
    StreakResponse,
    Topic,
    TopicCount,
    TopicProgress,
    UserStreakSummary,
)

__all__ = [
    "AttemptEvent",
    "CalendarDay",
    "CalendarMonth",
    "DayCount",
    "Problem",
    "RecommendationResponse",
    "StatsOverview",
    "StreakResponse",
    "Topic",
    "TopicCount",
    "TopicProgress",
    "UserStreakSummary",
]
