"""
Progress Tracking API Models (Pydantic)

Request/response schemas for the progress analytics API including:
- Attempt events and the per-user streak summary
- Topic and problem catalog entries
- Derived views: topic counts, calendar days, recommendations, overview

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    There is a corresponding SQLAlchemy file: app/db/models_progress.py

    Data flows: Store (SQLAlchemy) → Pydantic → pure aggregators → API Response

Derived models (TopicCount, DayCount, ...) are recomputed per request
and never persisted.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import Field, model_validator

from app.enums.progress import (
    AttemptStatus,
    ChangeType,
    Difficulty,
    ProgressTable,
    TopicBand,
)
from app.models.base import StrictRequest, StrictResponse


# ===========================================
# Ledger & Summary Models
# ===========================================


class AttemptEvent(StrictResponse):
    """
    A user's status on one problem.

    One row per (user_id, problem_id). Rows are updated in place when a
    problem moves from attempted to solved; timestamps are timezone-aware.
    """

    user_id: str
    problem_id: str
    status: AttemptStatus = AttemptStatus.NONE
    attempted_at: Optional[datetime] = None
    solved_at: Optional[datetime] = None


class UserStreakSummary(StrictResponse):
    """
    Single per-user summary row holding streak counters.

    Invariants:
    - longest_streak >= current_streak
    - last_activity_date never decreases across updates
    """

    user_id: str
    total_solved: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    daily_goal: int = Field(3, gt=0)
    last_activity_date: Optional[date] = None

    @model_validator(mode="after")
    def _check_longest_covers_current(self) -> "UserStreakSummary":
        if self.longest_streak < self.current_streak:
            raise ValueError("longest_streak must be >= current_streak")
        return self


# ===========================================
# Catalog Models
# ===========================================


class Topic(StrictResponse):
    """Topic in the static catalog (e.g., "Arrays", "Graphs")."""

    id: str
    name: str
    order_index: int = 0
    description: Optional[str] = None


class Problem(StrictResponse):
    """
    Practice problem in the static catalog.

    created_at drives the "most recently added" recommendation fallback.
    """

    id: str
    topic_id: Optional[str] = None
    title: str = ""
    difficulty: Difficulty = Difficulty.EASY
    tags: list[str] = Field(default_factory=list)
    order_index: int = 0
    problem_url: Optional[str] = None
    created_at: Optional[datetime] = None


# ===========================================
# Derived Views
# ===========================================


class TopicCount(StrictResponse):
    """Solved count for one topic."""

    topic_id: str
    topic_name: str
    count: int = Field(0, ge=0)


class DayCount(StrictResponse):
    """Solved count for one calendar day."""

    date: date
    count: int = Field(0, ge=0)


class TopicProgress(StrictResponse):
    """
    Solved vs. total problems for a topic.

    Used for "n of N" bar charts; percentage is 0 when the topic has no problems.
    """

    topic_id: str
    topic_name: str
    solved: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    percentage: int = Field(0, ge=0, le=100)
    band: TopicBand = TopicBand.WEAK


class TopicBreakdownResponse(StrictResponse):
    """Per-topic progress plus totals across all topics."""

    topics: list[TopicProgress] = Field(default_factory=list)
    total_solved: int = 0
    total_problems: int = 0


class CalendarDay(StrictResponse):
    """Single heatmap cell with activity level 0-3."""

    date: date
    count: int = Field(0, ge=0)
    level: int = Field(0, ge=0, le=3, description="Activity level for heatmap coloring")


class CalendarMonth(StrictResponse):
    """
    Heatmap data for a date range (usually one month).

    Only days with activity are listed; streak values come from the
    stored summary, not from the days in range.
    """

    range_start: date
    range_end: date
    year: Optional[int] = None
    month: Optional[int] = None
    days: list[CalendarDay] = Field(default_factory=list)
    total_solved: int = Field(0, description="Problems solved within the range")
    active_days: int = Field(0, description="Days with at least one solve")
    current_streak: int = 0
    longest_streak: int = 0


class StreakResponse(StrictResponse):
    """
    Streak summary plus display flags.

    streak_at_risk is True when the user was active yesterday but not yet today.
    """

    current_streak: int = 0
    longest_streak: int = 0
    total_solved: int = 0
    daily_goal: int = 3
    last_activity_date: Optional[date] = None
    is_active_today: bool = False
    streak_at_risk: bool = False
    milestones_reached: list[int] = Field(default_factory=list)
    next_milestone: Optional[int] = None


class RecommendationResponse(StrictResponse):
    """Ordered next-problem suggestions."""

    problems: list[Problem] = Field(default_factory=list)
    weak_topic_ids: list[str] = Field(default_factory=list)
    cold_start: bool = False
    used_fallback: bool = False


class DifficultyCount(StrictResponse):
    """Solved count for one difficulty level."""

    difficulty: Difficulty
    count: int = Field(0, ge=0)


class StatsOverview(StrictResponse):
    """Dashboard header numbers."""

    total_solved: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    daily_goal: int = 3
    solved_today: int = 0
    daily_goal_met: bool = False
    by_difficulty: list[DifficultyCount] = Field(default_factory=list)


# ===========================================
# Requests
# ===========================================


class RecordAttemptRequest(StrictRequest):
    """Set the status of a problem for the calling user."""

    status: AttemptStatus


class DailyGoalRequest(StrictRequest):
    """Change the number of problems a user aims to solve per day."""

    daily_goal: int = Field(..., gt=0, le=100)


# ===========================================
# Change Notifications
# ===========================================


class ProgressChange(StrictResponse):
    """
    Payload published when a progress table changes.

    Subscribers only need table + user_id to know which view to recompute;
    record carries the new row for convenience.
    """

    table: ProgressTable
    user_id: str
    change_type: ChangeType = ChangeType.UPDATE
    record: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime
