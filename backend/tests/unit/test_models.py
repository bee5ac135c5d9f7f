"""
Unit tests for Pydantic models.

Tests the progress request/response models for proper validation and
serialization.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from app.enums.progress import AttemptStatus, Difficulty
from app.models.progress import (
    AttemptEvent,
    CalendarDay,
    DailyGoalRequest,
    Problem,
    RecordAttemptRequest,
    UserStreakSummary,
)


class TestUserStreakSummary:
    """Tests for the UserStreakSummary model."""

    def test_defaults(self):
        summary = UserStreakSummary(user_id="u1")

        assert summary.current_streak == 0
        assert summary.longest_streak == 0
        assert summary.daily_goal == 3
        assert summary.last_activity_date is None

    def test_longest_must_cover_current(self):
        with pytest.raises(ValidationError):
            UserStreakSummary(user_id="u1", current_streak=4, longest_streak=3)

    @pytest.mark.parametrize(
        "field,value",
        [
            pytest.param("current_streak", -1, id="negative_current"),
            pytest.param("total_solved", -1, id="negative_total"),
            pytest.param("daily_goal", 0, id="zero_goal"),
        ],
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            UserStreakSummary(user_id="u1", **{field: value})

    def test_serializes_date(self):
        summary = UserStreakSummary(user_id="u1", last_activity_date=date(2025, 3, 15))

        assert summary.model_dump(mode="json")["last_activity_date"] == "2025-03-15"


class TestCatalogModels:
    """Tests for Problem and AttemptEvent."""

    def test_problem_defaults(self):
        problem = Problem(id="p1")

        assert problem.difficulty == Difficulty.EASY
        assert problem.tags == []
        assert problem.topic_id is None

    def test_problem_from_string_difficulty(self):
        assert Problem(id="p1", difficulty="hard").difficulty == Difficulty.HARD

    def test_attempt_event_default_status(self):
        assert AttemptEvent(user_id="u1", problem_id="p1").status == AttemptStatus.NONE


class TestRequests:
    """Tests for request bodies (strict: unknown fields rejected)."""

    def test_record_attempt(self):
        assert RecordAttemptRequest(status="solved").status == AttemptStatus.SOLVED

    def test_record_attempt_rejects_unknown_field(self):
        with pytest.raises(ValidationError):
            RecordAttemptRequest(status="solved", problem_id="p1")

    @pytest.mark.parametrize("goal", [0, 101])
    def test_daily_goal_bounds(self, goal):
        with pytest.raises(ValidationError):
            DailyGoalRequest(daily_goal=goal)


def test_calendar_day_level_bounds():
    with pytest.raises(ValidationError):
        CalendarDay(date=date(2025, 3, 1), count=9, level=4)
