"""
Stats Overview

Dashboard header numbers: totals, streaks, today's progress toward the
daily goal and the solved distribution by difficulty.

Usage:
    service = StatsOverviewService(store)
    overview = await service.get_overview(user_id)
"""

import logging
from datetime import date
from typing import Iterable, Optional

from app.config import settings
from app.enums.progress import AttemptStatus, Difficulty
from app.middleware.error_handling import NotFoundError
from app.models.progress import (
    AttemptEvent,
    DifficultyCount,
    Problem,
    StatsOverview,
    UserStreakSummary,
)
from app.services.progress.store import ProgressStore
from app.services.progress.utils import best_effort, to_local_date, today_in_zone

logger = logging.getLogger(__name__)


def aggregate_by_difficulty(
    events: Iterable[AttemptEvent],
    problems: Iterable[Problem],
) -> list[DifficultyCount]:
    """
    Count solved problems per difficulty.

    All three difficulties are always present (easy, medium, hard order).
    Solved events for problems missing from the catalog are skipped.
    """
    difficulty_by_problem = {p.id: p.difficulty for p in problems}
    counts = {difficulty: 0 for difficulty in Difficulty}

    for event in events:
        if event.status != AttemptStatus.SOLVED:
            continue
        difficulty = difficulty_by_problem.get(event.problem_id)
        if difficulty is not None:
            counts[difficulty] += 1

    return [DifficultyCount(difficulty=d, count=c) for d, c in counts.items()]


def count_solved_on(events: Iterable[AttemptEvent], day: date) -> int:
    """Number of problems solved on a calendar day."""
    return sum(
        1
        for e in events
        if e.status == AttemptStatus.SOLVED
        and e.solved_at is not None
        and to_local_date(e.solved_at) == day
    )


class StatsOverviewService:
    """Service for the dashboard header. Read-only and best effort."""

    def __init__(self, store: ProgressStore):
        self.store = store

    async def _summary_or_none(self, user_id: str) -> Optional[UserStreakSummary]:
        try:
            return await self.store.get_user_streak_summary(user_id)
        except NotFoundError:
            return None

    async def get_overview(
        self, user_id: str, today: Optional[date] = None
    ) -> StatsOverview:
        """
        Get the dashboard overview for a user.

        A user without a summary row gets zeros and the default daily goal.
        """
        today = today or today_in_zone()

        summary = await best_effort(
            self._summary_or_none(user_id), None, f"Overview summary for {user_id}"
        )
        events = await best_effort(
            self.store.list_attempt_events(user_id, status=AttemptStatus.SOLVED),
            [],
            f"Overview events for {user_id}",
        )
        problems = await best_effort(self.store.list_problems(), [], "Overview catalog")

        daily_goal = summary.daily_goal if summary else settings.STREAK_DEFAULT_DAILY_GOAL
        solved_today = count_solved_on(events, today)

        return StatsOverview(
            total_solved=summary.total_solved if summary else 0,
            current_streak=summary.current_streak if summary else 0,
            longest_streak=summary.longest_streak if summary else 0,
            daily_goal=daily_goal,
            solved_today=solved_today,
            daily_goal_met=solved_today >= daily_goal,
            by_difficulty=aggregate_by_difficulty(events, problems),
        )
