"""
Streak Engine

Daily activity streaks for the per-user summary row.

Responsibilities:
- Compute the next streak summary from the previous one and "today"
- Persist transitions with an upsert keyed by user_id
- Record attempt status updates and keep total_solved in sync
- Provide the streak display data (milestones, at-risk flag)

Streak rules:
- First activity ever starts a streak of 1
- Activity on the same day as the last one changes nothing
- Activity the day after the last one continues the streak
- Any longer gap resets the streak to 1
- The longest streak never decreases

Usage:
    from app.services.progress.streak_engine import StreakService

    service = StreakService(store, notifier)
    summary = await service.record_activity(user_id)
    streak = await service.get_streak(user_id)
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from app.config import settings
from app.enums.progress import AttemptStatus, ProgressTable
from app.middleware.error_handling import NotFoundError, ValidationError
from app.models.progress import AttemptEvent, StreakResponse, UserStreakSummary
from app.services.progress.notifications import ProgressChangeNotifier
from app.services.progress.store import ProgressStore
from app.services.progress.utils import best_effort, today_in_zone

logger = logging.getLogger(__name__)


def compute_next_streak(
    previous: Optional[UserStreakSummary],
    today: date,
    *,
    user_id: Optional[str] = None,
    daily_goal: Optional[int] = None,
) -> UserStreakSummary:
    """
    Compute the streak summary after activity on ``today``.

    Pure function; calling it again with the same ``today`` returns its
    input unchanged, so retries and duplicate calls are safe.

    Args:
        previous: Stored summary, or None for a user with no summary yet.
        today: Calendar day of the activity, in the progress time zone.
        user_id: Owner of the new summary when ``previous`` is None.
        daily_goal: Daily goal for a new summary (default from settings).

    Returns:
        The next summary. When the activity is a no-op (same day, or a
        ``today`` earlier than the last activity) the ``previous`` object
        itself is returned.
    """
    if previous is None:
        if user_id is None:
            raise ValueError("user_id is required when there is no previous summary")
        return UserStreakSummary(
            user_id=user_id,
            total_solved=0,
            current_streak=1,
            longest_streak=1,
            daily_goal=daily_goal or settings.STREAK_DEFAULT_DAILY_GOAL,
            last_activity_date=today,
        )

    last = previous.last_activity_date
    if last is not None and last >= today:
        # Same day, or a client clock behind the stored date
        return previous

    if last is not None and last == today - timedelta(days=1):
        current = previous.current_streak + 1
    else:
        current = 1

    return previous.model_copy(
        update={
            "current_streak": current,
            "longest_streak": max(previous.longest_streak, current),
            "last_activity_date": today,
        }
    )


def milestone_progress(
    longest_streak: int,
    current_streak: int,
    milestones: Optional[list[int]] = None,
) -> tuple[list[int], Optional[int]]:
    """
    Return (milestones reached by the longest streak, next milestone for
    the current streak).
    """
    milestones = sorted(milestones if milestones is not None else settings.STREAK_MILESTONES)
    reached = [m for m in milestones if longest_streak >= m]
    next_milestone = next((m for m in milestones if m > current_streak), None)
    return reached, next_milestone


def build_streak_response(
    summary: Optional[UserStreakSummary], today: date
) -> StreakResponse:
    """
    Turn a stored summary into the streak display data.

    Counters are reported as stored; a streak only resets when the next
    activity is recorded.
    """
    if summary is None:
        _, next_milestone = milestone_progress(0, 0)
        return StreakResponse(
            daily_goal=settings.STREAK_DEFAULT_DAILY_GOAL,
            next_milestone=next_milestone,
        )

    last = summary.last_activity_date
    yesterday = today - timedelta(days=1)
    is_active_today = last is not None and last >= today
    current = summary.current_streak

    reached, next_milestone = milestone_progress(summary.longest_streak, current)

    return StreakResponse(
        current_streak=current,
        longest_streak=summary.longest_streak,
        total_solved=summary.total_solved,
        daily_goal=summary.daily_goal,
        last_activity_date=last,
        is_active_today=is_active_today,
        streak_at_risk=last == yesterday and current > 0,
        milestones_reached=reached,
        next_milestone=next_milestone,
    )


class StreakService:
    """
    Service that applies streak transitions against the progress store.

    Mutations propagate StoreUnavailableError: a streak change is never
    applied locally without being persisted.
    """

    def __init__(
        self,
        store: ProgressStore,
        notifier: Optional[ProgressChangeNotifier] = None,
    ):
        """
        Initialize the streak service.

        Args:
            store: Progress store for the summary row and ledger.
            notifier: Change publisher; None disables notifications.
        """
        self.store = store
        self.notifier = notifier

    async def _get_summary_or_none(self, user_id: str) -> Optional[UserStreakSummary]:
        try:
            return await self.store.get_user_streak_summary(user_id)
        except NotFoundError:
            return None

    async def _notify(self, table: ProgressTable, user_id: str, record) -> None:
        if self.notifier is not None:
            await self.notifier.publish(table, user_id, record)

    async def _advance_streak(
        self, user_id: str, today: date
    ) -> tuple[UserStreakSummary, bool]:
        """Apply the streak transition; the flag is False for a no-op."""
        previous = await self._get_summary_or_none(user_id)

        next_summary = compute_next_streak(previous, today, user_id=user_id)
        if next_summary is previous:
            logger.debug(f"Activity for {user_id} on {today} already recorded")
            return previous, False

        saved = await self.store.upsert_user_streak_summary(next_summary)
        await self._notify(ProgressTable.USER_STATS, user_id, saved)

        logger.info(
            f"Recorded activity for {user_id} on {today}: "
            f"streak {saved.current_streak} (longest {saved.longest_streak})"
        )
        return saved, True

    async def record_activity(
        self, user_id: str, today: Optional[date] = None
    ) -> UserStreakSummary:
        """
        Record activity for a user on ``today`` (default: today in the
        progress time zone).

        Args:
            user_id: User who was active.
            today: Calendar day of the activity.

        Returns:
            The stored summary after the transition.

        Raises:
            StoreUnavailableError: The store could not be read or written.
        """
        summary, _ = await self._advance_streak(user_id, today or today_in_zone())
        return summary

    async def record_attempt(
        self,
        user_id: str,
        problem_id: str,
        status: AttemptStatus,
        now: Optional[datetime] = None,
    ) -> AttemptEvent:
        """
        Record a status update for one problem.

        Applies the forward-only status transition, refreshes the user's
        solved total and, for any status other than none, records activity
        on the day of ``now``.

        Args:
            user_id: User making the update.
            problem_id: Problem being updated; must exist in the catalog.
            status: Requested status.
            now: Timestamp of the update (default: current UTC time).

        Returns:
            The stored ledger row.

        Raises:
            NotFoundError: Unknown problem.
            StoreUnavailableError: The store could not be read or written.
        """
        now = now or datetime.now(timezone.utc)
        await self.store.get_problem(problem_id)

        event = await self.store.upsert_attempt_event(user_id, problem_id, status, now)
        await self._notify(ProgressTable.USER_PROGRESS, user_id, event)

        total_solved = await self.store.count_solved(user_id)
        summary = await self.store.set_total_solved(user_id, total_solved)

        # total_solved changed above, so user_stats is announced even when
        # the streak itself does not move.
        published = False
        if status != AttemptStatus.NONE:
            summary, published = await self._advance_streak(user_id, today_in_zone(now))
        if not published:
            await self._notify(ProgressTable.USER_STATS, user_id, summary)

        logger.info(f"Recorded {event.status.value} for {user_id} on problem {problem_id}")
        return event

    async def update_daily_goal(self, user_id: str, daily_goal: int) -> UserStreakSummary:
        """
        Set the number of problems the user aims to solve per day.

        Raises:
            ValidationError: daily_goal is not positive.
        """
        if daily_goal <= 0:
            raise ValidationError(
                "Daily goal must be positive", details={"daily_goal": daily_goal}
            )

        saved = await self.store.set_daily_goal(user_id, daily_goal)
        await self._notify(ProgressTable.USER_STATS, user_id, saved)
        logger.info(f"Daily goal for {user_id} set to {daily_goal}")
        return saved

    async def get_streak(self, user_id: str, today: Optional[date] = None) -> StreakResponse:
        """
        Get streak display data. Store failures degrade to an empty streak.
        """
        today = today or today_in_zone()
        summary = await best_effort(
            self._get_summary_or_none(user_id), None, f"Streak read for {user_id}"
        )
        return build_streak_response(summary, today)
