"""
Calendar Aggregator

Groups solved problems into per-day counts for the activity heatmap.

Days are calendar days in the progress time zone. Days without activity
are left out of the mapping; the caller treats them as 0. Streak values
shown next to the heatmap come from the stored summary, never from the
days in view.

Usage:
    from app.services.progress.calendar_aggregator import CalendarService

    service = CalendarService(store)
    month = await service.get_month(user_id, 2025, 3)
"""

import calendar
import logging
from collections import Counter
from datetime import date, datetime, time
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from app.config import settings
from app.enums.progress import AttemptStatus
from app.middleware.error_handling import NotFoundError, ValidationError
from app.models.progress import AttemptEvent, CalendarDay, CalendarMonth
from app.services.progress.store import ProgressStore
from app.services.progress.utils import best_effort, get_progress_timezone, to_local_date

logger = logging.getLogger(__name__)


def aggregate_by_day(
    events: Iterable[AttemptEvent],
    range_start: date,
    range_end: date,
    tz: Optional[ZoneInfo] = None,
) -> dict[date, int]:
    """
    Count solved problems per calendar day within a range.

    Args:
        events: Ledger rows; only solved rows with a solved_at are counted.
        range_start: First day of the range (inclusive).
        range_end: Last day of the range (inclusive).
        tz: Zone used to truncate aware timestamps (default: configured zone).

    Returns:
        Mapping of day → count for days with at least one solve.
    """
    tz = tz or get_progress_timezone()
    counts: Counter[date] = Counter()

    for event in events:
        if event.status != AttemptStatus.SOLVED or event.solved_at is None:
            continue
        day = to_local_date(event.solved_at, tz)
        if range_start <= day <= range_end:
            counts[day] += 1

    return dict(counts)


def activity_level(count: int) -> int:
    """
    Heatmap level (0-3) for a day's solved count.

    Thresholds are configured in settings (CALENDAR_LEVEL_*).
    """
    if count >= settings.CALENDAR_LEVEL_HIGH:
        return 3
    elif count >= settings.CALENDAR_LEVEL_MEDIUM:
        return 2
    elif count >= 1:
        return 1
    return 0


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """
    First and last day of a month.

    Raises:
        ValidationError: Month or year out of range.
    """
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ValidationError(
            "Invalid calendar month", details={"year": year, "month": month}
        )
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _day_bounds(range_start: date, range_end: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Aware datetimes covering whole local days from range_start to range_end."""
    start = datetime.combine(range_start, time.min, tzinfo=tz)
    end = datetime.combine(range_end, time.max, tzinfo=tz)
    return start, end


class CalendarService:
    """
    Service for heatmap data.

    Read-only: store failures degrade to an empty calendar.
    """

    def __init__(self, store: ProgressStore):
        self.store = store

    async def _read_events(
        self, user_id: str, range_start: date, range_end: date, tz: ZoneInfo
    ) -> list[AttemptEvent]:
        return await self.store.list_attempt_events(
            user_id,
            status=AttemptStatus.SOLVED,
            date_range=_day_bounds(range_start, range_end, tz),
        )

    async def _read_streaks(self, user_id: str) -> tuple[int, int]:
        try:
            summary = await self.store.get_user_streak_summary(user_id)
        except NotFoundError:
            return 0, 0
        return summary.current_streak, summary.longest_streak

    async def get_range(
        self,
        user_id: str,
        range_start: date,
        range_end: date,
    ) -> CalendarMonth:
        """
        Get heatmap data for an arbitrary inclusive date range.

        Args:
            user_id: User whose activity to show.
            range_start: First day (inclusive).
            range_end: Last day (inclusive).

        Returns:
            CalendarMonth with one CalendarDay per active day, sorted by date.

        Raises:
            ValidationError: Reversed range or longer than CALENDAR_MAX_RANGE_DAYS.
        """
        if range_end < range_start:
            raise ValidationError(
                "Calendar range end is before its start",
                details={"start": range_start.isoformat(), "end": range_end.isoformat()},
            )
        span = (range_end - range_start).days + 1
        if span > settings.CALENDAR_MAX_RANGE_DAYS:
            raise ValidationError(
                f"Calendar range is limited to {settings.CALENDAR_MAX_RANGE_DAYS} days",
                details={"days": span},
            )

        tz = get_progress_timezone()
        events = await best_effort(
            self._read_events(user_id, range_start, range_end, tz),
            [],
            f"Calendar events for {user_id}",
        )
        current_streak, longest_streak = await best_effort(
            self._read_streaks(user_id), (0, 0), f"Calendar streaks for {user_id}"
        )

        counts = aggregate_by_day(events, range_start, range_end, tz)
        days = [
            CalendarDay(date=day, count=count, level=activity_level(count))
            for day, count in sorted(counts.items())
        ]

        return CalendarMonth(
            range_start=range_start,
            range_end=range_end,
            days=days,
            total_solved=sum(counts.values()),
            active_days=len(counts),
            current_streak=current_streak,
            longest_streak=longest_streak,
        )

    async def get_month(self, user_id: str, year: int, month: int) -> CalendarMonth:
        """
        Get heatmap data for one calendar month.

        Raises:
            ValidationError: Invalid year or month.
        """
        range_start, range_end = month_bounds(year, month)
        result = await self.get_range(user_id, range_start, range_end)
        return result.model_copy(update={"year": year, "month": month})
