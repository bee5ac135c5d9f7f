"""
Shared helpers for the progress services.

- Time zone handling: every "today" and every calendar-day truncation uses
  the single zone configured in PROGRESS_TIMEZONE.
- Best-effort reads: analytics reads are bounded by a timeout and degrade
  to a default value on store failures.
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Awaitable, Optional, TypeVar
from zoneinfo import ZoneInfo

from app.config import settings
from app.middleware.error_handling import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_progress_timezone() -> ZoneInfo:
    """Return the configured progress time zone."""
    return ZoneInfo(settings.PROGRESS_TIMEZONE)


def to_local_date(value: datetime | date, tz: Optional[ZoneInfo] = None) -> date:
    """
    Truncate a timestamp to its calendar day.

    Aware datetimes are converted to ``tz`` (default: the configured zone)
    first; naive datetimes and plain dates are truncated as-is.
    """
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is not None:
        value = value.astimezone(tz or get_progress_timezone())
    return value.date()


def today_in_zone(now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> date:
    """Return today's date in the progress time zone."""
    now = now or datetime.now(timezone.utc)
    return to_local_date(now, tz)


async def best_effort(
    awaitable: Awaitable[T],
    default: T,
    operation: str,
    timeout: Optional[float] = None,
) -> T:
    """
    Await a read-only store call, degrading to ``default`` on failure.

    Timeouts and StoreUnavailableError are logged at WARNING and swallowed;
    any other exception propagates.
    """
    timeout = settings.ANALYTICS_READ_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{operation} timed out after {timeout}s, returning partial result")
    except StoreUnavailableError as e:
        logger.warning(f"{operation} degraded, store unavailable: {e.message}")
    return default
