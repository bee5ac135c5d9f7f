"""
Analytics API Router

Read-only views over the calling user's progress. Store outages degrade
to empty results instead of errors.

Endpoints:
- GET /api/analytics/streak - Streak summary with milestones
- GET /api/analytics/topics - Per-topic progress, optionally by band
- GET /api/analytics/calendar - Heatmap for one month
- GET /api/analytics/recommendations - Next problems to work on
- GET /api/analytics/overview - Dashboard header numbers
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.config import settings
from app.dependencies import CurrentUserId, get_progress_store
from app.enums.progress import TopicBand
from app.middleware.error_handling import handle_endpoint_errors
from app.models.progress import (
    CalendarMonth,
    RecommendationResponse,
    StatsOverview,
    StreakResponse,
    TopicBreakdownResponse,
)
from app.services.progress import (
    CalendarService,
    ProgressStore,
    RecommendationService,
    StatsOverviewService,
    StreakService,
    TopicBreakdownService,
)
from app.services.progress.utils import today_in_zone

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/analytics", tags=["analytics"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_streak_service(
    store: ProgressStore = Depends(get_progress_store),
) -> StreakService:
    """Get streak service (read-only use, no notifier)."""
    return StreakService(store)


async def get_topic_service(
    store: ProgressStore = Depends(get_progress_store),
) -> TopicBreakdownService:
    """Get topic breakdown service."""
    return TopicBreakdownService(store)


async def get_calendar_service(
    store: ProgressStore = Depends(get_progress_store),
) -> CalendarService:
    """Get calendar service."""
    return CalendarService(store)


async def get_recommendation_service(
    store: ProgressStore = Depends(get_progress_store),
) -> RecommendationService:
    """Get recommendation service."""
    return RecommendationService(store)


async def get_overview_service(
    store: ProgressStore = Depends(get_progress_store),
) -> StatsOverviewService:
    """Get stats overview service."""
    return StatsOverviewService(store)


# ===========================================
# Streak Endpoints
# ===========================================


@router.get("/streak", response_model=StreakResponse)
@handle_endpoint_errors("Get streak")
async def get_streak(
    user_id: str = CurrentUserId,
    service: StreakService = Depends(get_streak_service),
) -> StreakResponse:
    """
    Get practice streak information.

    Returns:
    - Current and longest streak
    - Whether the user was active today, and whether the streak is at risk
    - Milestones reached and the next one
    """
    return await service.get_streak(user_id)


@router.get("/overview", response_model=StatsOverview)
@handle_endpoint_errors("Get stats overview")
async def get_overview(
    user_id: str = CurrentUserId,
    service: StatsOverviewService = Depends(get_overview_service),
) -> StatsOverview:
    """
    Get dashboard header statistics.

    Returns totals, streaks, today's progress toward the daily goal and
    solved counts by difficulty.
    """
    return await service.get_overview(user_id)


# ===========================================
# Topic Endpoints
# ===========================================


@router.get("/topics", response_model=TopicBreakdownResponse)
@handle_endpoint_errors("Get topic breakdown")
async def get_topic_breakdown(
    band: Optional[TopicBand] = Query(None, description="Only topics in this band"),
    user_id: str = CurrentUserId,
    service: TopicBreakdownService = Depends(get_topic_service),
) -> TopicBreakdownResponse:
    """
    Get solved vs. total problems per topic.

    Every topic is listed, including those with no solves, sorted by
    percentage solved (highest first).
    """
    return await service.get_topic_progress(user_id, band=band)


# ===========================================
# Calendar Endpoints
# ===========================================


@router.get("/calendar", response_model=CalendarMonth)
@handle_endpoint_errors("Get calendar")
async def get_calendar(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: str = CurrentUserId,
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarMonth:
    """
    Get the activity heatmap for one month (default: the current month).

    Only days with solves are listed; each carries a level from 0 to 3.
    """
    today = today_in_zone()
    return await service.get_month(user_id, year or today.year, month or today.month)


# ===========================================
# Recommendation Endpoints
# ===========================================


@router.get("/recommendations", response_model=RecommendationResponse)
@handle_endpoint_errors("Get recommendations")
async def get_recommendations(
    limit: int = Query(
        settings.RECOMMENDATION_MAX_RESULTS, ge=1, le=20, description="Maximum problems"
    ),
    user_id: str = CurrentUserId,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationResponse:
    """
    Get the next problems to work on.

    Biased toward the user's weakest topics; never includes a problem the
    user already attempted or solved. An empty list is a valid answer.
    """
    return await service.get_recommendations(user_id, max_results=limit)
