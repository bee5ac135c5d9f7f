"""
Progress API Router

Mutating endpoints for the calling user's progress. Errors propagate:
a streak change is never reported as successful unless it was stored.

Endpoints:
- POST /api/progress/activity - Record activity for today (streak transition)
- PUT /api/progress/problems/{problem_id} - Record attempt status for a problem
- PUT /api/progress/daily-goal - Set the daily goal
"""

import logging

from fastapi import APIRouter, Depends

from app.dependencies import CurrentUserId, get_notifier, get_progress_store
from app.middleware.error_handling import handle_endpoint_errors
from app.models.progress import (
    AttemptEvent,
    DailyGoalRequest,
    RecordAttemptRequest,
    UserStreakSummary,
)
from app.services.progress import ProgressChangeNotifier, ProgressStore, StreakService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/progress", tags=["progress"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_streak_service(
    store: ProgressStore = Depends(get_progress_store),
    notifier: ProgressChangeNotifier = Depends(get_notifier),
) -> StreakService:
    """Get streak service."""
    return StreakService(store, notifier)


# ===========================================
# Activity Endpoints
# ===========================================


@router.post("/activity", response_model=UserStreakSummary)
@handle_endpoint_errors("Record activity")
async def record_activity(
    user_id: str = CurrentUserId,
    service: StreakService = Depends(get_streak_service),
) -> UserStreakSummary:
    """
    Record that the user was active today.

    Calling this more than once on the same day leaves the streak
    unchanged.
    """
    return await service.record_activity(user_id)


@router.put("/problems/{problem_id}", response_model=AttemptEvent)
@handle_endpoint_errors("Record attempt")
async def record_attempt(
    problem_id: str,
    request: RecordAttemptRequest,
    user_id: str = CurrentUserId,
    service: StreakService = Depends(get_streak_service),
) -> AttemptEvent:
    """
    Set the user's status on a problem.

    Status only moves forward (none → attempted → solved). Any status
    other than none also counts as activity for today's streak.
    """
    return await service.record_attempt(user_id, problem_id, request.status)


@router.put("/daily-goal", response_model=UserStreakSummary)
@handle_endpoint_errors("Update daily goal")
async def update_daily_goal(
    request: DailyGoalRequest,
    user_id: str = CurrentUserId,
    service: StreakService = Depends(get_streak_service),
) -> UserStreakSummary:
    """Set the number of problems the user aims to solve per day."""
    return await service.update_daily_goal(user_id, request.daily_goal)
