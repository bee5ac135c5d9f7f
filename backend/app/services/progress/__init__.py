"""
Progress analytics services.

Pure aggregation functions plus the async services that feed them from
the progress store.
"""

from app.services.progress.calendar_aggregator import (
    CalendarService,
    activity_level,
    aggregate_by_day,
)
from app.services.progress.notifications import (
    ProgressChangeNotifier,
    ProgressSubscription,
)
from app.services.progress.recommendation_engine import (
    RecommendationService,
    recommend,
)
from app.services.progress.stats_overview import (
    StatsOverviewService,
    aggregate_by_difficulty,
)
from app.services.progress.store import ProgressStore, apply_status_transition
from app.services.progress.streak_engine import StreakService, compute_next_streak
from app.services.progress.topic_aggregator import (
    TopicBreakdownService,
    aggregate_by_topic,
    validate_grouped_counts,
)

__all__ = [
    "CalendarService",
    "ProgressChangeNotifier",
    "ProgressStore",
    "ProgressSubscription",
    "RecommendationService",
    "StatsOverviewService",
    "StreakService",
    "TopicBreakdownService",
    "activity_level",
    "aggregate_by_day",
    "aggregate_by_difficulty",
    "aggregate_by_topic",
    "apply_status_transition",
    "compute_next_streak",
    "recommend",
    "validate_grouped_counts",
]
