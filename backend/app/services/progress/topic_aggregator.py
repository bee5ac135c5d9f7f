"""
Topic Aggregator

Per-topic solved counts and topic progress bands.

Two paths produce the same counts:
- Fast path: a server-side grouped count from the progress store, validated
  before it is trusted
- Manual path: ``aggregate_by_topic`` over raw ledger rows and the catalog

Any failure or shape mismatch on the fast path falls back to the manual
path, so callers always get a zero-filled count for every catalog topic.

Usage:
    from app.services.progress.topic_aggregator import TopicBreakdownService

    service = TopicBreakdownService(store)
    counts = await service.get_topic_counts(user_id)
    breakdown = await service.get_topic_progress(user_id, band=TopicBand.WEAK)
"""

import logging
import math
from typing import Any, Iterable, Mapping, Optional

from app.config import settings
from app.enums.progress import AttemptStatus, TopicBand
from app.middleware.error_handling import ShapeMismatchError, StoreUnavailableError
from app.models.progress import (
    AttemptEvent,
    Problem,
    Topic,
    TopicBreakdownResponse,
    TopicCount,
    TopicProgress,
)
from app.services.progress.store import ProgressStore
from app.services.progress.utils import best_effort

logger = logging.getLogger(__name__)


def build_problem_topic_index(problems: Iterable[Problem]) -> dict[str, str]:
    """Map problem id → topic id, skipping problems without a topic."""
    return {p.id: p.topic_id for p in problems if p.topic_id is not None}


def aggregate_by_topic(
    topics: list[Topic],
    events: Iterable[AttemptEvent],
    problem_topic_index: Mapping[str, str],
) -> list[TopicCount]:
    """
    Count solved problems per topic.

    Every topic in ``topics`` appears in the output, with count 0 when the
    user has solved nothing in it. Events for problems missing from
    ``problem_topic_index`` (deleted or unknown) are skipped.

    Args:
        topics: Topic catalog.
        events: The user's ledger rows; only solved rows are counted.
        problem_topic_index: problem_id → topic_id.

    Returns:
        One TopicCount per topic, in catalog order.
    """
    counts = {topic.id: 0 for topic in topics}

    for event in events:
        if event.status != AttemptStatus.SOLVED:
            continue
        topic_id = problem_topic_index.get(event.problem_id)
        if topic_id is None or topic_id not in counts:
            continue
        counts[topic_id] += 1

    return [
        TopicCount(topic_id=topic.id, topic_name=topic.name, count=counts[topic.id])
        for topic in topics
    ]


def validate_grouped_counts(
    rows: Any, topics: list[Topic]
) -> list[TopicCount]:
    """
    Validate a server-side grouped count and turn it into TopicCounts.

    The rows must be a sequence of (topic_id, count) pairs with a known
    topic id, a non-negative integer count and no duplicate topics.
    Topics missing from the rows are zero-filled.

    Raises:
        ShapeMismatchError: The rows don't have the expected structure.
    """
    if not isinstance(rows, (list, tuple)):
        raise ShapeMismatchError(
            "Grouped topic counts are not a sequence",
            details={"type": type(rows).__name__},
        )

    known = {topic.id for topic in topics}
    counts: dict[str, int] = {}

    for row in rows:
        if not isinstance(row, (list, tuple)) or len(row) != 2:
            raise ShapeMismatchError("Grouped topic count row is not a pair", details={"row": repr(row)})

        topic_id, count = row
        if not isinstance(topic_id, str) or topic_id not in known:
            raise ShapeMismatchError("Grouped topic count references an unknown topic", details={"topic_id": repr(topic_id)})
        # bool is an int subclass
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ShapeMismatchError("Grouped topic count is not a non-negative integer", details={"count": repr(count)})
        if topic_id in counts:
            raise ShapeMismatchError("Grouped topic counts contain a duplicate topic", details={"topic_id": topic_id})

        counts[topic_id] = count

    return [
        TopicCount(topic_id=topic.id, topic_name=topic.name, count=counts.get(topic.id, 0))
        for topic in topics
    ]


def classify_percentage(percentage: int) -> TopicBand:
    """Band for a solved percentage (thresholds from settings)."""
    if percentage >= settings.TOPIC_STRONG_PERCENTAGE:
        return TopicBand.STRONG
    if percentage >= settings.TOPIC_WEAK_PERCENTAGE:
        return TopicBand.MODERATE
    return TopicBand.WEAK


def solved_percentage(solved: int, total: int) -> int:
    """Rounded solved/total percentage; 0 for empty topics, capped at 100."""
    if total <= 0:
        return 0
    return min(100, math.floor(solved * 100 / total + 0.5))


def build_topic_progress(
    counts: list[TopicCount], totals: Mapping[str, int]
) -> list[TopicProgress]:
    """Join solved counts with per-topic problem totals."""
    progress = []
    for count in counts:
        total = totals.get(count.topic_id, 0)
        percentage = solved_percentage(count.count, total)
        progress.append(
            TopicProgress(
                topic_id=count.topic_id,
                topic_name=count.topic_name,
                solved=count.count,
                total=total,
                percentage=percentage,
                band=classify_percentage(percentage),
            )
        )
    return progress


class TopicBreakdownService:
    """
    Service for per-topic analytics.

    Read-only: store failures degrade to empty results instead of raising.
    """

    def __init__(self, store: ProgressStore):
        self.store = store

    async def _fast_path(self, user_id: str, topics: list[Topic]) -> list[TopicCount]:
        rows = await self.store.count_solved_by_topic(user_id)
        return validate_grouped_counts(rows, topics)

    async def _manual_path(self, user_id: str, topics: list[Topic]) -> list[TopicCount]:
        events = await self.store.list_attempt_events(user_id, status=AttemptStatus.SOLVED)
        problems = await self.store.list_problems()
        return aggregate_by_topic(topics, events, build_problem_topic_index(problems))

    async def _compute_topic_counts(self, user_id: str) -> list[TopicCount]:
        topics = await self.store.list_topics()
        if not topics:
            return []

        try:
            return await self._fast_path(user_id, topics)
        except ShapeMismatchError as e:
            logger.warning(f"Grouped topic counts rejected for {user_id}, using manual aggregation: {e.message}")
        except StoreUnavailableError:
            logger.warning(f"Grouped topic counts failed for {user_id}, using manual aggregation")

        return await self._manual_path(user_id, topics)

    async def get_topic_counts(self, user_id: str) -> list[TopicCount]:
        """
        Get the zero-filled solved count for every topic.

        Args:
            user_id: User whose progress to aggregate.

        Returns:
            TopicCounts in catalog order, or an empty list if the store is
            unavailable.
        """
        return await best_effort(
            self._compute_topic_counts(user_id), [], f"Topic counts for {user_id}"
        )

    async def _compute_topic_progress(self, user_id: str) -> TopicBreakdownResponse:
        counts = await self._compute_topic_counts(user_id)
        totals = await self.store.count_problems_by_topic()
        progress = build_topic_progress(counts, totals)
        return TopicBreakdownResponse(
            topics=progress,
            total_solved=sum(p.solved for p in progress),
            total_problems=sum(p.total for p in progress),
        )

    async def get_topic_progress(
        self, user_id: str, band: Optional[TopicBand] = None
    ) -> TopicBreakdownResponse:
        """
        Get solved vs. total progress per topic.

        Args:
            user_id: User whose progress to aggregate.
            band: Only return topics in this band.

        Returns:
            TopicBreakdownResponse sorted by percentage (highest first).
            Totals cover all topics, regardless of the band filter.
        """
        breakdown = await best_effort(
            self._compute_topic_progress(user_id),
            TopicBreakdownResponse(),
            f"Topic progress for {user_id}",
        )

        topics = breakdown.topics
        if band is not None:
            topics = [t for t in topics if t.band == band]
        topics = sorted(topics, key=lambda t: (-t.percentage, t.topic_name, t.topic_id))

        return breakdown.model_copy(update={"topics": topics})
