"""
Recommendation Engine

Suggests the next problems to work on, biased toward the user's weakest
topics.

Algorithm:
1. Count solved problems per topic (same grouping as the topic aggregator)
2. Weak topics = the lowest counts, ties broken by topic id
3. A user with no solves yet gets the first topics in catalog order
4. Per weak topic, the easiest problems not yet solved or attempted
5. If that yields nothing, the most recently added untouched problems
   anywhere in the catalog
6. Truncate to the requested number of results

Selection is deterministic: the same data always gives the same list.

Usage:
    from app.services.progress.recommendation_engine import RecommendationService

    service = RecommendationService(store)
    response = await service.get_recommendations(user_id, max_results=3)
"""

import logging
from typing import Iterable, Optional

from app.config import settings
from app.enums.progress import AttemptStatus
from app.models.progress import (
    AttemptEvent,
    Problem,
    RecommendationResponse,
    Topic,
    TopicCount,
)
from app.services.progress.store import ProgressStore
from app.services.progress.topic_aggregator import (
    TopicBreakdownService,
    aggregate_by_topic,
    build_problem_topic_index,
)
from app.services.progress.utils import best_effort

logger = logging.getLogger(__name__)

_TOUCHED_STATUSES = (AttemptStatus.ATTEMPTED, AttemptStatus.SOLVED)


def excluded_problem_ids(events: Iterable[AttemptEvent]) -> set[str]:
    """Problems the user has already attempted or solved."""
    return {e.problem_id for e in events if e.status in _TOUCHED_STATUSES}


def select_weak_topics(
    counts: list[TopicCount],
    topics: list[Topic],
    limit: Optional[int] = None,
) -> tuple[list[str], bool]:
    """
    Pick the weakest topics.

    Args:
        counts: Zero-filled solved counts per topic.
        topics: Topic catalog, used for the cold start order.
        limit: Number of topics (default: RECOMMENDATION_WEAK_TOPIC_COUNT).

    Returns:
        (topic ids, cold_start). cold_start is True when the user has no
        solves at all and the first topics in catalog order were used.
    """
    limit = settings.RECOMMENDATION_WEAK_TOPIC_COUNT if limit is None else limit

    if not any(c.count > 0 for c in counts):
        ordered = sorted(topics, key=lambda t: (t.order_index, t.id))
        return [t.id for t in ordered[:limit]], True

    ordered_counts = sorted(counts, key=lambda c: (c.count, c.topic_id))
    return [c.topic_id for c in ordered_counts[:limit]], False


def pick_topic_problems(
    problems: Iterable[Problem],
    topic_id: str,
    excluded_ids: set[str],
    limit: Optional[int] = None,
) -> list[Problem]:
    """Easiest untouched problems in one topic (difficulty, order_index, id)."""
    limit = settings.RECOMMENDATION_PROBLEMS_PER_TOPIC if limit is None else limit
    candidates = [
        p for p in problems if p.topic_id == topic_id and p.id not in excluded_ids
    ]
    candidates.sort(key=lambda p: (p.difficulty.rank, p.order_index, p.id))
    return candidates[:limit]


def _recency_key(problem: Problem) -> tuple[int, float]:
    # Problems without created_at sort as the oldest
    if problem.created_at is None:
        return (0, 0.0)
    return (1, problem.created_at.timestamp())


def fallback_problems(
    problems: Iterable[Problem],
    excluded_ids: set[str],
    limit: int,
) -> list[Problem]:
    """Most recently added untouched problems, newest first, then by id."""
    candidates = sorted((p for p in problems if p.id not in excluded_ids), key=lambda p: p.id)
    # Stable sort keeps id order among equal timestamps
    candidates.sort(key=_recency_key, reverse=True)
    return candidates[:limit]


def _dedupe(problems: Iterable[Problem]) -> list[Problem]:
    seen: set[str] = set()
    unique = []
    for problem in problems:
        if problem.id not in seen:
            seen.add(problem.id)
            unique.append(problem)
    return unique


def build_recommendations(
    events: list[AttemptEvent],
    topics: list[Topic],
    problems: list[Problem],
    max_results: Optional[int] = None,
) -> RecommendationResponse:
    """
    Run the full recommendation algorithm over in-memory data.

    Returns:
        RecommendationResponse with the chosen problems and how they were
        chosen (weak topics, cold start, fallback).
    """
    max_results = settings.RECOMMENDATION_MAX_RESULTS if max_results is None else max_results
    if max_results <= 0:
        return RecommendationResponse()

    counts = aggregate_by_topic(topics, events, build_problem_topic_index(problems))
    weak_topic_ids, cold_start = select_weak_topics(counts, topics)
    excluded = excluded_problem_ids(events)

    chosen: list[Problem] = []
    for topic_id in weak_topic_ids:
        chosen.extend(pick_topic_problems(problems, topic_id, excluded))

    used_fallback = False
    if not chosen:
        chosen = fallback_problems(problems, excluded, max_results)
        used_fallback = True

    return RecommendationResponse(
        problems=_dedupe(chosen)[:max_results],
        weak_topic_ids=weak_topic_ids,
        cold_start=cold_start,
        used_fallback=used_fallback,
    )


def recommend(
    events: list[AttemptEvent],
    topics: list[Topic],
    problems: list[Problem],
    max_results: int = 3,
) -> list[Problem]:
    """
    Ordered next-problem suggestions.

    Never returns a problem the user has solved or attempted. An empty
    list means there is nothing left to recommend.
    """
    return build_recommendations(events, topics, problems, max_results).problems


class RecommendationService:
    """
    Service that runs the recommendation algorithm against the store.

    Problems are fetched per weak topic; a failed lookup for one topic is
    skipped so the other topics still contribute.
    """

    def __init__(self, store: ProgressStore):
        self.store = store
        self.topic_service = TopicBreakdownService(store)

    async def _topic_problems(
        self, user_id: str, topic_id: str, excluded: set[str]
    ) -> list[Problem]:
        problems = await best_effort(
            self.store.list_problems(topic_id=topic_id),
            None,
            f"Recommendation lookup for topic {topic_id}",
        )
        if problems is None:
            logger.warning(f"Skipping topic {topic_id} in recommendations for {user_id}")
            return []
        return pick_topic_problems(problems, topic_id, excluded)

    async def get_recommendations(
        self, user_id: str, max_results: Optional[int] = None
    ) -> RecommendationResponse:
        """
        Get next-problem recommendations for a user.

        Args:
            user_id: User to recommend for.
            max_results: Maximum number of problems (default from settings).

        Returns:
            RecommendationResponse; an empty problem list is a valid result.
        """
        max_results = settings.RECOMMENDATION_MAX_RESULTS if max_results is None else max_results
        if max_results <= 0:
            return RecommendationResponse()

        events = await best_effort(
            self.store.list_attempt_events(user_id), [], f"Recommendation events for {user_id}"
        )
        topics = await best_effort(
            self.store.list_topics(), [], "Recommendation topic catalog"
        )
        counts = await self.topic_service.get_topic_counts(user_id)

        weak_topic_ids, cold_start = select_weak_topics(counts, topics)
        excluded = excluded_problem_ids(events)

        chosen: list[Problem] = []
        for topic_id in weak_topic_ids:
            chosen.extend(await self._topic_problems(user_id, topic_id, excluded))

        used_fallback = False
        if not chosen:
            catalog = await best_effort(
                self.store.list_problems(), [], "Recommendation fallback catalog"
            )
            chosen = fallback_problems(catalog, excluded, max_results)
            used_fallback = True

        logger.debug(
            f"Recommendations for {user_id}: weak topics {weak_topic_ids}, "
            f"{len(chosen)} candidate(s), fallback={used_fallback}"
        )

        return RecommendationResponse(
            problems=_dedupe(chosen)[:max_results],
            weak_topic_ids=weak_topic_ids,
            cold_start=cold_start,
            used_fallback=used_fallback,
        )
