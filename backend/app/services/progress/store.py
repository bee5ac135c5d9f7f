"""
Progress Store

Async adapter over the PostgreSQL progress tables. All reads and writes of
the attempt ledger, the per-user summary row and the static catalog go
through this class; transport failures surface as StoreUnavailableError.

Usage:
    from app.services.progress.store import ProgressStore

    store = ProgressStore(db)
    summary = await store.get_user_streak_summary(user_id)
    events = await store.list_attempt_events(user_id, status=AttemptStatus.SOLVED)
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models_progress import (
    ProblemRecord,
    TopicRecord,
    UserProgressRecord,
    UserStatsRecord,
)
from app.enums.progress import AttemptStatus, Difficulty
from app.middleware.error_handling import NotFoundError, StoreUnavailableError
from app.models.progress import AttemptEvent, Problem, Topic, UserStreakSummary

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (OperationalError, InterfaceError, OSError, ConnectionError)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate transport failures into StoreUnavailableError."""
    try:
        yield
    except _TRANSPORT_ERRORS as e:
        logger.error(f"Progress store unavailable during {operation}: {e}")
        raise StoreUnavailableError(
            f"Progress store unavailable during {operation}",
            details={"operation": operation},
        ) from e


def apply_status_transition(
    current: Optional[AttemptEvent],
    user_id: str,
    problem_id: str,
    status: AttemptStatus,
    now: datetime,
) -> AttemptEvent:
    """
    Compute the next ledger row for a status update.

    Statuses only move forward (none → attempted → solved); a request for a
    lower status keeps the current one. attempted_at is stamped the first
    time the row reaches attempted or beyond, solved_at the first time it
    reaches solved.

    Args:
        current: Existing ledger row, or None for a first attempt.
        user_id: Owning user.
        problem_id: Problem being updated.
        status: Requested status.
        now: Timestamp to stamp with (timezone-aware).

    Returns:
        The AttemptEvent to persist.
    """
    current_status = current.status if current else AttemptStatus.NONE
    new_status = status if status.rank > current_status.rank else current_status

    attempted_at = current.attempted_at if current else None
    solved_at = current.solved_at if current else None

    if new_status.rank >= AttemptStatus.ATTEMPTED.rank and attempted_at is None:
        attempted_at = now
    if new_status == AttemptStatus.SOLVED and solved_at is None:
        solved_at = now

    return AttemptEvent(
        user_id=user_id,
        problem_id=problem_id,
        status=new_status,
        attempted_at=attempted_at,
        solved_at=solved_at,
    )


def _summary_from_record(row: UserStatsRecord) -> UserStreakSummary:
    return UserStreakSummary(
        user_id=row.user_id,
        total_solved=row.total_problems_solved or 0,
        current_streak=row.current_streak or 0,
        longest_streak=max(row.longest_streak or 0, row.current_streak or 0),
        daily_goal=row.daily_goal or settings.STREAK_DEFAULT_DAILY_GOAL,
        last_activity_date=row.last_activity_date,
    )


def _problem_from_record(row: ProblemRecord) -> Problem:
    return Problem(
        id=row.id,
        topic_id=row.topic_id,
        title=row.title or "",
        difficulty=Difficulty(row.difficulty),
        tags=list(row.tags or []),
        order_index=row.order_index or 0,
        problem_url=row.problem_url,
        created_at=row.created_at,
    )


class ProgressStore:
    """
    Persistence gateway for progress data.

    Mutating methods commit their own transaction so that change
    notifications published afterwards describe durable state.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the store.

        Args:
            db: SQLAlchemy async database session.
        """
        self.db = db

    # ===========================================
    # Summary Row
    # ===========================================

    async def get_user_streak_summary(self, user_id: str) -> UserStreakSummary:
        """
        Fetch the per-user summary row.

        Raises:
            NotFoundError: No summary exists yet (new user).
            StoreUnavailableError: Transport failure.
        """
        with _store_errors("get_user_streak_summary"):
            result = await self.db.execute(
                select(UserStatsRecord).where(UserStatsRecord.user_id == user_id)
            )
            row = result.scalar_one_or_none()

        if row is None:
            raise NotFoundError(f"No streak summary for user {user_id}")
        return _summary_from_record(row)

    async def upsert_user_streak_summary(
        self, summary: UserStreakSummary
    ) -> UserStreakSummary:
        """
        Insert or update the summary row keyed by user_id.

        Two concurrent writers computing different days can race; the
        longest streak and last activity date are merged with GREATEST so
        neither ever moves backwards.
        """
        stmt = insert(UserStatsRecord).values(
            user_id=summary.user_id,
            total_problems_solved=summary.total_solved,
            current_streak=summary.current_streak,
            longest_streak=summary.longest_streak,
            daily_goal=summary.daily_goal,
            last_activity_date=summary.last_activity_date,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserStatsRecord.user_id],
            set_={
                "total_problems_solved": stmt.excluded.total_problems_solved,
                "current_streak": stmt.excluded.current_streak,
                "longest_streak": func.greatest(
                    UserStatsRecord.longest_streak, stmt.excluded.longest_streak
                ),
                "daily_goal": stmt.excluded.daily_goal,
                "last_activity_date": func.greatest(
                    UserStatsRecord.last_activity_date,
                    stmt.excluded.last_activity_date,
                ),
                "updated_at": func.now(),
            },
        ).returning(UserStatsRecord)

        with _store_errors("upsert_user_streak_summary"):
            result = await self.db.execute(
                stmt, execution_options={"populate_existing": True}
            )
            row = result.scalar_one()
            saved = _summary_from_record(row)
            await self.db.commit()

        return saved

    async def set_daily_goal(self, user_id: str, daily_goal: int) -> UserStreakSummary:
        """Set the daily goal, creating the summary row if needed."""
        stmt = insert(UserStatsRecord).values(user_id=user_id, daily_goal=daily_goal)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserStatsRecord.user_id],
            set_={"daily_goal": stmt.excluded.daily_goal, "updated_at": func.now()},
        ).returning(UserStatsRecord)

        with _store_errors("set_daily_goal"):
            result = await self.db.execute(
                stmt, execution_options={"populate_existing": True}
            )
            saved = _summary_from_record(result.scalar_one())
            await self.db.commit()

        return saved

    async def set_total_solved(self, user_id: str, total_solved: int) -> UserStreakSummary:
        """Store a freshly recomputed solved total, creating the row if needed."""
        stmt = insert(UserStatsRecord).values(
            user_id=user_id, total_problems_solved=total_solved
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserStatsRecord.user_id],
            set_={
                "total_problems_solved": stmt.excluded.total_problems_solved,
                "updated_at": func.now(),
            },
        ).returning(UserStatsRecord)

        with _store_errors("set_total_solved"):
            result = await self.db.execute(
                stmt, execution_options={"populate_existing": True}
            )
            saved = _summary_from_record(result.scalar_one())
            await self.db.commit()

        return saved

    # ===========================================
    # Attempt Ledger
    # ===========================================

    async def list_attempt_events(
        self,
        user_id: str,
        status: Optional[AttemptStatus] = None,
        date_range: Optional[tuple[datetime, datetime]] = None,
    ) -> list[AttemptEvent]:
        """
        List a user's ledger rows.

        Args:
            user_id: User whose events to list.
            status: Only rows with this status.
            date_range: Inclusive (start, end) bounds on solved_at.
        """
        query = select(UserProgressRecord).where(UserProgressRecord.user_id == user_id)
        if status is not None:
            query = query.where(UserProgressRecord.status == status.value)
        if date_range is not None:
            start, end = date_range
            query = query.where(
                UserProgressRecord.solved_at >= start,
                UserProgressRecord.solved_at <= end,
            )

        with _store_errors("list_attempt_events"):
            result = await self.db.execute(query)
            rows = result.scalars().all()

        return [
            AttemptEvent(
                user_id=row.user_id,
                problem_id=row.problem_id,
                status=AttemptStatus(row.status),
                attempted_at=row.attempted_at,
                solved_at=row.solved_at,
            )
            for row in rows
        ]

    async def upsert_attempt_event(
        self,
        user_id: str,
        problem_id: str,
        status: AttemptStatus,
        now: datetime,
    ) -> AttemptEvent:
        """
        Record a status update for (user_id, problem_id).

        A "none" row is inserted first if the pair has no row yet
        (ON CONFLICT DO NOTHING), so there is always a row to lock while the
        forward-only transition is computed. Concurrent first writes from
        two devices serialize on that row instead of colliding on the
        unique constraint, and neither can downgrade the other.
        """
        ensure_row = (
            insert(UserProgressRecord)
            .values(user_id=user_id, problem_id=problem_id, status=AttemptStatus.NONE.value)
            .on_conflict_do_nothing(
                index_elements=[UserProgressRecord.user_id, UserProgressRecord.problem_id]
            )
        )

        with _store_errors("upsert_attempt_event"):
            await self.db.execute(ensure_row)
            result = await self.db.execute(
                select(UserProgressRecord)
                .where(
                    UserProgressRecord.user_id == user_id,
                    UserProgressRecord.problem_id == problem_id,
                )
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one()

            current = AttemptEvent(
                user_id=row.user_id,
                problem_id=row.problem_id,
                status=AttemptStatus(row.status),
                attempted_at=row.attempted_at,
                solved_at=row.solved_at,
            )
            event = apply_status_transition(current, user_id, problem_id, status, now)

            row.status = event.status.value
            row.attempted_at = event.attempted_at
            row.solved_at = event.solved_at

            await self.db.commit()

        return event

    async def count_solved(self, user_id: str) -> int:
        """Count the user's solved ledger rows."""
        with _store_errors("count_solved"):
            result = await self.db.execute(
                select(func.count(UserProgressRecord.id)).where(
                    UserProgressRecord.user_id == user_id,
                    UserProgressRecord.status == AttemptStatus.SOLVED.value,
                )
            )
            return result.scalar() or 0

    async def count_solved_by_topic(self, user_id: str) -> list[tuple[str, int]]:
        """
        Server-side grouped count of solved problems per topic.

        Topics with no solves are absent; callers zero-fill.
        """
        query = (
            select(ProblemRecord.topic_id, func.count(UserProgressRecord.id))
            .join(ProblemRecord, ProblemRecord.id == UserProgressRecord.problem_id)
            .where(
                UserProgressRecord.user_id == user_id,
                UserProgressRecord.status == AttemptStatus.SOLVED.value,
                ProblemRecord.topic_id.is_not(None),
            )
            .group_by(ProblemRecord.topic_id)
        )

        with _store_errors("count_solved_by_topic"):
            result = await self.db.execute(query)
            return [tuple(row) for row in result.all()]

    # ===========================================
    # Catalog
    # ===========================================

    async def list_topics(self) -> list[Topic]:
        """List all topics in catalog order."""
        with _store_errors("list_topics"):
            result = await self.db.execute(
                select(TopicRecord).order_by(TopicRecord.order_index, TopicRecord.id)
            )
            rows = result.scalars().all()

        return [
            Topic(
                id=row.id,
                name=row.name,
                order_index=row.order_index or 0,
                description=row.description,
            )
            for row in rows
        ]

    async def list_problems(
        self,
        topic_id: Optional[str] = None,
        difficulty: Optional[Difficulty] = None,
    ) -> list[Problem]:
        """List catalog problems, optionally filtered by topic and difficulty."""
        query = select(ProblemRecord)
        if topic_id is not None:
            query = query.where(ProblemRecord.topic_id == topic_id)
        if difficulty is not None:
            query = query.where(ProblemRecord.difficulty == difficulty.value)

        with _store_errors("list_problems"):
            result = await self.db.execute(
                query.order_by(ProblemRecord.order_index, ProblemRecord.id)
            )
            rows = result.scalars().all()

        return [_problem_from_record(row) for row in rows]

    async def get_problem(self, problem_id: str) -> Problem:
        """
        Fetch one problem.

        Raises:
            NotFoundError: Unknown problem id.
        """
        with _store_errors("get_problem"):
            row = await self.db.get(ProblemRecord, problem_id)

        if row is None:
            raise NotFoundError(f"Problem {problem_id} not found")
        return _problem_from_record(row)

    async def count_problems_by_topic(self) -> dict[str, int]:
        """Total catalog problems per topic."""
        query = (
            select(ProblemRecord.topic_id, func.count(ProblemRecord.id))
            .where(ProblemRecord.topic_id.is_not(None))
            .group_by(ProblemRecord.topic_id)
        )

        with _store_errors("count_problems_by_topic"):
            result = await self.db.execute(query)
            return {topic_id: count for topic_id, count in result.all()}
