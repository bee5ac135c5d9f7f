"""
SQLAlchemy Database Models for Progress Tracking

Tables:
- topics: Static topic catalog
- problems: Static problem catalog, each problem belongs to a topic
- user_progress: One row per (user, problem) holding attempt status
- user_stats: One summary row per user holding streak counters

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: app/models/progress.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import date, datetime, timezone
from typing import List, Optional
import uuid

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ===========================================
# Catalog
# ===========================================


class TopicRecord(Base):
    """
    Topic in the problem catalog.

    Attributes:
        id: UUID string primary key.
        name: Display name (e.g., "Dynamic Programming").
        description: Optional longer description.
        order_index: Position in the catalog; also the cold-start order
            for recommendations.
        parent_topic_id: Optional parent for nested topics.
    """

    __tablename__ = "topics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    parent_topic_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("topics.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    problems: Mapped[List["ProblemRecord"]] = relationship(back_populates="topic")


class ProblemRecord(Base):
    """
    Practice problem in the catalog.

    Attributes:
        id: UUID string primary key.
        topic_id: Owning topic; nullable because topics can be removed.
        title: Problem title.
        difficulty: "easy" | "medium" | "hard".
        tags: Free-form tags (company names, patterns, ...).
        order_index: Position within sheets/topic listings.
        problem_url: Link to the external judge.
        created_at: When the problem was added; newest first is the
            recommendation fallback order.
    """

    __tablename__ = "problems"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    topic_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("topics.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(300))
    difficulty: Mapped[str] = mapped_column(String(10), index=True)
    tags: Mapped[Optional[list]] = mapped_column(ARRAY(String))
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    problem_url: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    topic: Mapped[Optional["TopicRecord"]] = relationship(back_populates="problems")


# ===========================================
# Per-user Progress
# ===========================================


class UserProgressRecord(Base):
    """
    A user's status on one problem (the attempt ledger).

    Attributes:
        user_id: Owning user.
        problem_id: Problem worked on. Not a hard foreign key so that
            ledger rows survive catalog deletions (they are skipped by
            aggregation instead).
        status: "none" | "attempted" | "solved".
        attempted_at: When the problem first became attempted.
        solved_at: When the problem became solved.
    """

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "problem_id", name="uq_user_progress_user_problem"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    problem_id: Mapped[str] = mapped_column(String(36), index=True)
    status: Mapped[str] = mapped_column(String(20), default="none")
    attempted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    solved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)


class UserStatsRecord(Base):
    """
    Per-user streak summary. Exactly one row per user.

    Attributes:
        user_id: Unique key used for upserts.
        total_problems_solved: Count of solved ledger rows.
        current_streak: Consecutive active days ending on last_activity_date.
        longest_streak: Best streak ever; never decreases.
        daily_goal: Problems per day the user aims for.
        last_activity_date: Calendar day of the last recorded activity.
    """

    __tablename__ = "user_stats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), unique=True)
    total_problems_solved: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    daily_goal: Mapped[int] = mapped_column(Integer, default=3)
    last_activity_date: Mapped[Optional[date]] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )
