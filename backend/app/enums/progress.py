"""
Progress Tracking Enums

Defines enums for problem attempt statuses, problem difficulty,
topic strength bands, and change notification channels.
"""

from enum import Enum


class AttemptStatus(str, Enum):
    """
    Status of a user's work on a single problem.

    Transitions only move forward:
    - NONE → ATTEMPTED → SOLVED
    - NONE → SOLVED (solved on first try)

    A SOLVED problem is never downgraded.
    """

    NONE = "none"  # Never touched
    ATTEMPTED = "attempted"  # Opened/submitted but not yet accepted
    SOLVED = "solved"  # Accepted solution

    @property
    def rank(self) -> int:
        """Position in the forward-only transition order."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    AttemptStatus.NONE: 0,
    AttemptStatus.ATTEMPTED: 1,
    AttemptStatus.SOLVED: 2,
}


class Difficulty(str, Enum):
    """
    Problem difficulty levels.

    Recommendations surface easier problems first, so the rank
    (easy < medium < hard) is used as a sort key.
    """

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def rank(self) -> int:
        """Sort position, easiest first."""
        return _DIFFICULTY_RANK[self]


_DIFFICULTY_RANK = {
    Difficulty.EASY: 0,
    Difficulty.MEDIUM: 1,
    Difficulty.HARD: 2,
}


class TopicBand(str, Enum):
    """
    Strength band for a topic based on percentage of problems solved.

    Thresholds are configured in settings (TOPIC_*_PERCENTAGE).
    """

    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class ProgressTable(str, Enum):
    """
    Tables that publish change notifications.

    Subscribers listen per (table, user_id) and re-run the relevant
    aggregator when a message arrives.
    """

    USER_PROGRESS = "user_progress"  # Attempt events
    USER_STATS = "user_stats"  # Streak summary row


class ChangeType(str, Enum):
    """Kind of write that triggered a change notification."""

    INSERT = "insert"
    UPDATE = "update"
