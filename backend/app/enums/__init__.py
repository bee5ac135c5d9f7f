"""
Centralized enum definitions for the application.

All enums are organized by domain:
- progress.py: Attempt statuses, difficulty, topic bands, change channels

Usage:
    from app.enums import AttemptStatus, Difficulty

    # Or import from specific module
    from app.enums.progress import ProgressTable
"""

from app.enums.progress import (
    AttemptStatus,
    ChangeType,
    Difficulty,
    ProgressTable,
    TopicBand,
)

__all__ = [
    # Progress enums
    "AttemptStatus",
    "ChangeType",
    "Difficulty",
    "ProgressTable",
    "TopicBand",
]
