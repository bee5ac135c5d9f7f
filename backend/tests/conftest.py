"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit tests: environment
setup, a sample topic/problem catalog and mock Redis/database clients.
"""

import asyncio
import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try backend directory
    _backend_env = Path(__file__).parent.parent / ".env"
    if _backend_env.exists():
        load_dotenv(_backend_env)

from app.enums.progress import Difficulty  # noqa: E402
from app.models.progress import Problem, Topic  # noqa: E402
from tests.factories import InMemoryProgressStore, make_problem  # noqa: E402


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    This ensures tests run with predictable configuration, overriding
    any values from .env files to ensure test isolation.
    """
    # Store original environment
    original_env = os.environ.copy()

    test_env = {
        "POSTGRES_HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "POSTGRES_PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
        "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
        "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
        "REDIS_URL": os.environ.get("REDIS_URL", "redis://localhost:6379/1"),
        "DEBUG": "true",
    }
    os.environ.update(test_env)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Sample Catalog
# ============================================================================


@pytest.fixture
def sample_topics() -> list[Topic]:
    """Three topics in catalog order: arrays, graphs, dp."""
    return [
        Topic(id="arrays", name="Arrays", order_index=0),
        Topic(id="graphs", name="Graphs", order_index=1),
        Topic(id="dp", name="Dynamic Programming", order_index=2),
    ]


@pytest.fixture
def sample_problems() -> list[Problem]:
    """Nine problems, three per topic, one per difficulty."""
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    problems = []
    for t_index, topic_id in enumerate(["arrays", "graphs", "dp"]):
        for d_index, difficulty in enumerate([Difficulty.HARD, Difficulty.EASY, Difficulty.MEDIUM]):
            problems.append(
                make_problem(
                    f"{topic_id}-{difficulty.value}",
                    topic_id,
                    difficulty,
                    order_index=d_index,
                    created_at=created.replace(day=1 + t_index * 3 + d_index),
                )
            )
    return problems


@pytest.fixture
def store(sample_topics: list[Topic], sample_problems: list[Problem]) -> InMemoryProgressStore:
    """In-memory progress store loaded with the sample catalog."""
    return InMemoryProgressStore(sample_topics, sample_problems)


@pytest.fixture
def today() -> date:
    """Fixed 'today' for deterministic date arithmetic."""
    return date(2025, 3, 15)


# ============================================================================
# Mock Fixtures
# ============================================================================


async def _idle_get_message(*args, **kwargs):
    # Behave like a real listen timeout so listener loops yield
    await asyncio.sleep(0.01)
    return None


@pytest.fixture
def mock_redis() -> MagicMock:
    """
    Create a mock Redis client for unit testing.

    This allows testing Redis-dependent code without a real Redis server.
    """
    mock = MagicMock()
    mock.publish = AsyncMock(return_value=1)
    mock.ping = AsyncMock(return_value=True)

    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    pubsub.get_message = AsyncMock(side_effect=_idle_get_message)
    mock.pubsub = MagicMock(return_value=pubsub)
    return mock


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock database session for unit testing.
    """
    mock = MagicMock()
    mock.execute = AsyncMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.close = AsyncMock()
    mock.get = AsyncMock()
    mock.add = MagicMock()
    return mock
