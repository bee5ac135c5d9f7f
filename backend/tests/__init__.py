"""
Progress Tracker Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures (sample catalog, mocks)
    ├── factories.py         # In-memory progress store and builders
    ├── unit/                # Unit tests (isolated, no external dependencies)
    │   ├── test_streak_engine.py
    │   ├── test_topic_aggregator.py
    │   ├── test_calendar_aggregator.py
    │   ├── test_recommendation_engine.py
    │   └── ...
    └── integration/         # Integration tests (require PostgreSQL)
        └── test_progress_store.py

Running Tests:
    # Run all tests
    pytest tests/ -v

    # Run only unit tests (fast, no dependencies)
    pytest tests/unit/ -v

    # Run only integration tests (skipped when PostgreSQL is unreachable)
    pytest tests/integration/ -v
"""
