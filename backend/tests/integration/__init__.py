"""
Integration Tests

Integration tests require a running PostgreSQL instance (POSTGRES_TEST_*
environment variables). They are skipped when the database is unreachable.

These tests verify the store's SQL (upserts, grouped counts, locking)
against a real database.
"""
