"""
Database Base Configuration

Async SQLAlchemy engine and session management for the progress tables.

Sessions handed out by get_db are unit-of-work containers for
ProgressStore: the store commits each mutation itself, before any change
notification goes out, so get_db only rolls back on errors and closes.

Usage:
    from app.db.base import get_db
    from app.services.progress import ProgressStore

    @router.get("/streak")
    async def get_streak(db: AsyncSession = Depends(get_db)):
        summary = await ProgressStore(db).get_user_streak_summary(user_id)
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings, yaml_config

logger = logging.getLogger(__name__)

# Pool sizing from config/default.yaml
db_config: dict[str, Any] = yaml_config.get("database", {})
pool_size: int = db_config.get("pool_size", 5)
max_overflow: int = db_config.get("max_overflow", 10)
pool_timeout: int = db_config.get("pool_timeout", 30)

engine = create_async_engine(
    settings.POSTGRES_URL,
    pool_size=pool_size,
    max_overflow=max_overflow,
    pool_timeout=pool_timeout,
    echo=settings.DEBUG,
)

# expire_on_commit=False: ORM rows stay readable after the store commits.
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for the progress ORM records."""

    pass


# Import records AFTER Base is defined to avoid circular imports.
from app.db import models_progress  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Nothing is committed here. Uncommitted work left by a failed request is
    rolled back.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create any progress tables that don't exist yet.

    The Alembic migration in alembic/versions is the source of truth for
    the schema; this only bootstraps local and test databases and is
    skipped when DB_AUTO_CREATE_TABLES is off.
    """
    if not settings.DB_AUTO_CREATE_TABLES:
        logger.info("Skipping table creation; schema is managed by Alembic")
        return

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
