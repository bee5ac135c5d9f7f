"""
FastAPI Dependencies

Common dependencies for caller identity and service construction.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import get_db
from app.services.progress import ProgressChangeNotifier, ProgressStore

# Caller identity header, set by the authenticating gateway in front of the API
user_id_header = APIKeyHeader(name="X-User-Id", auto_error=False)


async def get_current_user_id(
    user_id: str | None = Depends(user_id_header),
) -> str:
    """
    Resolve the calling user from the X-User-Id header.

    Returns:
        str: The caller's user id, stripped of surrounding whitespace

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if user_id is None or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity. Provide X-User-Id header.",
        )
    return user_id.strip()


async def get_progress_store(db: AsyncSession = Depends(get_db)) -> ProgressStore:
    """Get a progress store bound to the request's database session."""
    return ProgressStore(db)


def get_notifier() -> ProgressChangeNotifier:
    """Get the change notifier backed by the shared Redis pool."""
    return ProgressChangeNotifier()


# Dependency that can be used in routers
CurrentUserId = Depends(get_current_user_id)
