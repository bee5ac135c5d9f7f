"""API Routers package."""

from app.routers import analytics as analytics_router
from app.routers import health as health_router
from app.routers import progress as progress_router

__all__ = ["analytics_router", "health_router", "progress_router"]
