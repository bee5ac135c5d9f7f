"""
Progress Tracker API

FastAPI application serving streaks, topic breakdowns, calendar heatmaps
and next-problem recommendations.

Run:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.db.base import init_db
from app.db.redis import close_redis_pool
from app.middleware import setup_error_handling
from app.routers import analytics_router, health_router, progress_router

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # SQL echo is controlled by DEBUG on the engine itself
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and release the Redis pool on shutdown."""
    logger.info(f"Starting {settings.APP_NAME}")
    await init_db()
    yield
    await close_redis_pool()
    logger.info(f"Stopped {settings.APP_NAME}")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    setup_logging(settings.DEBUG)

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app, debug=settings.DEBUG)

    app.include_router(health_router.router)
    app.include_router(progress_router.router)
    app.include_router(analytics_router.router)

    return app


app = create_app()


@app.get("/")
async def root():
    return {"message": settings.APP_NAME}
