"""
Middleware Package

Provides FastAPI middleware for:
- Error handling

Usage:
    from app.middleware import setup_error_handling

    setup_error_handling(app, debug=settings.DEBUG)
"""

from app.middleware.error_handling import (
    ErrorHandlingMiddleware,
    NotFoundError,
    ServiceError,
    ShapeMismatchError,
    StoreUnavailableError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "NotFoundError",
    "ServiceError",
    "ShapeMismatchError",
    "StoreUnavailableError",
    "ValidationError",
    "handle_endpoint_errors",
    "setup_error_handling",
]
