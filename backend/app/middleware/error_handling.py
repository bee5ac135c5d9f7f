"""
Error Handling Middleware

Provides consistent, informative error responses across the progress API.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details unless debug is on)
- Exception classes for the store and aggregation failure modes
- `handle_endpoint_errors` decorator for route handlers

Usage:
    from app.middleware.error_handling import setup_error_handling, NotFoundError

    setup_error_handling(app, debug=settings.DEBUG)

    raise NotFoundError(f"Problem {problem_id} not found")

Exception flow:
    Route handler
        └─ @handle_endpoint_errors  ← ServiceError/HTTPException pass through,
                                      anything else becomes a 500 ServiceError
    ServiceError exception handler  ← renders {error, message, error_id, ...}
    ErrorHandlingMiddleware         ← last line of defence for anything that
                                      escapes the handlers above
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Unexpected aggregation failure", status_code=500)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class StoreUnavailableError(ServiceError):
    """
    Progress store transport/connectivity failure.

    Mutations propagate it to the caller; read-only analytics catch it
    and degrade to empty results.
    """

    status_code = 503
    error_code = "store_unavailable"


class ShapeMismatchError(ServiceError):
    """
    A server-side aggregation returned an unexpected structure.

    Always caught internally to trigger the manual aggregation path.
    """

    status_code = 500
    error_code = "shape_mismatch"


class ValidationError(ServiceError):
    """
    Data validation error.

    Raised when input data fails validation (daily goal, calendar range).
    """

    status_code = 422
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a summary row or catalog entry doesn't exist. A missing
    summary row means "new user" to the streak engine.
    """

    status_code = 404
    error_code = "not_found"


# =============================================================================
# Error Rendering
# =============================================================================


def _error_content(
    error_code: str,
    message: str,
    error_id: str,
    details: Optional[dict] = None,
) -> dict[str, Any]:
    return {
        "error": error_code,
        "message": message,
        "error_id": error_id,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _log_service_error(error_id: str, exc: ServiceError, request: Request) -> None:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"[{error_id}] {exc.error_code}: {exc.message}",
        extra={
            "error_id": error_id,
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches unhandled exceptions
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details in production
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            return await call_next(request)

        except HTTPException:
            # Let FastAPI handle HTTP exceptions
            raise

        except ServiceError as e:
            _log_service_error(error_id, e, request)
            return JSONResponse(
                status_code=e.status_code,
                content=_error_content(
                    e.error_code,
                    e.message,
                    error_id,
                    e.details if self.debug else None,
                ),
            )

        except Exception as e:
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            details = None
            if self.debug:
                details = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return JSONResponse(
                status_code=500,
                content=_error_content(
                    "internal_server_error",
                    "An unexpected error occurred",
                    error_id,
                    details,
                ),
            )


def _make_service_error_handler(debug: bool):
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        error_id = str(uuid4())[:8]
        _log_service_error(error_id, exc, request)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(
                exc.error_code,
                exc.message,
                error_id,
                exc.details if debug else None,
            ),
        )

    return service_error_handler


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Registers a ServiceError exception handler (so service errors render
    before reaching the middleware stack) and the catch-all middleware.

    Args:
        app: FastAPI application instance
        debug: Whether to include error details in responses
    """
    app.add_exception_handler(ServiceError, _make_service_error_handler(debug))
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Route Decorator
# =============================================================================


def handle_endpoint_errors(operation: str) -> Callable[[F], F]:
    """
    Decorator for route handlers with consistent error translation.

    ServiceError and HTTPException are re-raised untouched. Any other
    exception is logged with its traceback and converted into a 500
    ServiceError carrying the operation name.

    Usage:
        @router.get("/streak", response_model=StreakResponse)
        @handle_endpoint_errors("Get streak")
        async def get_streak(...):
            ...

    Args:
        operation: Human-readable operation name used in logs and messages
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except (ServiceError, HTTPException):
                raise
            except Exception as e:
                logger.exception(f"{operation} failed: {e}")
                raise ServiceError(
                    f"{operation} failed",
                    details={"exception": type(e).__name__},
                ) from e

        return wrapper  # type: ignore[return-value]

    return decorator
