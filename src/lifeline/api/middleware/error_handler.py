"""
Error Handler Middleware

Provides consistent error handling and response formatting.
Logs errors with correlation IDs for debugging.

Domain errors map to client status codes:
- InvalidTransitionError -> 409 (command not valid in current state)
- UnknownContactError -> 404
- SourceUnavailableError -> 503
- other LifelineError -> 400
"""

import traceback
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from lifeline.config.logging_config import get_logger, bind_correlation_id, clear_context
from lifeline.domain.errors import (
    InvalidTransitionError,
    LifelineError,
    SourceUnavailableError,
    UnknownContactError,
)

logger = get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Provides:
    - Correlation ID tracking for all requests
    - Consistent error response format
    - Error logging with context
    - Sensitive data protection in errors
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request with error handling."""
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
        bind_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as e:
            logger.error(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
                error_message=str(e),
                traceback=traceback.format_exc(),
            )

            # Sanitized: no exception text leaves the process
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "correlation_id": correlation_id,
                    "message": "An unexpected error occurred. Please try again.",
                },
                headers={"X-Correlation-ID": correlation_id},
            )

        finally:
            clear_context()


def _status_for(error: LifelineError) -> int:
    if isinstance(error, InvalidTransitionError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, UnknownContactError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, SourceUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_400_BAD_REQUEST


async def lifeline_error_handler(request: Request, exc: LifelineError) -> JSONResponse:
    """Translate a domain error into a JSON response."""
    status_code = _status_for(exc)
    logger.warning(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        status_code=status_code,
    )
    content = {
        "error": type(exc).__name__,
        "message": str(exc),
    }
    if isinstance(exc, InvalidTransitionError):
        content["state"] = exc.state.value
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Install domain error handlers on the application."""
    app.add_exception_handler(LifelineError, lifeline_error_handler)
