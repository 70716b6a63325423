"""API middleware package."""

from lifeline.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)

__all__ = [
    "ErrorHandlerMiddleware",
    "register_exception_handlers",
]
