"""Notification dispatch infrastructure package."""

from lifeline.infrastructure.dispatch.dispatcher import (
    DispatcherType,
    NotificationDispatcher,
    LoggingDispatcher,
    UnavailableDispatcher,
    create_dispatcher,
)

__all__ = [
    "DispatcherType",
    "NotificationDispatcher",
    "LoggingDispatcher",
    "UnavailableDispatcher",
    "create_dispatcher",
]
