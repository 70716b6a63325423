"""
LifeLine Logging Configuration

structlog on top of stdlib logging. Console output in development,
one JSON object per line everywhere else.

PRIVACY: Contact addresses and rendered notification text never reach
log output. Dispatchers log contact ids only; the redaction processor
catches anything that slips through.
"""

import logging
import sys
from typing import Any

import structlog

from lifeline import __version__
from lifeline.config.settings import Settings


# Event keys that can carry a contact address or a message body
REDACTED_KEYS: frozenset[str] = frozenset({
    "address",
    "phone",
    "email",
    "message_body",
})

REDACTED = "[REDACTED]"


def _redact_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Replace the value of any key naming contact details, at any depth."""

    def scrub(key: str, value: Any) -> Any:
        if any(marker in key.lower() for marker in REDACTED_KEYS):
            return REDACTED
        if isinstance(value, dict):
            return {k: scrub(k, v) for k, v in value.items()}
        if isinstance(value, list):
            return [scrub(key, item) for item in value]
        return value

    return {key: scrub(key, value) for key, value in event_dict.items()}


def _add_service_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict["service"] = "lifeline-core"
    event_dict["version"] = __version__
    return event_dict


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog and the root stdlib logger.

    Called once from the application factory.
    """
    development = settings.env == "development"
    renderer: list[Any] = (
        [structlog.processors.ExceptionPrettyPrinter(), structlog.dev.ConsoleRenderer(colors=True)]
        if development
        else [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _redact_sensitive_data,
            _add_service_context,
            *renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Access logs duplicate the correlation-tagged request logs
    for name in ("uvicorn", "uvicorn.access", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Tag every log line emitted while handling the current request."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
