"""Centralized error reporting and logging for the order console.

This module provides:
- Structured logging with a per-session correlation ID
- Redaction of sensitive fields before they reach log handlers
- A single operator-facing message per failed attempt (`describe_error`)
- Idempotent logging setup (JSON in production, human-readable elsewhere)
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

from order_console.core.config import get_settings
from order_console.core.exceptions import (
    ConsoleError,
    InputValidationError,
    SessionBusyError,
    StreamUnavailableError,
    TransportError,
)
from order_console.core.security_config import is_sensitive_key


# Correlation ID shared by every log record emitted while a session runs
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)

# Most specific type first; describe_error walks this in order.
ERROR_TYPE_MESSAGES: dict[type[Exception], str] = {
    SessionBusyError: "Another session is still running",
    InputValidationError: "Required input is missing",
    StreamUnavailableError: "Could not read the response stream",
    TransportError: "The backend request failed",
}


def get_correlation_id() -> str:
    """Get or create a correlation ID for session tracing."""
    correlation_id: str | None = _correlation_id_var.get()
    if correlation_id is None or correlation_id == "":
        new_id = str(uuid.uuid4())
        _correlation_id_var.set(new_id)
        return new_id
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_var.set(correlation_id)


def new_correlation_id() -> str:
    """Start a fresh correlation ID (one per stream session)."""
    correlation_id = str(uuid.uuid4())
    _correlation_id_var.set(correlation_id)
    return correlation_id


def describe_error(exc: BaseException) -> str:
    """Return the one human-readable message shown for a failed attempt."""
    for exc_type, summary in ERROR_TYPE_MESSAGES.items():
        if isinstance(exc, exc_type):
            detail = exc.message if isinstance(exc, ConsoleError) else str(exc)
            return f"{summary}: {detail}" if detail else summary
    return str(exc) or exc.__class__.__name__


class StructuredLogger:
    """Structured logger that includes correlation IDs and sanitized data."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log_with_context(
        self,
        level: int,
        message: str,
        extra_data: dict[str, Any] | None = None,
    ) -> None:
        """Log with correlation ID and structured data."""
        correlation_id = get_correlation_id()
        sanitized_data = self._sanitize_data(extra_data or {})

        log_data = {
            "correlation_id": correlation_id,
            "message": message,
            **sanitized_data,
        }

        settings = get_settings()
        if settings.ENVIRONMENT == "production":
            # The JsonFormatter merges `extra` into the emitted object.
            self.logger.log(
                level,
                message,
                extra={"structured_data": log_data},
            )
        else:
            self.logger.log(
                level,
                f"[{correlation_id}] {message}",
                extra={"structured_data": log_data},
            )

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Remove or mask sensitive data from log entries."""
        if not isinstance(data, dict) or not data:
            return {}

        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if is_sensitive_key(key):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = self._sanitize_value(value)
        return sanitized

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._sanitize_data(value)
        if isinstance(value, list):
            return [self._sanitize_value(item) for item in value]
        return value

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info level message."""
        self._log_with_context(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning level message."""
        self._log_with_context(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error level message."""
        self._log_with_context(logging.ERROR, message, kwargs)


def setup_logging() -> None:
    """Configure console logging with idempotent setup.

    Log records go to stderr so they never interleave with rendered output.
    """
    settings = get_settings()

    if settings.LOG_LEVEL:
        log_level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO
    else:
        log_level = (
            logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO
        )
    root_logger = logging.getLogger()

    # Make setup idempotent - avoid duplicate handlers
    if root_logger.handlers:
        return

    formatter: logging.Formatter
    if settings.ENVIRONMENT == "production":
        from pythonjsonlogger.json import JsonFormatter

        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
