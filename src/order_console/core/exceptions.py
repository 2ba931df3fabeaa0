"""Error taxonomy for the order console.

Only input validation and transport failures halt a stream session. Malformed
frames and unexpected payload shapes never raise; the reducer downgrades them
to log lines. Each exception carries a stable `error_code` for log tagging.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ConsoleError(Exception):
    """Base class for console domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class InputValidationError(ConsoleError):
    """Required input missing; raised before any network call."""

    def __init__(self, message: str = "Required input is missing") -> None:
        super().__init__(message=message, error_code="validation_error")


class SessionBusyError(InputValidationError):
    def __init__(self, phase: str, active_phase: str) -> None:
        super().__init__(
            f"Cannot start {phase}: a {active_phase} session is still running"
        )
        self.error_code = "session_busy"


class TransportError(ConsoleError):
    """Non-success HTTP status or a failed connection/read."""

    def __init__(
        self,
        message: str = "Backend request failed",
        *,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        self.message = message
        self.error_code = "transport_error"
        self.status_code = status_code
        self.body = body

    @classmethod
    def from_status(cls, status_code: int, reason: str, body: str) -> TransportError:
        reason_part = f" {reason}" if reason else ""
        return cls(
            f"{status_code}{reason_part} - {body}",
            status_code=status_code,
            body=body,
        )


class StreamUnavailableError(TransportError):
    def __init__(self, message: str = "Response stream is unavailable") -> None:
        super().__init__(message)
        self.error_code = "stream_unavailable"
