"""Value types shared by the frame decoder, dispatcher and reducer.

* StreamEvent  - one decoded (kind, payload) pair; at most one per frame.
* RawText      - payload of a data line that could not be decoded as a JSON
  envelope. Kept distinct from JSON strings so the reducer can tell a
  backend-sent string apart from undecodable wire text.
* LogLine      - one entry of the append-only operator log.
* ConsoleState - everything a renderer needs; replaced (never mutated) by
  each reducer transition.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from order_console.schemas.orders import FinalLink


JsonValue = str | int | float | bool | None | list[Any] | dict[str, Any]

LogOrigin = Literal["console", "backend"]

RAW_EVENT_KIND = "raw"


@dataclass(frozen=True, slots=True)
class RawText:
    text: str


@dataclass(frozen=True, slots=True)
class StreamEvent:
    kind: str
    payload: JsonValue | RawText = None

    @property
    def is_raw(self) -> bool:
        return isinstance(self.payload, RawText)


@dataclass(frozen=True, slots=True)
class LogLine:
    timestamp: datetime
    message: str
    origin: LogOrigin = "console"

    def render(self) -> str:
        tag = "[BE] " if self.origin == "backend" else ""
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {tag}{self.message}"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.render()


@dataclass(frozen=True, slots=True)
class ConsoleState:
    """Observable console state plus the flags of the active stream session.

    `saw_streamed_log` and `terminated` belong to the current session and are
    reset by `begin_session`; logs, result and links survive across the
    analyze and export sessions.
    """

    logs: tuple[LogLine, ...] = ()
    result: Mapping[str, Any] | None = None
    final_links: tuple[FinalLink, ...] = ()
    saw_streamed_log: bool = False
    terminated: bool = False
    completion_message: str = "Backend processing completed"

    def link_urls(self) -> set[str]:
        return {link.url for link in self.final_links}
