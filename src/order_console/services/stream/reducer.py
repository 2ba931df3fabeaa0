"""Fold stream events into console state.

Transition table:

* ``dbg``    - mark the session as having streamed logs; append the message.
* ``result`` - adopt or field-merge the payload into the result, record new
  artifact links, and (only if no ``dbg`` arrived in this session) append the
  payload's ``debug_logs``.
* ``done``   - terminate the session with a completion log line.
* anything else, including undecodable ``raw`` frames - one tagged log line.

`reduce` never raises on malformed payloads; every anomaly degrades to a log
line or is ignored.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from order_console.schemas.orders import (
    OCR_SNAPSHOT_LINK_NAME,
    OUTPUT_SPREADSHEET_LINK_NAME,
    FinalLink,
)
from order_console.services.stream.models import (
    ConsoleState,
    LogLine,
    LogOrigin,
    RawText,
    StreamEvent,
)


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Result fields that carry generated-artifact URLs, in link order.
ARTIFACT_LINK_FIELDS: tuple[tuple[str, str], ...] = (
    ("ocr_snapshot_url", OCR_SNAPSHOT_LINK_NAME),
    ("output_spreadsheet_url", OUTPUT_SPREADSHEET_LINK_NAME),
)


def stringify_payload(payload: Any) -> str:
    """Render any payload as log text (strings verbatim, others as JSON)."""
    if isinstance(payload, RawText):
        return payload.text
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(payload)


def append_logs(
    state: ConsoleState,
    messages: Iterable[str],
    origin: LogOrigin = "console",
    clock: Clock = datetime.now,
) -> ConsoleState:
    now = clock()
    new_lines = tuple(LogLine(now, message, origin) for message in messages)
    if not new_lines:
        return state
    return dataclasses.replace(state, logs=state.logs + new_lines)


def append_log(
    state: ConsoleState,
    message: str,
    origin: LogOrigin = "console",
    clock: Clock = datetime.now,
) -> ConsoleState:
    return append_logs(state, [message], origin, clock)


def add_final_link(state: ConsoleState, name: str, url: str) -> ConsoleState:
    """Insert a link unless one with the same url is already recorded."""
    if url in state.link_urls():
        return state
    return dataclasses.replace(
        state, final_links=state.final_links + (FinalLink(name=name, url=url),)
    )


def merge_result(
    existing: Mapping[str, Any] | None, payload: Mapping[str, Any]
) -> dict[str, Any]:
    """Layer payload fields over an existing result without clearing any."""
    merged = dict(existing) if existing is not None else {}
    merged.update(payload)
    return merged


def begin_session(
    state: ConsoleState, completion_message: str | None = None
) -> ConsoleState:
    """Reset per-session flags, keeping logs, result and links."""
    changes: dict[str, Any] = {"saw_streamed_log": False, "terminated": False}
    if completion_message is not None:
        changes["completion_message"] = completion_message
    return dataclasses.replace(state, **changes)


def _reduce_result(state: ConsoleState, payload: Any, clock: Clock) -> ConsoleState:
    if not isinstance(payload, Mapping):
        logger.debug("Ignoring non-object result payload: %s", type(payload).__name__)
        return state

    merged = merge_result(state.result, payload)
    state = dataclasses.replace(state, result=merged)

    for field_name, link_name in ARTIFACT_LINK_FIELDS:
        url = merged.get(field_name)
        if isinstance(url, str) and url:
            state = add_final_link(state, link_name, url)

    if not state.saw_streamed_log:
        debug_logs = payload.get("debug_logs")
        if isinstance(debug_logs, list):
            state = append_logs(
                state, (stringify_payload(ln) for ln in debug_logs), "backend", clock
            )
    return state


def reduce(
    state: ConsoleState, event: StreamEvent, clock: Clock = datetime.now
) -> ConsoleState:
    """Apply one event to the state and return the new state."""
    if state.terminated:
        return state

    if event.kind == "dbg":
        state = dataclasses.replace(state, saw_streamed_log=True)
        return append_log(state, stringify_payload(event.payload), "backend", clock)

    if event.kind == "result":
        return _reduce_result(state, event.payload, clock)

    if event.kind == "done":
        state = dataclasses.replace(state, terminated=True)
        return append_log(state, state.completion_message, "console", clock)

    message = f"[BE:{event.kind}] {stringify_payload(event.payload)}"
    return append_log(state, message, "console", clock)
