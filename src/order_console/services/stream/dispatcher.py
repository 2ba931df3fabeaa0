"""Turn one frame into at most one stream event."""

from __future__ import annotations

import json
import logging

from order_console.services.stream.models import RAW_EVENT_KIND, RawText, StreamEvent


logger = logging.getLogger(__name__)

COMMENT_MARKER = ":"
DATA_MARKER = "data:"
UNKNOWN_EVENT_KIND = "unknown"


def _first_data_line(frame: str) -> str | None:
    for raw_line in frame.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_MARKER):
            # keep-alive comment
            continue
        if line.startswith(DATA_MARKER):
            return line[len(DATA_MARKER) :].strip()
    return None


def dispatch_frame(frame: str) -> StreamEvent | None:
    """Decode the envelope carried by the first `data:` line of a frame.

    Frames holding only comments (keep-alives) or no data line produce no
    event. Additional data lines in the same frame are ignored. A payload that
    is not a JSON object envelope becomes a `raw` event carrying the original
    text so it can still be shown to the operator.
    """
    payload_raw = _first_data_line(frame)
    if payload_raw is None:
        return None

    try:
        envelope = json.loads(payload_raw)
    except json.JSONDecodeError:
        logger.debug("Undecodable data line (%d chars)", len(payload_raw))
        return StreamEvent(kind=RAW_EVENT_KIND, payload=RawText(payload_raw))

    if not isinstance(envelope, dict):
        return StreamEvent(kind=RAW_EVENT_KIND, payload=RawText(payload_raw))

    kind = envelope.get("event")
    if kind is None:
        kind = UNKNOWN_EVENT_KIND
    elif not isinstance(kind, str):
        kind = json.dumps(kind, ensure_ascii=False)
    return StreamEvent(kind=kind, payload=envelope.get("data"))
