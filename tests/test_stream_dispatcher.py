"""Unit tests for frame -> event dispatch."""

from __future__ import annotations

from order_console.services.stream.dispatcher import dispatch_frame
from order_console.services.stream.models import RawText, StreamEvent


def test_keep_alive_comment_produces_no_event() -> None:
    assert dispatch_frame(": keep-alive") is None


def test_frame_without_data_line_produces_no_event() -> None:
    assert dispatch_frame("event: dbg\nid: 4") is None


def test_data_line_envelope_is_decoded() -> None:
    event = dispatch_frame('data: {"event":"dbg","data":"step1"}')
    assert event == StreamEvent(kind="dbg", payload="step1")


def test_comment_lines_are_skipped_before_data() -> None:
    event = dispatch_frame(': ping\n  data:{"event":"done","data":null}  ')
    assert event == StreamEvent(kind="done", payload=None)


def test_only_first_data_line_is_used() -> None:
    frame = 'data: {"event":"dbg","data":"first"}\ndata: {"event":"dbg","data":"x"}'
    event = dispatch_frame(frame)
    assert event is not None
    assert event.payload == "first"


def test_malformed_json_becomes_raw_event() -> None:
    event = dispatch_frame("data: {not json}")
    assert event is not None
    assert event.kind == "raw"
    assert event.payload == RawText("{not json}")
    assert event.is_raw


def test_non_object_envelope_becomes_raw_event() -> None:
    event = dispatch_frame("data: [1, 2]")
    assert event is not None
    assert event.kind == "raw"
    assert event.payload == RawText("[1, 2]")


def test_missing_event_field_is_unknown_kind() -> None:
    event = dispatch_frame('data: {"data": {"a": 1}}')
    assert event == StreamEvent(kind="unknown", payload={"a": 1})


def test_non_string_event_field_is_stringified() -> None:
    event = dispatch_frame('data: {"event": 7, "data": "x"}')
    assert event is not None
    assert event.kind == "7"


def test_unknown_kind_passes_through() -> None:
    event = dispatch_frame('data: {"event":"progress","data":{"pct":40}}')
    assert event == StreamEvent(kind="progress", payload={"pct": 40})
