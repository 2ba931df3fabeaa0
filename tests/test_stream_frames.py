"""Unit tests for the blank-line frame decoder."""

from __future__ import annotations

import pytest
from helpers import split_every

from order_console.services.stream.frames import FrameDecoder, aiter_frames, iter_frames


STREAM = (
    ": keep-alive\n\n"
    'data: {"event":"dbg","data":"ステップ1"}\n\n'
    'data: {"event":"result","data":{"x":1}}\n\n'
    'data: {"event":"done","data":null}\n\n'
)


def test_single_chunk_yields_all_frames() -> None:
    frames = list(iter_frames([STREAM]))
    assert frames == [
        ": keep-alive",
        'data: {"event":"dbg","data":"ステップ1"}',
        'data: {"event":"result","data":{"x":1}}',
        'data: {"event":"done","data":null}',
    ]


@pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 16, 64])
def test_frames_independent_of_chunk_size(size: int) -> None:
    """Byte-level splits (including inside multi-byte characters) don't matter."""
    expected = list(iter_frames([STREAM.encode("utf-8")]))
    assert list(iter_frames(split_every(STREAM, size))) == expected


def test_delimiter_split_across_chunks() -> None:
    decoder = FrameDecoder()
    assert decoder.feed(b'data: {"event":"dbg","data":"a"}\n') == []
    assert decoder.feed(b'\ndata: {"event"') == ['data: {"event":"dbg","data":"a"}']
    assert decoder.buffer == 'data: {"event"'


def test_crlf_line_endings_split_between_cr_and_lf() -> None:
    decoder = FrameDecoder()
    assert decoder.feed(b"data: one\r\n\r") == []
    assert decoder.feed(b"\ndata: two\r\n\r\n") == ["data: one", "data: two"]


def test_unterminated_tail_is_discarded() -> None:
    frames = list(iter_frames(["data: first\n\n", "data: dangling"]))
    assert frames == ["data: first"]


def test_consecutive_delimiters_produce_no_empty_frames() -> None:
    frames = list(iter_frames(["\n\n\n\ndata: a\n\n\n\n", "  \n\ndata: b\n\n"]))
    assert frames == ["data: a", "data: b"]


def test_str_and_bytes_chunks_can_be_mixed() -> None:
    decoder = FrameDecoder()
    assert decoder.feed("data: a\n") == []
    assert decoder.feed(b"\n") == ["data: a"]


def test_close_resets_buffer() -> None:
    decoder = FrameDecoder()
    decoder.feed("data: partial")
    decoder.close()
    assert decoder.buffer == ""


def test_iter_frames_is_lazy() -> None:
    pulled: list[int] = []

    def chunks():
        for i, chunk in enumerate(["data: a\n\n", "data: b\n\n", "data: c\n\n"]):
            pulled.append(i)
            yield chunk

    frames = iter_frames(chunks())
    assert next(frames) == "data: a"
    assert pulled == [0]


@pytest.mark.asyncio
async def test_aiter_frames_matches_sync_decoder() -> None:
    async def chunks():
        for chunk in split_every(STREAM, 4):
            yield chunk

    frames = [frame async for frame in aiter_frames(chunks())]
    assert frames == list(iter_frames([STREAM]))


def test_delimiter_split_as_separate_newline_chunks() -> None:
    decoder = FrameDecoder()
    assert decoder.feed("data: a\n") == []
    assert decoder.feed("\n") == ["data: a"]
    assert decoder.feed("\n") == []
    assert decoder.feed("data: b\n\n\n\ndata: c\n") == ["\ndata: b"]
    assert decoder.feed("\n") == ["data: c"]
    assert decoder.buffer == ""


def test_crlf_delimiter_split_across_three_chunks() -> None:
    decoder = FrameDecoder()
    assert decoder.feed("data: a\r") == []
    assert decoder.feed("\n\r") == []
    assert decoder.feed("\n") == ["data: a"]


def test_large_frame_in_small_chunks() -> None:
    text = "x" * 500_000
    stream = f'data: {{"event":"result","data":"{text}"}}\r\n\r\n'
    frames = list(iter_frames(split_every(stream, 64)))
    assert frames == [f'data: {{"event":"result","data":"{text}"}}']
