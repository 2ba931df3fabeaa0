"""Reassemble blank-line delimited frames from arbitrarily chunked input."""

from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncGenerator, AsyncIterable, Generator, Iterable


logger = logging.getLogger(__name__)

FRAME_DELIMITER = "\n\n"


class FrameDecoder:
    """Incremental frame splitter for one stream session.

    Chunks may end anywhere: inside a multi-byte UTF-8 character, between the
    two newlines of a delimiter, or between the CR and LF of a CRLF line end.
    The unterminated tail is kept in `buffer` until more input arrives.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        # Pieces of the current frame; joined only once its delimiter arrives.
        self._parts: list[str] = []
        self._ends_with_newline = False
        self._pending_cr = False

    @property
    def buffer(self) -> str:
        """Text received since the last complete frame."""
        return "".join(self._parts) + ("\r" if self._pending_cr else "")

    def _emit(self, frames: list[str], last: str) -> None:
        frame = "".join([*self._parts, last])
        self._parts = []
        if frame.strip():
            frames.append(frame)

    def feed(self, chunk: bytes | str) -> list[str]:
        """Append one chunk and return every frame it completed, in order.

        Only the new text is scanned, so a large frame arriving in many small
        chunks costs time linear in its size.
        """
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        if self._pending_cr:
            text = "\r" + text
            self._pending_cr = False
        if text.endswith("\r"):
            # May be the first half of a CRLF.
            text = text[:-1]
            self._pending_cr = True
        if not text:
            return []
        text = text.replace("\r\n", "\n")

        frames: list[str] = []
        pos = 0
        if self._ends_with_newline and text.startswith("\n"):
            self._parts[-1] = self._parts[-1][:-1]
            self._emit(frames, "")
            pos = 1
        while True:
            idx = text.find(FRAME_DELIMITER, pos)
            if idx < 0:
                break
            self._emit(frames, text[pos:idx])
            pos = idx + len(FRAME_DELIMITER)

        rest = text[pos:]
        if rest:
            self._parts.append(rest)
        self._ends_with_newline = bool(self._parts) and self._parts[-1].endswith("\n")
        return frames

    def close(self) -> None:
        """Drop any unterminated tail; it is never delivered as a frame."""
        tail = self.buffer + self._decoder.decode(b"", final=True)
        if tail.strip():
            logger.debug("Discarding %d chars of unterminated frame data", len(tail))
        self._parts = []
        self._ends_with_newline = False
        self._pending_cr = False


def iter_frames(chunks: Iterable[bytes | str]) -> Generator[str, None, None]:
    """Lazily yield complete frames from a synchronous chunk source."""
    decoder = FrameDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    decoder.close()


async def aiter_frames(
    chunks: AsyncIterable[bytes | str],
) -> AsyncGenerator[str, None]:
    """Lazily yield complete frames from an async chunk source.

    Pulling the next chunk is the only suspension point; frames are yielded
    in arrival order as soon as their delimiter has been seen.
    """
    decoder = FrameDecoder()
    async for chunk in chunks:
        for frame in decoder.feed(chunk):
            yield frame
    decoder.close()
