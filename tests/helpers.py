"""Frame builders and fake transports shared by the stream tests."""

import json
from collections.abc import AsyncIterator, Iterable

import httpx


def sse(event: str, data: object = None) -> str:
    """Render one frame the way the backend does."""
    return f"data: {json.dumps({'event': event, 'data': data})}\n\n"


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered as the given chunks, in order."""

    def __init__(self, chunks: Iterable[bytes | str]) -> None:
        self._chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.closed = False
        self.chunks_read = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def split_every(text: str, size: int) -> list[bytes]:
    """Split the UTF-8 encoding of `text` into fixed-size byte chunks."""
    data = text.encode("utf-8")
    return [data[i : i + size] for i in range(0, len(data), size)]


class BrokenStream(ChunkedStream):
    """Delivers its chunks, then fails as if the body stream was closed."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in super().__aiter__():
            yield chunk
        raise httpx.StreamClosed()
