"""Protocols the orchestrator depends on.

The orchestrator only needs something that can open the two stream sessions;
tests and alternative transports implement this protocol instead of patching
the HTTP client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from order_console.schemas.orders import ExportRequest
from order_console.services.orders.models import InputFile


ChunkStream = AsyncIterator[bytes]


class OrderStreamClientProtocol(Protocol):
    """Opens one stream session per phase invocation.

    Each method returns an async context manager yielding the raw chunk
    iterator. Leaving the context releases the transport. A non-success
    status must raise `TransportError` on entry.
    """

    def open_analyze_stream(
        self,
        center_id: str,
        ocr_files: Sequence[InputFile],
        reference_file: InputFile | None = None,
    ) -> AbstractAsyncContextManager[ChunkStream]:
        """Open the analyze session (multipart upload)."""
        ...

    def open_export_stream(
        self, request: ExportRequest
    ) -> AbstractAsyncContextManager[ChunkStream]:
        """Open the export session (JSON body)."""
        ...
