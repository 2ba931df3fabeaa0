"""HTTP client for the order pipeline backend."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from order_console.core.config import Settings, build_api_url, get_settings
from order_console.core.exceptions import StreamUnavailableError, TransportError
from order_console.schemas.orders import (
    CenterListResponse,
    CenterSummary,
    ExportRequest,
)
from order_console.services.orders.models import InputFile


logger = logging.getLogger(__name__)

ANALYZE_STREAM_PATH = "/orders/process/stream"
EXPORT_STREAM_PATH = "/orders/export/stream"
CENTER_LIST_PATH = "/centers/list"
CENTER_CONFIG_PATH = "/centers/config/{center_id}"


def _timeout(settings: Settings) -> httpx.Timeout:
    # Streams may stay silent for minutes while the backend runs OCR, so only
    # the connect phase is bounded.
    return httpx.Timeout(None, connect=settings.CONNECT_TIMEOUT_SECONDS)


async def _error_from_response(response: httpx.Response) -> TransportError:
    try:
        await response.aread()
        body = response.text
    except (httpx.HTTPError, httpx.StreamError):
        body = ""
    return TransportError.from_status(
        response.status_code, response.reason_phrase, body
    )


class OrdersApiClient:
    """Async client for the analyze/export stream endpoints and center lookups.

    Accepts an optional `httpx.AsyncClient` (or just a transport) so tests can
    route requests to `httpx.MockTransport` or an in-process ASGI app.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=_timeout(self._settings), transport=transport
        )

    async def __aenter__(self) -> OrdersApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return build_api_url(path, self._settings)

    @asynccontextmanager
    async def _stream(
        self, method: str, path: str, **kwargs: Any
    ) -> AsyncGenerator[AsyncIterator[bytes], None]:
        url = self._url(path)
        try:
            async with self._client.stream(method, url, **kwargs) as response:
                if not response.is_success:
                    raise await _error_from_response(response)
                logger.debug("Stream opened: %s %s", method, url)
                yield response.aiter_bytes()
        except httpx.StreamError as exc:
            raise StreamUnavailableError(
                f"Response stream could not be read ({type(exc).__name__})"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
            ) from exc

    def open_analyze_stream(
        self,
        center_id: str,
        ocr_files: Sequence[InputFile],
        reference_file: InputFile | None = None,
    ) -> AbstractAsyncContextManager[AsyncIterator[bytes]]:
        data = {
            "center_id": center_id,
            "sheet_name": self._settings.ANALYZE_SHEET_NAME,
            "auto_export": "false",
        }
        files: list[tuple[str, tuple[str, bytes, str]]] = []
        if reference_file is not None:
            files.append(("reference_file", reference_file.as_multipart()))
        files.extend(("ocr_files", f.as_multipart()) for f in ocr_files)
        return self._stream("POST", ANALYZE_STREAM_PATH, data=data, files=files)

    def open_export_stream(
        self, request: ExportRequest
    ) -> AbstractAsyncContextManager[AsyncIterator[bytes]]:
        return self._stream(
            "POST", EXPORT_STREAM_PATH, json=request.model_dump(mode="json")
        )

    async def _get_json(self, path: str) -> Any:
        try:
            response = await self._client.get(self._url(path))
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        if not response.is_success:
            raise TransportError.from_status(
                response.status_code, response.reason_phrase, response.text
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"Invalid JSON from {path}", status_code=response.status_code
            ) from exc

    async def list_centers(self) -> list[CenterSummary]:
        payload = await self._get_json(CENTER_LIST_PATH)
        if not isinstance(payload, dict):
            return []
        try:
            return CenterListResponse.model_validate(payload).centers
        except ValidationError as exc:
            raise TransportError("Unexpected center list payload") from exc

    async def get_center_config(self, center_id: str) -> Any:
        return await self._get_json(
            CENTER_CONFIG_PATH.format(center_id=quote(center_id, safe=""))
        )
