"""Tests for the order backend HTTP client."""

from __future__ import annotations

import json

import httpx
import pytest
from helpers import BrokenStream, ChunkedStream, sse

from order_console.core.exceptions import StreamUnavailableError, TransportError
from order_console.schemas.orders import ExportRequest
from order_console.services.orders.models import InputFile


OCR_FILES = [
    InputFile("page1.pdf", b"%PDF-1", "application/pdf"),
    InputFile("page2.png", b"\x89PNG", "image/png"),
]


async def _collect(cm) -> bytes:
    async with cm as chunks:
        return b"".join([chunk async for chunk in chunks])


@pytest.mark.asyncio
async def test_analyze_stream_posts_multipart(make_api_client) -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.read()
        return httpx.Response(200, stream=ChunkedStream([sse("done")]))

    client = make_api_client(handler)
    body = await _collect(
        client.open_analyze_stream(
            "tokyo-east", OCR_FILES, InputFile("quote.xlsx", b"xlsx")
        )
    )

    assert body == sse("done").encode()
    assert seen["url"] == "http://testserver/orders/process/stream"
    assert str(seen["content_type"]).startswith("multipart/form-data")
    raw = bytes(seen["body"])  # type: ignore[arg-type]
    assert b'name="center_id"' in raw and b"tokyo-east" in raw
    assert b'name="auto_export"' in raw
    assert b'name="reference_file"; filename="quote.xlsx"' in raw
    # OCR files keep their order
    assert raw.index(b'filename="page1.pdf"') < raw.index(b'filename="page2.png"')


@pytest.mark.asyncio
async def test_export_stream_posts_json(make_api_client) -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["json"] = json.loads(request.read())
        return httpx.Response(200, stream=ChunkedStream([sse("done")]))

    client = make_api_client(handler)
    request = ExportRequest(
        center_id="tokyo-east",
        center_name="Tokyo East",
        maker_cds={"Maker A": ["A-001"]},
        flags=[("Dept 1", "Maker A", "A-001", "1", "")],
        extraction_sheet_id="sheet-1",
    )
    await _collect(client.open_export_stream(request))

    assert seen["url"] == "http://testserver/orders/export/stream"
    payload = seen["json"]
    assert isinstance(payload, dict)
    assert payload["center_id"] == "tokyo-east"
    assert payload["flags"] == [["Dept 1", "Maker A", "A-001", "1", ""]]
    assert payload["extraction_sheet_id"] == "sheet-1"
    assert payload["output_folder_id"] is None


@pytest.mark.asyncio
async def test_non_success_status_raises_transport_error(make_api_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    client = make_api_client(handler)
    with pytest.raises(TransportError) as exc_info:
        await _collect(client.open_analyze_stream("c", OCR_FILES))

    assert exc_info.value.status_code == 500
    assert exc_info.value.body == "boom"
    assert exc_info.value.message == "500 Internal Server Error - boom"
    assert not isinstance(exc_info.value, StreamUnavailableError)


@pytest.mark.asyncio
async def test_connection_failure_raises_transport_error(make_api_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_api_client(handler)
    with pytest.raises(TransportError, match="connection refused"):
        await _collect(client.open_analyze_stream("c", OCR_FILES))


@pytest.mark.asyncio
async def test_broken_body_stream_raises_stream_unavailable(make_api_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=BrokenStream([sse("dbg", "a")]))

    client = make_api_client(handler)
    with pytest.raises(StreamUnavailableError):
        async with client.open_analyze_stream("c", OCR_FILES) as chunks:
            async for _chunk in chunks:
                pass


@pytest.mark.asyncio
async def test_stream_is_closed_when_consumer_stops_early(make_api_client) -> None:
    stream = ChunkedStream([sse("dbg", "a"), sse("done"), sse("dbg", "late")])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=stream)

    client = make_api_client(handler)
    async with client.open_analyze_stream("c", OCR_FILES) as chunks:
        async for _chunk in chunks:
            break

    assert stream.closed is True


@pytest.mark.asyncio
async def test_list_centers(make_api_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/centers/list"
        return httpx.Response(
            200, json={"centers": [{"id": "tokyo-east", "displayName": "Tokyo"}]}
        )

    centers = await make_api_client(handler).list_centers()
    assert [(c.id, c.display_name) for c in centers] == [("tokyo-east", "Tokyo")]


@pytest.mark.asyncio
async def test_center_config_quotes_id(make_api_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.raw_path == b"/centers/config/tokyo%20east"
        return httpx.Response(200, json={"sheet_name": "入札書"})

    config = await make_api_client(handler).get_center_config("tokyo east")
    assert config == {"sheet_name": "入札書"}


@pytest.mark.asyncio
async def test_center_config_error_status(make_api_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing")

    with pytest.raises(TransportError) as exc_info:
        await make_api_client(handler).get_center_config("nope")
    assert exc_info.value.status_code == 404
