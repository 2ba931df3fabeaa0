"""Scripted stand-in for the order pipeline backend (dev only).

Replays a fixed analyze/export event sequence over the same framed stream
protocol the real backend speaks, including keep-alive comments, so the
console can be exercised without OCR or spreadsheet credentials.

Run with:
    python -m order_console.dev.mock_backend --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Annotated, Any

import uvicorn
from fastapi import APIRouter, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from order_console.schemas.orders import ExportRequest, StreamEnvelope


logger = logging.getLogger(__name__)

KEEP_ALIVE = ": keep-alive\n\n"

CENTERS: dict[str, dict[str, Any]] = {
    "tokyo-east": {
        "displayName": "Tokyo East Center",
        "config": {
            "sheet_name": "入札書",
            "makers": {"Maker A": {"destination": "Dept 1"}},
            "columns": {"code": "B", "name": "C"},
        },
    },
}

SAMPLE_RESULT: dict[str, Any] = {
    "ocr_table": [["code", "name"], ["A-001", "Tomato sauce"]],
    "reference_table": [["code", "qty"], ["A-001", "10"], ["A-002", "4"]],
    "selections": [
        {"maker": "Maker A", "code": "A-001", "seibun_flag": "1", "mihon_flag": ""}
    ],
    "maker_data": {"Maker A": [["Maker A", "Tomato sauce", "1kg", ""]]},
    "maker_cds": {"Maker A": ["A-001"]},
    "flags": [["Dept 1", "Maker A", "A-001", "1", ""]],
    "flags_with_number": [["Dept 1", "Maker A", "A-001", "1", "1", ""]],
    "ocr_snapshot_url": "https://sheets.example.test/ocr-snapshot",
    "output_folder_id": "folder-1",
    "extraction_sheet_id": "sheet-1",
    "extraction_sheet_url": "https://sheets.example.test/extraction",
    "center_name": "Tokyo East Center",
    "center_month": "2026-10",
    "debug_logs": [],
}

EXPORT_SPREADSHEET_URL = "https://sheets.example.test/requests"


def _event(event: str, data: Any = None) -> str:
    return StreamEnvelope(event=event, data=data).to_sse()


def create_app(delay: float = 0.0) -> FastAPI:
    """Build the mock backend; `delay` seconds are slept between frames."""
    router = APIRouter()

    async def _pace() -> None:
        if delay:
            await asyncio.sleep(delay)

    async def analyze_stream(
        center_id: str, file_names: list[str]
    ) -> AsyncGenerator[str, None]:
        yield KEEP_ALIVE
        yield _event("dbg", f"Received {len(file_names)} OCR file(s) for {center_id}")
        for name in file_names:
            await _pace()
            yield _event("dbg", f"OCR finished: {name}")
        await _pace()
        yield _event("result", SAMPLE_RESULT)
        yield _event("done")

    async def export_stream(request: ExportRequest) -> AsyncGenerator[str, None]:
        yield KEEP_ALIVE
        for maker in request.maker_cds:
            await _pace()
            yield _event("dbg", f"Writing request sheet for {maker}")
        yield _event(
            "result",
            {
                "output_spreadsheet_url": EXPORT_SPREADSHEET_URL,
                "debug_logs": [f"Exported {len(request.maker_cds)} maker(s)"],
            },
        )
        yield _event("done")

    @router.post("/orders/process/stream")
    async def process_stream(
        center_id: Annotated[str, Form()],
        ocr_files: Annotated[list[UploadFile], File()],
        sheet_name: Annotated[str, Form()] = "",
        auto_export: Annotated[str, Form()] = "false",
        reference_file: Annotated[UploadFile | None, File()] = None,
    ) -> StreamingResponse:
        if center_id not in CENTERS:
            raise HTTPException(status_code=404, detail="Unknown center")
        logger.info(
            "Analyze request: center=%s sheet=%s files=%d reference=%s",
            center_id,
            sheet_name,
            len(ocr_files),
            reference_file.filename if reference_file else None,
        )
        names = [f.filename or "(unnamed)" for f in ocr_files]
        return StreamingResponse(
            analyze_stream(center_id, names), media_type="text/event-stream"
        )

    @router.post("/orders/export/stream")
    async def export(request: ExportRequest) -> StreamingResponse:
        return StreamingResponse(export_stream(request), media_type="text/event-stream")

    @router.get("/centers/list")
    async def list_centers() -> dict[str, Any]:
        centers = [
            {"id": cid, "displayName": center["displayName"]}
            for cid, center in CENTERS.items()
        ]
        return {"centers": centers}

    @router.get("/centers/config/{center_id}")
    async def center_config(center_id: str) -> dict[str, Any]:
        center = CENTERS.get(center_id)
        if center is None:
            raise HTTPException(status_code=404, detail="Unknown center")
        return center["config"]

    app = FastAPI(title="Order Pipeline Mock Backend", version="0.1.0")
    app.include_router(router)
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument(
        "--delay", type=float, default=0.5, help="Seconds between frames"
    )
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    uvicorn.run(create_app(delay=args.delay), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
