#!/usr/bin/env python3
"""Terminal front end for the order console.

Usage:
    # List configured centers
    order-console centers

    # Show a center's configuration, optionally filtered
    order-console config CENTER_ID --query maker

    # Analyze OCR sources (in the given order) against a reference sheet
    order-console run CENTER_ID --reference quote.xlsx --ocr p1.pdf --ocr p2.png

    # Analyze, then generate the per-maker request spreadsheet
    order-console run CENTER_ID --ocr p1.pdf --export
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from order_console.core.config import get_settings
from order_console.core.error_handler import describe_error, setup_logging
from order_console.core.exceptions import ConsoleError
from order_console.services.orders.client import OrdersApiClient
from order_console.services.orders.models import InputFile
from order_console.services.orders.orchestrator import OrderPipelineOrchestrator
from order_console.services.orders.tables import (
    build_calc_rows,
    filter_json,
    summarize,
)
from order_console.services.stream.models import ConsoleState


logger = logging.getLogger(__name__)


class LogPrinter:
    """State observer that prints log lines as they are appended."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._printed = 0

    def __call__(self, state: ConsoleState) -> None:
        if len(state.logs) < self._printed:
            # A new analyze run reset the log panel.
            self._printed = 0
        for line in state.logs[self._printed :]:
            print(line.render(), file=self._out, flush=True)
        self._printed = len(state.logs)


def _print_table(rows: list[list[str]], out: TextIO) -> None:
    if len(rows) <= 1:
        print("(no data)", file=out)
        return
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    for row in rows:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)), file=out)


def _print_results(orchestrator: OrderPipelineOrchestrator, out: TextIO) -> None:
    result = orchestrator.result
    if result is not None:
        summary = summarize(result)
        print("", file=out)
        print(f"Center:          {summary.center_name or '(unknown)'}", file=out)
        print(f"Month:           {summary.center_month or '-'}", file=out)
        print(f"Flags:           {summary.flag_count}", file=out)
        print(f"Makers:          {summary.maker_count}", file=out)
        print(f"Reference rows:  {summary.reference_rows}", file=out)
        print(f"OCR rows:        {summary.ocr_rows}", file=out)
        print("", file=out)
        _print_table(build_calc_rows(result), out)

    links = orchestrator.state.final_links
    print("", file=out)
    if not links:
        print("No generated artifacts yet.", file=out)
    for link in links:
        print(f"{link.name}: {link.url}", file=out)


async def _cmd_centers(client: OrdersApiClient, args: argparse.Namespace) -> int:
    centers = await client.list_centers()
    if not centers:
        print("No centers are configured.", file=args.out)
    for center in centers:
        print(f"{center.id}\t{center.display_name or center.id}", file=args.out)
    return 0


async def _cmd_config(client: OrdersApiClient, args: argparse.Namespace) -> int:
    data = await client.get_center_config(args.center_id)
    if not args.query:
        print(json.dumps(data, ensure_ascii=False, indent=2), file=args.out)
        return 0
    matches = filter_json(data, args.query)
    if not matches:
        print(f"No entries match {args.query!r}.", file=args.out)
    for path, value in matches:
        print(f"{path}: {json.dumps(value, ensure_ascii=False)}", file=args.out)
    return 0


async def _cmd_run(client: OrdersApiClient, args: argparse.Namespace) -> int:
    orchestrator = OrderPipelineOrchestrator(client, observers=[LogPrinter(args.out)])
    ocr_files = [InputFile.from_path(p) for p in args.ocr]
    reference = InputFile.from_path(args.reference) if args.reference else None
    try:
        await orchestrator.run_analyze(args.center_id, ocr_files, reference)
        if args.export:
            await orchestrator.run_export()
    finally:
        _print_results(orchestrator, args.out)
    return 0


COMMANDS = {
    "centers": _cmd_centers,
    "config": _cmd_config,
    "run": _cmd_run,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="order-console",
        description="Drive the order analysis/export pipeline and show its progress.",
    )
    parser.add_argument(
        "--base-url",
        help="Backend base URL (defaults to ORDERS_API_BASE_URL)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("centers", help="List configured centers")

    config = sub.add_parser("config", help="Show a center's configuration")
    config.add_argument("center_id")
    config.add_argument("--query", default="", help="Filter by key path or value")

    run = sub.add_parser("run", help="Analyze inputs (and optionally export)")
    run.add_argument("center_id")
    run.add_argument(
        "--ocr",
        action="append",
        default=[],
        metavar="FILE",
        help="OCR source file; repeat to add more, in processing order",
    )
    run.add_argument("--reference", metavar="FILE", help="Reference quote sheet")
    run.add_argument(
        "--export",
        action="store_true",
        help="Generate the request spreadsheet after a successful analysis",
    )
    return parser


async def _main_async(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.base_url:
        settings = settings.model_copy(
            update={"ORDERS_API_BASE_URL": args.base_url.rstrip("/")}
        )
    async with OrdersApiClient(settings) as client:
        return await COMMANDS[args.command](client, args)


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    args = build_parser().parse_args(argv)
    args.out = out or sys.stdout
    setup_logging()
    try:
        return asyncio.run(_main_async(args))
    except ConsoleError as exc:
        print(f"Error: {describe_error(exc)}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
