"""Derived views over a pipeline result for rendering."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from order_console.schemas.orders import PipelineResult


CALC_TABLE_HEADER: list[str] = [
    "Destination",
    "Maker",
    "Product code",
    "No.",
    "Maker (result)",
    "Product name",
    "Spec",
    "Composition sheet",
    "Sample",
    "Remarks",
]


@dataclass(frozen=True, slots=True)
class _RowFlags:
    dest: str = ""
    seibun: str = ""
    mihon: str = ""
    num: str = ""


@dataclass(frozen=True, slots=True)
class ResultSummary:
    center_name: str
    center_month: str
    flag_count: int
    maker_count: int
    reference_rows: int
    ocr_rows: int


def _flags_by_item(result: PipelineResult) -> dict[tuple[str, str], _RowFlags]:
    flags: dict[tuple[str, str], _RowFlags] = {}
    if result.flags_with_number:
        for dest, maker, code, num, seibun, mihon in result.flags_with_number:
            flags[(maker, code)] = _RowFlags(dest, seibun, mihon, num)
    else:
        for dest, maker, code, seibun, mihon in result.flags:
            flags[(maker, code)] = _RowFlags(dest, seibun, mihon)
    return flags


def _cell(row: list[str | None], idx: int, default: str = "") -> str:
    try:
        value = row[idx]
    except IndexError:
        return default
    return default if value is None else value


def build_calc_rows(result: PipelineResult) -> list[list[str]]:
    """Build the calculation-result table, header row first.

    One row per (maker, code) pair in `maker_cds`; the maker's data row at the
    same index supplies name/spec/remarks and the flag tuples supply
    destination, number and the two flags.
    """
    rows: list[list[str]] = [list(CALC_TABLE_HEADER)]
    flags = _flags_by_item(result)
    for maker, codes in result.maker_cds.items():
        data_rows = result.maker_data.get(maker, [])
        for index, code in enumerate(codes):
            data_row = data_rows[index] if index < len(data_rows) else [maker]
            f = flags.get((maker, code), _RowFlags())
            rows.append(
                [
                    f.dest,
                    maker,
                    code,
                    f.num,
                    _cell(data_row, 0, maker),
                    _cell(data_row, 1),
                    _cell(data_row, 2),
                    f.seibun,
                    f.mihon,
                    _cell(data_row, 3),
                ]
            )
    return rows


def summarize(result: PipelineResult) -> ResultSummary:
    # Table row counts exclude the header row.
    return ResultSummary(
        center_name=result.center_name,
        center_month=result.center_month,
        flag_count=len(result.flags),
        maker_count=len(result.maker_cds),
        reference_rows=max(0, len(result.reference_table) - 1),
        ocr_rows=max(0, len(result.ocr_table) - 1),
    )


def _walk(data: Any, path: str) -> Iterator[tuple[str, Any]]:
    if isinstance(data, dict):
        for key, value in data.items():
            yield from _walk(value, f"{path}.{key}" if path else str(key))
    elif isinstance(data, list):
        for idx, value in enumerate(data):
            yield from _walk(value, f"{path}[{idx}]")
    else:
        yield path, data


def filter_json(data: Any, query: str) -> list[tuple[str, Any]]:
    """Return (path, value) leaves whose path or value contains `query`.

    Matching is case-insensitive; an empty query returns every leaf.
    """
    needle = query.strip().lower()
    matches: list[tuple[str, Any]] = []
    for path, value in _walk(data, ""):
        if not needle or needle in path.lower() or needle in str(value).lower():
            matches.append((path, value))
    return matches
