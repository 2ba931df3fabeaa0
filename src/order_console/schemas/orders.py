"""Schemas for the order pipeline backend (analyze/export streams)."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


TableData = list[list[str | None]]

# (destination, maker, code, composition-sheet flag, sample flag)
FlagsEntry = tuple[str, str, str, str, str]

# (destination, maker, code, number, composition-sheet flag, sample flag)
FlagsWithNumberEntry = tuple[str, str, str, str, str, str]

OCR_SNAPSHOT_LINK_NAME = "OCR results spreadsheet"
OUTPUT_SPREADSHEET_LINK_NAME = "Per-maker request documents spreadsheet"


class StreamEnvelope(BaseModel):
    """Canonical envelope carried on each `data:` line of a stream frame."""

    event: str
    data: Any = None

    model_config = ConfigDict(extra="ignore")

    def to_sse(self) -> str:
        return f"data: {self.model_dump_json()}\n\n"


class OrderSelection(BaseModel):
    maker: str = ""
    code: str = ""
    seibun_flag: str = ""
    mihon_flag: str = ""

    model_config = ConfigDict(coerce_numbers_to_str=True)


class FinalLink(BaseModel):
    """Named URL of a generated artifact."""

    name: str
    url: str

    model_config = ConfigDict(frozen=True)


class PipelineResult(BaseModel):
    """Aggregate backend output of the analyze phase.

    The export phase returns only a subset of these fields, so every field
    has a default. Use `from_payload` to build a view over a raw (possibly
    malformed) mapping without raising.
    """

    ocr_table: TableData = Field(default_factory=list)
    reference_table: TableData = Field(default_factory=list)
    selections: list[OrderSelection] = Field(default_factory=list)
    maker_data: dict[str, TableData] = Field(default_factory=dict)
    maker_cds: dict[str, list[str]] = Field(default_factory=dict)
    flags: list[FlagsEntry] = Field(default_factory=list)
    flags_with_number: list[FlagsWithNumberEntry] | None = None
    ocr_snapshot_url: str | None = None
    output_spreadsheet_url: str | None = None
    output_folder_id: str | None = None
    extraction_sheet_id: str | None = None
    extraction_sheet_url: str | None = None
    center_name: str = ""
    center_month: str = ""
    debug_logs: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> PipelineResult:
        """Build a result view, dropping only the entries that fail validation.

        A bad cell removes the row or list item that holds it; the rest of the
        field survives. The payload itself is never modified.
        """
        if not isinstance(payload, Mapping):
            return cls()
        data = copy.deepcopy(dict(payload))
        while True:
            try:
                return cls.model_validate(data)
            except ValidationError as exc:
                if not _drop_invalid(data, tuple(exc.errors()[0]["loc"])):
                    return cls()


def _drop_invalid(data: dict[str, Any], loc: tuple[int | str, ...]) -> bool:
    """Delete the outermost list item (or mapping entry) enclosing `loc`."""
    container: Any = data
    for depth, key in enumerate(loc):
        try:
            value = container[key]
        except (KeyError, IndexError, TypeError):
            break
        if isinstance(container, list) or depth == len(loc) - 1:
            del container[key]
            return True
        container = value
    if loc and loc[0] in data:
        del data[loc[0]]
        return True
    return False


def has_maker_codes(result: Mapping[str, Any] | None) -> bool:
    """True if any maker in a raw result carries a non-empty code list."""
    if not isinstance(result, Mapping):
        return False
    maker_cds = result.get("maker_cds")
    if not isinstance(maker_cds, Mapping):
        return False
    return any(isinstance(codes, list) and codes for codes in maker_cds.values())


def _pick(result: Mapping[str, Any], name: str, kind: type, default: Any) -> Any:
    value = result.get(name)
    return value if isinstance(value, kind) else default


class ExportRequest(BaseModel):
    """JSON body of the export stream endpoint.

    Tables, codes and flags are forwarded as the analyze phase returned them;
    the backend owns their validation.
    """

    center_id: str = Field(..., min_length=1)
    center_name: str = ""
    center_month: str = ""
    maker_data: dict[str, Any] = Field(default_factory=dict)
    maker_cds: dict[str, Any] = Field(default_factory=dict)
    flags: list[Any] = Field(default_factory=list)
    extraction_sheet_id: str | None = None
    output_folder_id: str | None = None

    @classmethod
    def from_result(cls, center_id: str, result: Mapping[str, Any]) -> ExportRequest:
        return cls(
            center_id=center_id,
            center_name=_pick(result, "center_name", str, ""),
            center_month=_pick(result, "center_month", str, ""),
            maker_data=_pick(result, "maker_data", dict, {}),
            maker_cds=_pick(result, "maker_cds", dict, {}),
            flags=_pick(result, "flags", list, []),
            extraction_sheet_id=_pick(result, "extraction_sheet_id", str, None),
            output_folder_id=_pick(result, "output_folder_id", str, None),
        )


class CenterSummary(BaseModel):
    id: str
    display_name: str = Field("", alias="displayName")

    model_config = ConfigDict(populate_by_name=True)


class CenterListResponse(BaseModel):
    centers: list[CenterSummary] = Field(default_factory=list)
