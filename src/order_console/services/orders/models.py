"""Input types for the order pipeline phases."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Literal


Phase = Literal["analyze", "export"]


@dataclass(frozen=True, slots=True)
class InputFile:
    """An uploaded file: the reference quote sheet or one OCR source."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path) -> InputFile:
        p = Path(path)
        content_type, _ = mimetypes.guess_type(p.name)
        return cls(
            name=p.name,
            content=p.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    def as_multipart(self) -> tuple[str, bytes, str]:
        return (self.name, self.content, self.content_type)
