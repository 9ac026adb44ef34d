from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .errors import UnsupportedFormat
from .exporter import export_csv, export_workbook
from .models import DecodedTable, TableFormat
from .parsers import parse_delimited, parse_spreadsheet
from .progress import ProgressCallback
from .schema import (
    DECODE_CHUNK_SIZE,
    DEFAULT_ENCODING,
    DELIMITED_SUFFIXES,
    LEGACY_SPREADSHEET_SUFFIXES,
    PREVIEW_ROWS,
    SPREADSHEET_SUFFIXES,
)
from .utils import CancelSignal


def detect_format(file_name: str) -> TableFormat:
    """Pick the decoder from the file extension, 示例："qbo.xlsx" -> SPREADSHEET."""
    suffix = Path(file_name).suffix.lower()
    if suffix in DELIMITED_SUFFIXES:
        return TableFormat.DELIMITED
    if suffix in SPREADSHEET_SUFFIXES:
        return TableFormat.SPREADSHEET
    supported = ", ".join(DELIMITED_SUFFIXES + SPREADSHEET_SUFFIXES)
    raise UnsupportedFormat(file_name, f"unsupported file type '{suffix or '<none>'}' (expected one of {supported})")


@dataclass(frozen=True)
class SourceFile:
    """A user-selected extract: display name plus raw bytes."""

    name: str
    data: bytes
    fmt: Optional[TableFormat] = None

    @classmethod
    def from_path(cls, path: Path, fmt: Optional[TableFormat] = None) -> "SourceFile":
        if not path.exists():
            raise FileNotFoundError(f"source file not found: {path}")
        return cls(name=path.name, data=path.read_bytes(), fmt=fmt)

    def resolved_format(self) -> TableFormat:
        return self.fmt or detect_format(self.name)


async def decode_table(
    data: bytes,
    fmt: TableFormat,
    *,
    name: str,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = DECODE_CHUNK_SIZE,
    cancel: Optional[CancelSignal] = None,
    stage: str = "decoding",
    delimiter: Optional[str] = None,
    encoding: str = DEFAULT_ENCODING,
    preview_rows: int = PREVIEW_ROWS,
) -> DecodedTable:
    if fmt == TableFormat.SPREADSHEET:
        return await parse_spreadsheet(
            data,
            name=name,
            on_progress=on_progress,
            chunk_size=chunk_size,
            cancel=cancel,
            stage=stage,
            preview_rows=preview_rows,
        )
    return await parse_delimited(
        data,
        name=name,
        delimiter=delimiter,
        encoding=encoding,
        on_progress=on_progress,
        chunk_size=chunk_size,
        cancel=cancel,
        stage=stage,
        preview_rows=preview_rows,
    )


def write_export(path: Path, records: Iterable[object]) -> Path:
    """Write records as .csv or .xlsx depending on the target suffix."""
    suffix = path.suffix.lower()
    if suffix in SPREADSHEET_SUFFIXES and suffix not in LEGACY_SPREADSHEET_SUFFIXES:
        payload = export_workbook(records)
    elif suffix in DELIMITED_SUFFIXES:
        payload = export_csv(records, delimiter="\t" if suffix == ".tsv" else ",")
    else:
        raise UnsupportedFormat(path.name, f"cannot export to '{suffix or '<none>'}'")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return path
