from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import pandas as pd

from ..models import FileSummary, MalformedRow, RawRow
from ..progress import ProgressCallback
from ..utils import CancelSignal, canonical_header, checkpoint, chunk_bounds, ensure_not_cancelled, percent

T = TypeVar("T")


def blank_to_empty(value: Any) -> Any:
    """Empty spreadsheet cells arrive as None/NaN/NaT; surface them as ""."""
    if value is None:
        return ""
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    return value


def header_keys(headers: Sequence[str]) -> List[str]:
    return [canonical_header(header) for header in headers]


def make_row(keys: Sequence[str], values: Sequence[Any]) -> RawRow:
    # Later columns overwrite earlier ones that collapse to the same key.
    row: RawRow = {}
    for key, value in zip(keys, values):
        row[key] = value
    return row


def build_summary(
    *,
    name: str,
    headers: Sequence[str],
    records: Sequence[Sequence[Any]],
    row_count: int,
    preview_rows: int,
    skipped: Sequence[MalformedRow] = (),
) -> FileSummary:
    preview: List[Dict[str, Any]] = []
    for values in records[:preview_rows]:
        preview.append(dict(zip(headers, values)))
    return FileSummary(
        file_name=name,
        row_count=row_count,
        headers=tuple(headers),
        preview=tuple(preview),
        skipped_rows=tuple(skipped),
    )


async def convert_in_chunks(
    items: Sequence[T],
    convert: Callable[[T], Optional[RawRow]],
    *,
    chunk_size: int,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[CancelSignal] = None,
    stage: str = "decoding",
) -> List[RawRow]:
    """Convert items chunk by chunk, yielding to the event loop between chunks.

    ``convert`` returns None for items that should be dropped; they still count
    towards progress so the percentage always ends at 100.
    """
    ensure_not_cancelled(cancel, stage)
    rows: List[RawRow] = []
    total = len(items)
    for start, end in chunk_bounds(total, chunk_size):
        if start:
            await checkpoint(cancel, stage)
        for item in items[start:end]:
            row = convert(item)
            if row is not None:
                rows.append(row)
        if on_progress is not None:
            on_progress(percent(end, total))
    return rows
