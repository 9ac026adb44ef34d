"""Serialize reconciliation output for download."""
from __future__ import annotations

import dataclasses
import io
from collections.abc import Mapping
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .errors import EmptyExport
from .schema import DEFAULT_ENCODING, EXPORT_FILE_PREFIX, EXPORT_SHEET_NAME


def _as_row(record: object) -> Dict[str, Any]:
    to_row = getattr(record, "to_row", None)
    if callable(to_row):
        return dict(to_row())
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    if isinstance(record, Mapping):
        return dict(record)
    raise TypeError(f"cannot export record of type {type(record).__name__}")


def build_export_frame(records: Iterable[object]) -> pd.DataFrame:
    """Flatten records into a DataFrame whose columns follow the first record's field order."""
    rows: List[Dict[str, Any]] = [_as_row(record) for record in records]
    if not rows:
        raise EmptyExport()
    columns = list(rows[0].keys())
    return pd.DataFrame(rows, columns=columns)


def export_csv(records: Iterable[object], *, delimiter: str = ",", encoding: str = DEFAULT_ENCODING) -> bytes:
    """Delimited text; fields holding the delimiter, a quote or a newline are quoted with quotes doubled."""
    frame = build_export_frame(records)
    text = frame.to_csv(index=False, sep=delimiter, lineterminator="\n", na_rep="")
    return text.encode(encoding)


def export_workbook(records: Iterable[object], *, sheet_name: str = EXPORT_SHEET_NAME) -> bytes:
    frame = build_export_frame(records)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def export_filename(suffix: str = ".xlsx", today: Optional[date] = None) -> str:
    """示例：export_filename(".csv", date(2025, 1, 31)) -> "reconciliation_export_2025-01-31.csv"."""
    today = today or date.today()
    return f"{EXPORT_FILE_PREFIX}_{today.isoformat()}{suffix}"
