from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd import XLRDError

from .base import blank_to_empty, build_summary, convert_in_chunks, header_keys, make_row
from ..errors import DecodeError, EmptyDataset, NoSheets
from ..models import DecodedTable, RawRow
from ..progress import ProgressCallback
from ..schema import DECODE_CHUNK_SIZE, LEGACY_SPREADSHEET_SUFFIXES, PREVIEW_ROWS
from ..utils import CancelSignal, cell_text

LOGGER = logging.getLogger(__name__)


def spreadsheet_engine(name: str) -> str:
    """示例："qbo.xls" -> "xlrd", "qbo.xlsx" -> "openpyxl"."""
    if Path(name).suffix.lower() in LEGACY_SPREADSHEET_SUFFIXES:
        return "xlrd"
    return "openpyxl"


def _read_first_sheet(data: bytes, name: str) -> pd.DataFrame:
    """Load only the first worksheet, header row included, with every cell kept as written.

    na_filter=False keeps text such as "NA", "N/A" or "null" instead of turning it into NaN.
    """
    try:
        with pd.ExcelFile(io.BytesIO(data), engine=spreadsheet_engine(name)) as excel:
            if not excel.sheet_names:
                raise NoSheets(name)
            sheet = excel.sheet_names[0]
            try:
                return excel.parse(sheet, header=None, dtype=object, na_filter=False)
            except pd.errors.EmptyDataError as exc:
                raise EmptyDataset(name, f"first sheet '{sheet}' is empty") from exc
    except (zipfile.BadZipFile, InvalidFileException, XLRDError, KeyError, ValueError, OSError) as exc:
        raise DecodeError(name, f"not a readable Excel workbook ({exc})") from exc


def _is_blank(values: Sequence[Any]) -> bool:
    return all(value == "" for value in values)


async def parse_spreadsheet(
    data: bytes,
    *,
    name: str,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = DECODE_CHUNK_SIZE,
    cancel: Optional[CancelSignal] = None,
    stage: str = "decoding",
    preview_rows: int = PREVIEW_ROWS,
) -> DecodedTable:
    frame = _read_first_sheet(data, name)
    grid: List[List[Any]] = [
        [blank_to_empty(value) for value in values] for values in frame.itertuples(index=False, name=None)
    ]
    grid = [values for values in grid if not _is_blank(values)]
    if not grid:
        raise EmptyDataset(name, "first sheet is empty")

    # Headers are taken as written; pandas would rename duplicates to "SKU.1".
    headers = [cell_text(value) for value in grid[0]]
    records = grid[1:]
    if not records:
        raise EmptyDataset(name)
    keys = header_keys(headers)

    def convert(values: Sequence[Any]) -> Optional[RawRow]:
        return make_row(keys, values)

    rows = await convert_in_chunks(
        records,
        convert,
        chunk_size=chunk_size,
        on_progress=on_progress,
        cancel=cancel,
        stage=stage,
    )
    summary = build_summary(
        name=name,
        headers=headers,
        records=records,
        row_count=len(rows),
        preview_rows=preview_rows,
    )
    LOGGER.info("%s: decoded %d rows from first sheet", name, len(rows))
    return DecodedTable(rows=rows, summary=summary)
