from __future__ import annotations

import asyncio
import math
import re
import unicodedata
from datetime import date, datetime
from typing import Iterator, Optional, Protocol, Tuple

import pandas as pd

from .errors import ReconciliationCancelled

_HEADER_STRIP = re.compile(r"[^a-z0-9]")
_SKU_STRIP = re.compile(r"[^A-Z0-9-]")


class CancelSignal(Protocol):
    """Anything exposing ``is_set()``, e.g. asyncio.Event or threading.Event."""

    def is_set(self) -> bool: ...


def normalize_text(value: object) -> str:
    """Strip and NFKC-normalize text, 示例："ＳＫＵ " -> "SKU"."""
    if value is None:
        return ""
    text = unicodedata.normalize("NFKC", str(value))
    return text.strip()


def canonical_header(value: object) -> str:
    """Collapse a header to its lookup key, 示例："Doc Number" / "doc_number" / "DocNumber#" -> "docnumber"."""
    return _HEADER_STRIP.sub("", normalize_text(value).lower())


def normalize_sku(value: object) -> str:
    """Upper-case and keep only A-Z, 0-9 and '-', 示例：" wm_101 " -> "WM101"."""
    return _SKU_STRIP.sub("", cell_text(value).upper())


def cell_text(value: object) -> str:
    """Render a decoded cell as text; empty and NaN cells become ""."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if pd.isna(value):
            return ""
        if value.hour or value.minute or value.second:
            return value.strftime("%Y-%m-%d %H:%M:%S")
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    return str(value)


def to_int(value: object) -> int:
    """Best-effort integer coercion, 示例："12" -> 12, "3.9" -> 3, "abc" -> 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    text = cell_text(value).strip()
    if not text:
        return 0
    try:
        number = float(text)
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def percent(done: int, total: int) -> int:
    """Round-half-up percentage, matching how the UI has always displayed progress."""
    if total <= 0:
        return 100
    return (done * 200 + total) // (total * 2)


def chunk_bounds(total: int, size: int) -> Iterator[Tuple[int, int]]:
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, total, size):
        yield start, min(start + size, total)


def ensure_not_cancelled(cancel: Optional[CancelSignal], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise ReconciliationCancelled(stage)


async def checkpoint(cancel: Optional[CancelSignal], stage: str) -> None:
    """Yield to the event loop between chunks, then honour a pending cancel."""
    await asyncio.sleep(0)
    ensure_not_cancelled(cancel, stage)
