from __future__ import annotations

import asyncio
import threading
from datetime import datetime

import pytest

from sku_reconcile.errors import ReconciliationCancelled
from sku_reconcile.utils import (
    canonical_header,
    cell_text,
    checkpoint,
    chunk_bounds,
    normalize_sku,
    normalize_text,
    percent,
    to_int,
)


@pytest.mark.parametrize("raw", ["Doc Number", "doc_number", "DocNumber#", "  DOC-NUMBER  "])
def test_canonical_header_collapses_variants(raw: str) -> None:
    assert canonical_header(raw) == "docnumber"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("ＳＫＵ ", "SKU"),
        ("  Wireless Mouse", "Wireless Mouse"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_text_handles_nfkc_and_whitespace(raw: str | None, expected: str) -> None:
    assert normalize_text(raw) == expected


@pytest.mark.parametrize("raw", ["wm-101", "WM-101", " Wm-101 ", "wm-101!", "WM-101"])
def test_normalize_sku_is_case_insensitive_and_idempotent(raw: str) -> None:
    once = normalize_sku(raw)
    assert once == "WM-101"
    assert normalize_sku(once) == once


def test_normalize_sku_drops_everything_outside_the_allowed_set() -> None:
    assert normalize_sku(" wm_101 ") == "WM101"
    assert normalize_sku("ab/c 9") == "ABC9"
    assert normalize_sku(12345.0) == "12345"
    assert normalize_sku(None) == ""


def test_cell_text_renders_spreadsheet_values() -> None:
    assert cell_text(12345.0) == "12345"
    assert cell_text(2.5) == "2.5"
    assert cell_text(float("nan")) == ""
    assert cell_text(None) == ""
    assert cell_text(datetime(2025, 1, 2)) == "2025-01-02"
    assert cell_text(datetime(2025, 1, 2, 3, 4, 5)) == "2025-01-02 03:04:05"
    assert cell_text(" keep spaces ") == " keep spaces "


def test_to_int_is_best_effort() -> None:
    assert to_int("12") == 12
    assert to_int(" 7 ") == 7
    assert to_int("3.9") == 3
    assert to_int(4.0) == 4
    assert to_int("abc") == 0
    assert to_int("") == 0
    assert to_int(None) == 0
    assert to_int("nan") == 0
    assert to_int("inf") == 0


def test_percent_rounds_half_up() -> None:
    assert percent(1, 3) == 33
    assert percent(1, 2) == 50
    assert percent(1, 8) == 13
    assert percent(10001, 10001) == 100
    assert percent(0, 0) == 100


def test_chunk_bounds_covers_every_index_once() -> None:
    bounds = list(chunk_bounds(10001, 500))
    assert len(bounds) == 21
    assert bounds[0] == (0, 500)
    assert bounds[-1] == (10000, 10001)
    with pytest.raises(ValueError):
        list(chunk_bounds(10, 0))


def test_checkpoint_honours_threading_event() -> None:
    cancel = threading.Event()
    asyncio.run(checkpoint(cancel, "joining"))

    cancel.set()
    with pytest.raises(ReconciliationCancelled) as excinfo:
        asyncio.run(checkpoint(cancel, "joining"))
    assert excinfo.value.stage == "joining"
