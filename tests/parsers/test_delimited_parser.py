from __future__ import annotations

import asyncio
import logging

import pytest

from sku_reconcile.errors import DecodeError, EmptyDataset, ReconciliationCancelled
from sku_reconcile.parsers.delimited import parse_delimited, sniff_delimiter


def _parse(content: str | bytes, **kwargs):
    data = content.encode("utf-8") if isinstance(content, str) else content
    kwargs.setdefault("name", "web.csv")
    return asyncio.run(parse_delimited(data, **kwargs))


def test_quoted_fields_keep_delimiters_newlines_and_quotes() -> None:
    content = 'SKU,Product Name,Qty\nWM-101,"Mouse, ""Pro""",2\nKB-1,"Key\nboard",3\n'
    table = _parse(content, delimiter=",")

    assert table.rows == [
        {"sku": "WM-101", "productname": 'Mouse, "Pro"', "qty": "2"},
        {"sku": "KB-1", "productname": "Key\nboard", "qty": "3"},
    ]
    assert table.summary.row_count == 2
    assert table.summary.headers == ("SKU", "Product Name", "Qty")


def test_malformed_row_is_skipped_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    content = "sku,name,qty\nA-1,Alpha,1\nB-2,Beta\nC-3,Gamma,3\n"
    with caplog.at_level(logging.WARNING, logger="sku_reconcile.parsers.delimited"):
        table = _parse(content, delimiter=",")

    assert [row["sku"] for row in table.rows] == ["A-1", "C-3"]
    assert table.summary.row_count == 2
    skipped = table.summary.skipped_rows
    assert len(skipped) == 1
    assert (skipped[0].line, skipped[0].expected, skipped[0].found) == (3, 3, 2)
    assert "line 3" in caplog.text


def test_row_with_extra_fields_is_also_malformed() -> None:
    table = _parse("sku,name\nA-1,Alpha\nB-2,Beta,extra\n", delimiter=",")
    assert [row["sku"] for row in table.rows] == ["A-1"]
    assert table.summary.skipped_rows[0].found == 3


def test_blank_lines_are_ignored() -> None:
    table = _parse("sku,name\n\nA-1,Alpha\n\n", delimiter=",")
    assert table.rows == [{"sku": "A-1", "name": "Alpha"}]
    assert table.summary.skipped_rows == ()


def test_bom_and_semicolon_are_detected() -> None:
    data = "\ufeffSKU;Name\nX-1;Foo\nX-2;Bar\n".encode("utf-8")
    table = _parse(data)
    assert table.rows[0] == {"sku": "X-1", "name": "Foo"}
    assert table.summary.headers == ("SKU", "Name")


def test_sniff_delimiter_defaults_to_comma() -> None:
    assert sniff_delimiter("sku\nA-1\n") == ","
    assert sniff_delimiter("sku\tname\nA-1\tAlpha\nB-2\tBeta\n") == "\t"


def test_later_duplicate_header_wins() -> None:
    table = _parse("Name,name\nfirst,second\n", delimiter=",")
    assert table.rows == [{"name": "second"}]


def test_progress_reported_per_chunk() -> None:
    calls: list[int] = []
    content = "sku\n" + "".join(f"S-{i}\n" for i in range(5))
    _parse(content, delimiter=",", chunk_size=2, on_progress=calls.append)
    assert calls == [40, 80, 100]


def test_preview_uses_original_headers() -> None:
    content = "Doc Number,SKU\n1,A\n2,B\n3,C\n"
    table = _parse(content, delimiter=",", preview_rows=2)
    assert table.summary.preview == ({"Doc Number": "1", "SKU": "A"}, {"Doc Number": "2", "SKU": "B"})


def test_header_only_file_is_empty_dataset() -> None:
    with pytest.raises(EmptyDataset) as excinfo:
        _parse("sku,name\n", name="qbo.csv")
    assert excinfo.value.source == "qbo.csv"


def test_empty_file_is_empty_dataset() -> None:
    with pytest.raises(EmptyDataset):
        _parse(b"")


def test_all_rows_malformed_is_empty_dataset() -> None:
    with pytest.raises(EmptyDataset):
        _parse("sku,name,qty\nA-1\nB-2\n", delimiter=",")


def test_undecodable_bytes_raise_decode_error() -> None:
    with pytest.raises(DecodeError) as excinfo:
        _parse(b"sku\n\xff\xfe\n", name="broken.csv")
    assert excinfo.value.source == "broken.csv"


def test_cancel_signal_stops_decoding() -> None:
    class _Cancelled:
        def is_set(self) -> bool:
            return True

    with pytest.raises(ReconciliationCancelled):
        _parse("sku\nA-1\n", delimiter=",", cancel=_Cancelled(), stage="decodingWeb")


def test_trailing_blank_lines_still_finish_at_100() -> None:
    calls: list[int] = []
    _parse("sku\nA-1\nB-2\n\n\n", delimiter=",", chunk_size=2, on_progress=calls.append)
    assert calls[-1] == 100
    assert calls == sorted(calls)


def test_tokenizing_yields_to_other_tasks_between_chunks() -> None:
    data = "sku\nA-1\nB-2\nC-3\n".encode("utf-8")
    events: list[object] = []

    async def ticker() -> None:
        for _ in range(3):
            events.append("tick")
            await asyncio.sleep(0)

    async def scenario() -> None:
        task = asyncio.create_task(ticker())
        await parse_delimited(data, name="web.csv", delimiter=",", chunk_size=1, on_progress=events.append)
        await task

    asyncio.run(scenario())
    assert events[0] == 33
    assert events.index("tick") < events.index(100)
