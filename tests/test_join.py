from __future__ import annotations

import asyncio

import pytest

from sku_reconcile.errors import ReconciliationCancelled
from sku_reconcile.index import build_sku_index
from sku_reconcile.join import join_records
from sku_reconcile.models import AccountingRecord, DocType, ReconciliationRecord, WebRecord, strip_category


def _acct(index: int, sku: str, label: str = "", description: str = "") -> AccountingRecord:
    return AccountingRecord(
        id=f"row-{index}",
        date="2025-01-02",
        doc_type=DocType.INVOICE,
        doc_number=str(1000 + index),
        customer="Acme",
        sku=sku,
        product_label=label,
        description=description,
        qty=1,
        ship_to="",
    )


def _index(*records: WebRecord):
    return asyncio.run(build_sku_index(list(records)))


def _join(accounting, index, **kwargs):
    return asyncio.run(join_records(accounting, index, **kwargs))


def test_matching_sku_produces_reconciliation_record() -> None:
    index = _index(WebRecord(doc_number="SO-1", sku="WM-101", product_name="Wireless Mouse", qty=2))
    accounting = [
        _acct(0, "WM-101", "Mice:Wireless Mouse", "2.4GHz"),
        _acct(1, "ZZ-9", "Other", "ignored"),
    ]
    assert _join(accounting, index) == [
        ReconciliationRecord(
            sku="WM-101",
            web_product_name="Wireless Mouse",
            accounting_product_name="Wireless Mouse",
            accounting_description="2.4GHz",
        )
    ]


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Mice:Wireless Mouse", "Wireless Mouse"),
        ("A:B:C", "B:C"),
        ("Plain", "Plain"),
        ("Cat: Spaced ", "Spaced"),
        (":Leading", "Leading"),
        ("", ""),
    ],
)
def test_strip_category(label: str, expected: str) -> None:
    assert strip_category(label) == expected


def test_output_keeps_accounting_order_and_never_exceeds_input() -> None:
    index = _index(
        WebRecord(doc_number="", sku="A", product_name="a", qty=1),
        WebRecord(doc_number="", sku="B", product_name="b", qty=1),
    )
    accounting = [_acct(0, "B"), _acct(1, ""), _acct(2, "A"), _acct(3, "B"), _acct(4, "C")]
    result = _join(accounting, index)

    assert [record.sku for record in result] == ["B", "A", "B"]
    assert len(result) <= len(accounting)
    assert all(record.sku in index for record in result)


def test_large_join_reports_21_monotonic_steps() -> None:
    index = _index(WebRecord(doc_number="", sku="S-1", product_name="one", qty=1))
    accounting = [_acct(i, "S-1" if i % 2 else "S-0") for i in range(10001)]
    calls: list[int] = []

    result = _join(accounting, index, chunk_size=500, on_progress=calls.append)

    assert len(result) == 5000
    assert len(calls) == 21
    assert calls[0] > 0
    assert calls == sorted(calls)
    assert calls[-1] == 100


def test_empty_accounting_returns_nothing_without_progress() -> None:
    calls: list[int] = []
    index = _index(WebRecord(doc_number="", sku="A", product_name="a", qty=1))
    assert _join([], index, on_progress=calls.append) == []
    assert calls == []


def test_empty_index_matches_nothing() -> None:
    assert _join([_acct(0, "A")], _index()) == []


def test_cancel_between_chunks() -> None:
    class _CancelAfterFirstChunk:
        def __init__(self) -> None:
            self.calls: list[int] = []

        def is_set(self) -> bool:
            return bool(self.calls)

    cancel = _CancelAfterFirstChunk()
    index = _index(WebRecord(doc_number="", sku="A", product_name="a", qty=1))
    accounting = [_acct(i, "A") for i in range(10)]

    with pytest.raises(ReconciliationCancelled) as excinfo:
        _join(accounting, index, chunk_size=5, on_progress=cancel.calls.append, cancel=cancel)
    assert excinfo.value.stage == "joining"
    assert cancel.calls == [50]
