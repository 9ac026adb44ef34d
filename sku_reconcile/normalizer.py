"""Map decoder rows with arbitrary headers onto typed records.

Each target field is resolved through the alias tables in ``schema``: the first
alias present in the row wins, even when its cell is empty. Fields with no
matching column default to "" (or 0 for quantities) instead of failing.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence, Union

from .models import AccountingRecord, DocType, RawRow, ReconciliationRecord, RecordKind, WebRecord
from .schema import ACCOUNTING_ALIASES, RECONCILIATION_ALIASES, WEB_ALIASES
from .utils import cell_text, normalize_sku, to_int

Record = Union[WebRecord, AccountingRecord, ReconciliationRecord]


def find_value(row: RawRow, aliases: Sequence[str]) -> Any:
    for alias in aliases:
        value = row.get(alias)
        if value is not None:
            return value
    return ""


def resolve_fields(row: RawRow, table: Mapping[str, Sequence[str]]) -> Dict[str, Any]:
    return {field_name: find_value(row, aliases) for field_name, aliases in table.items()}


def normalize_web_row(row: RawRow) -> WebRecord:
    values = resolve_fields(row, WEB_ALIASES)
    return WebRecord(
        doc_number=cell_text(values["doc_number"]),
        sku=normalize_sku(values["sku"]),
        product_name=cell_text(values["product_name"]),
        qty=to_int(values["qty"]),
    )


def normalize_accounting_row(row: RawRow, index: int) -> AccountingRecord:
    values = resolve_fields(row, ACCOUNTING_ALIASES)
    return AccountingRecord(
        id=f"row-{index}",
        date=cell_text(values["date"]),
        doc_type=DocType.parse(values["doc_type"]),
        doc_number=cell_text(values["doc_number"]),
        customer=cell_text(values["customer"]),
        sku=normalize_sku(values["sku"]),
        product_label=cell_text(values["product_label"]),
        description=cell_text(values["description"]),
        qty=to_int(values["qty"]),
        ship_to=cell_text(values["ship_to"]),
    )


def normalize_reconciliation_row(row: RawRow) -> ReconciliationRecord:
    """Rebuild a ReconciliationRecord from a previously exported file."""
    values = resolve_fields(row, RECONCILIATION_ALIASES)
    return ReconciliationRecord(
        sku=normalize_sku(values["sku"]),
        web_product_name=cell_text(values["web_product_name"]),
        accounting_product_name=cell_text(values["accounting_product_name"]),
        accounting_description=cell_text(values["accounting_description"]),
    )


def normalize_rows(rows: Sequence[RawRow], kind: RecordKind) -> List[Record]:
    if kind == RecordKind.WEB:
        return [normalize_web_row(row) for row in rows]
    if kind == RecordKind.ACCOUNTING:
        return [normalize_accounting_row(row, index) for index, row in enumerate(rows)]
    if kind == RecordKind.RECONCILIATION:
        return [normalize_reconciliation_row(row) for row in rows]
    raise ValueError(f"unknown record kind: {kind}")
