from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Dict, List, Tuple

from .schema import DEFAULT_DOC_TYPE, DOC_TYPE_ALIASES, EXPORT_COLUMNS
from .utils import canonical_header

# Decoder output before normalization: canonical header -> raw cell value.
RawRow = Dict[str, Any]


class TableFormat(StrEnum):
    DELIMITED = "delimited"
    SPREADSHEET = "spreadsheet"


class RecordKind(StrEnum):
    WEB = "web"
    ACCOUNTING = "accounting"
    RECONCILIATION = "reconciliation"


class DocType(StrEnum):
    INVOICE = "Invoice"
    SALE_RECEIPT = "Sale Receipts"
    CREDIT_MEMO = "Credit Memo"
    ESTIMATE = "Estimate"

    @classmethod
    def parse(cls, value: object) -> "DocType":
        """Resolve free text to a DocType, 示例："sales receipt" -> SALE_RECEIPT; unknown -> INVOICE."""
        resolved = DOC_TYPE_ALIASES.get(canonical_header(value), DEFAULT_DOC_TYPE)
        return cls(resolved)


@dataclass(frozen=True)
class WebRecord:
    """One row of the WEB sales export."""

    doc_number: str
    sku: str
    product_name: str
    qty: int


@dataclass(frozen=True)
class AccountingRecord:
    """One row of the accounting (QBO) sales-document export."""

    id: str
    date: str
    doc_type: DocType
    doc_number: str
    customer: str
    sku: str
    product_label: str
    description: str
    qty: int
    ship_to: str


def strip_category(label: str) -> str:
    """Drop a leading "category:" segment, 示例："Mice:Wireless Mouse" -> "Wireless Mouse"."""
    parts = label.split(":")
    if len(parts) > 1:
        return ":".join(parts[1:]).strip()
    return label


@dataclass(frozen=True)
class ReconciliationRecord:
    """Matched accounting/web pair; field order is the export column order."""

    sku: str
    web_product_name: str
    accounting_product_name: str
    accounting_description: str

    @classmethod
    def from_match(cls, accounting: AccountingRecord, web: WebRecord) -> "ReconciliationRecord":
        return cls(
            sku=accounting.sku,
            web_product_name=web.product_name,
            accounting_product_name=strip_category(accounting.product_label),
            accounting_description=accounting.description,
        )

    def to_row(self) -> Dict[str, str]:
        return {label: getattr(self, name) for name, label in EXPORT_COLUMNS.items()}


@dataclass(frozen=True)
class MalformedRow:
    """Delimited-text record skipped because its field count did not match the header."""

    line: int
    expected: int
    found: int


@dataclass(frozen=True)
class FileSummary:
    file_name: str
    row_count: int
    headers: Tuple[str, ...]
    preview: Tuple[Dict[str, Any], ...] = ()
    skipped_rows: Tuple[MalformedRow, ...] = ()


@dataclass
class DecodedTable:
    rows: List[RawRow]
    summary: FileSummary
