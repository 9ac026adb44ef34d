from __future__ import annotations

# Header aliases are matched against canonical keys (lower-case, alphanumeric only).
# Order matters: the first alias present in a row wins.
WEB_ALIASES: dict[str, tuple[str, ...]] = {
    "doc_number": ("docnumber", "no", "documentno", "invoiceno", "salesorderno"),
    "sku": ("sku", "item", "productsku", "itemcode", "productid"),
    "product_name": ("productname", "name", "itemname", "description"),
    "qty": ("qty", "quantity"),
}

ACCOUNTING_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date",),
    "doc_type": ("type", "transactiontype"),
    "doc_number": ("docnumber", "no", "documentno", "num"),
    "customer": ("customer", "client", "billtoname", "name"),
    "sku": ("sku", "item", "productsku", "itemcode", "productid", "product"),
    "product_label": ("productservicename", "productservice", "product", "item"),
    "description": ("salesdescription", "description", "memo"),
    "qty": ("qty", "quantity"),
    "ship_to": ("shippingto", "shipto"),
}

# 导出文件再次导入时使用，示例：表头 "qboName" -> accounting_product_name
RECONCILIATION_ALIASES: dict[str, tuple[str, ...]] = {
    "sku": ("sku",),
    "web_product_name": ("webname", "webproductname"),
    "accounting_product_name": ("qboname", "accountingproductname"),
    "accounting_description": ("qbodescription", "accountingdescription"),
}

# Export labels follow ReconciliationRecord field declaration order.
EXPORT_COLUMNS: dict[str, str] = {
    "sku": "sku",
    "web_product_name": "webName",
    "accounting_product_name": "qboName",
    "accounting_description": "qboDescription",
}

# Canonical doc-type text -> DocType value.
DOC_TYPE_ALIASES: dict[str, str] = {
    "invoice": "Invoice",
    "salereceipt": "Sale Receipts",
    "salereceipts": "Sale Receipts",
    "salesreceipt": "Sale Receipts",
    "salesreceipts": "Sale Receipts",
    "creditmemo": "Credit Memo",
    "creditmemos": "Credit Memo",
    "estimate": "Estimate",
    "estimates": "Estimate",
}
DEFAULT_DOC_TYPE = "Invoice"

DELIMITED_SUFFIXES = (".csv", ".txt", ".tsv")
SPREADSHEET_SUFFIXES = (".xlsx", ".xlsm", ".xls")
# Legacy binary workbooks: readable through xlrd, never written.
LEGACY_SPREADSHEET_SUFFIXES = (".xls",)
SNIFF_DELIMITERS = ",;\t"
DEFAULT_ENCODING = "utf-8-sig"

DECODE_CHUNK_SIZE = 5000
INDEX_CHUNK_SIZE = 10000
JOIN_CHUNK_SIZE = 500
PREVIEW_ROWS = 5

EXPORT_SHEET_NAME = "Reconciliation"
EXPORT_FILE_PREFIX = "reconciliation_export"
