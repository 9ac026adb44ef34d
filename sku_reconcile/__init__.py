"""Core package for WEB vs QBO sales-export SKU reconciliation."""

from .errors import DecodeError, EmptyDataset, EmptyExport, NoSheets, ReconcileError, ReconciliationCancelled
from .models import AccountingRecord, DocType, FileSummary, ReconciliationRecord, WebRecord
from .pipeline import ReconcileOptions, ReconcileResult, reconcile, reconcile_paths
from .progress import Stage

__all__ = [
    "AccountingRecord",
    "DecodeError",
    "DocType",
    "EmptyDataset",
    "EmptyExport",
    "FileSummary",
    "NoSheets",
    "ReconcileError",
    "ReconcileOptions",
    "ReconcileResult",
    "ReconciliationCancelled",
    "ReconciliationRecord",
    "Stage",
    "WebRecord",
    "reconcile",
    "reconcile_paths",
]
