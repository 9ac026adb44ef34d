"""Exceptions raised by the reconciliation engine."""
from __future__ import annotations


class ReconcileError(Exception):
    """Base class for every error the engine raises on purpose."""


class DecodeError(ReconcileError):
    """A source file could not be turned into rows; fatal for the whole run."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class EmptyDataset(DecodeError):
    def __init__(self, source: str, message: str = "file has no data rows") -> None:
        super().__init__(source, message)


class NoSheets(DecodeError):
    def __init__(self, source: str, message: str = "workbook contains no sheets") -> None:
        super().__init__(source, message)


class UnsupportedFormat(DecodeError):
    pass


class EmptyExport(ReconcileError):
    """Raised when asked to export zero records."""

    def __init__(self, message: str = "nothing to export") -> None:
        super().__init__(message)


class ReconciliationCancelled(ReconcileError):
    def __init__(self, stage: str) -> None:
        super().__init__(f"reconciliation cancelled during {stage}")
        self.stage = stage
