from __future__ import annotations

from .delimited import parse_delimited, sniff_delimiter
from .spreadsheet import parse_spreadsheet

__all__ = [
    "parse_delimited",
    "parse_spreadsheet",
    "sniff_delimiter",
]
