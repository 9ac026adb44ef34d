from __future__ import annotations

import csv
import io
import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from .base import build_summary, header_keys, make_row
from ..errors import DecodeError, EmptyDataset
from ..models import DecodedTable, MalformedRow, RawRow
from ..progress import ProgressCallback
from ..schema import DECODE_CHUNK_SIZE, DEFAULT_ENCODING, PREVIEW_ROWS, SNIFF_DELIMITERS
from ..utils import CancelSignal, checkpoint, ensure_not_cancelled, percent

LOGGER = logging.getLogger(__name__)

NumberedRecord = Tuple[int, List[str]]


def sniff_delimiter(sample: str) -> str:
    """Detect a delimiter among comma/semicolon/tab, defaulting to comma when uncertain."""
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS)
        return dialect.delimiter
    except csv.Error:
        counts = {delimiter: sample.count(delimiter) for delimiter in SNIFF_DELIMITERS}
        best = max(counts, key=lambda delimiter: counts[delimiter])
        return best if counts[best] else ","


class _LineCounter:
    """Feeds physical lines to csv.reader and counts how many it has consumed."""

    def __init__(self, lines: Sequence[str]) -> None:
        self._lines = iter(lines)
        self.consumed = 0

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        line = next(self._lines)
        self.consumed += 1
        return line


def _read_batch(reader, size: int) -> List[NumberedRecord]:
    # csv handles quoted delimiters, embedded newlines and doubled quotes ("" -> ").
    batch: List[NumberedRecord] = []
    while len(batch) < size:
        fields = next(reader, None)
        if fields is None:
            break
        if not fields:
            continue  # blank line
        batch.append((reader.line_num, fields))
    return batch


async def parse_delimited(
    data: bytes,
    *,
    name: str,
    delimiter: Optional[str] = None,
    encoding: str = DEFAULT_ENCODING,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = DECODE_CHUNK_SIZE,
    cancel: Optional[CancelSignal] = None,
    stage: str = "decoding",
    preview_rows: int = PREVIEW_ROWS,
) -> DecodedTable:
    """Tokenize and convert ``chunk_size`` records at a time, yielding to the event loop between chunks.

    Progress is the share of physical lines after the header consumed so far.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk size must be positive, got {chunk_size}")
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise DecodeError(name, f"cannot decode text as {encoding}") from exc

    if delimiter is None:
        delimiter = sniff_delimiter(text[:4096])

    lines = io.StringIO(text, newline="").readlines()
    counter = _LineCounter(lines)
    reader = csv.reader(counter, delimiter=delimiter)

    try:
        first = _read_batch(reader, 1)
    except csv.Error as exc:
        raise DecodeError(name, f"unreadable delimited text ({exc})") from exc
    if not first:
        raise EmptyDataset(name, "file has no header row")
    header = first[0][1]

    keys = header_keys(header)
    width = len(header)
    body_start = counter.consumed
    body_lines = len(lines) - body_start

    rows: List[RawRow] = []
    well_formed: List[List[str]] = []
    skipped: List[MalformedRow] = []
    seen = 0
    last_reported: Optional[int] = None

    ensure_not_cancelled(cancel, stage)
    while True:
        try:
            batch = _read_batch(reader, chunk_size)
        except csv.Error as exc:
            raise DecodeError(name, f"unreadable delimited text ({exc})") from exc
        if not batch and not seen:
            raise EmptyDataset(name)
        seen += len(batch)

        for line, fields in batch:
            if len(fields) != width:
                LOGGER.warning(
                    "%s line %d: expected %d fields, found %d; row skipped", name, line, width, len(fields)
                )
                skipped.append(MalformedRow(line=line, expected=width, found=len(fields)))
                continue
            rows.append(make_row(keys, fields))
            if len(well_formed) < preview_rows:
                well_formed.append(fields)

        pct = percent(counter.consumed - body_start, body_lines)
        if on_progress is not None and (batch or pct != last_reported):
            on_progress(pct)
        last_reported = pct
        if len(batch) < chunk_size:
            break
        await checkpoint(cancel, stage)

    if not rows:
        raise EmptyDataset(name, "no well-formed data rows")

    summary = build_summary(
        name=name,
        headers=header,
        records=well_formed,
        row_count=len(rows),
        preview_rows=preview_rows,
        skipped=skipped,
    )
    LOGGER.info("%s: decoded %d rows (%d malformed skipped)", name, len(rows), len(skipped))
    return DecodedTable(rows=rows, summary=summary)
