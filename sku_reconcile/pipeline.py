from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .index import build_sku_index
from .io_utils import SourceFile, decode_table
from .join import join_records
from .models import AccountingRecord, FileSummary, RecordKind, ReconciliationRecord, WebRecord
from .normalizer import normalize_rows
from .progress import NullSink, ProgressSink, Stage, stage_callback
from .schema import DECODE_CHUNK_SIZE, DEFAULT_ENCODING, INDEX_CHUNK_SIZE, JOIN_CHUNK_SIZE, PREVIEW_ROWS
from .utils import CancelSignal

LOGGER = logging.getLogger(__name__)


@dataclass
class ReconcileOptions:
    decode_chunk_size: int = DECODE_CHUNK_SIZE
    index_chunk_size: int = INDEX_CHUNK_SIZE
    join_chunk_size: int = JOIN_CHUNK_SIZE
    delimiter: Optional[str] = None  # None -> sniff per file
    encoding: str = DEFAULT_ENCODING
    preview_rows: int = PREVIEW_ROWS


@dataclass
class ReconcileResult:
    records: List[ReconciliationRecord]
    web_summary: FileSummary
    accounting_summary: FileSummary
    web_count: int = 0
    accounting_count: int = 0
    indexed: int = 0
    duplicate_skus: int = 0
    notes: List[str] = field(default_factory=list)


async def load_records(
    source: SourceFile,
    kind: RecordKind,
    *,
    stage: Stage,
    sink: ProgressSink,
    options: ReconcileOptions,
    cancel: Optional[CancelSignal] = None,
) -> Tuple[list, FileSummary]:
    """Decode one extract and normalize every row into typed records."""
    table = await decode_table(
        source.data,
        source.resolved_format(),
        name=source.name,
        on_progress=stage_callback(sink, stage),
        chunk_size=options.decode_chunk_size,
        cancel=cancel,
        stage=stage.value,
        delimiter=options.delimiter,
        encoding=options.encoding,
        preview_rows=options.preview_rows,
    )
    records = normalize_rows(table.rows, kind)
    return records, table.summary


async def reconcile(
    web: SourceFile,
    accounting: SourceFile,
    *,
    options: Optional[ReconcileOptions] = None,
    sink: Optional[ProgressSink] = None,
    cancel: Optional[CancelSignal] = None,
) -> ReconcileResult:
    """Run one reconciliation: decode both files, index WEB by SKU, join accounting rows.

    A fatal decode error on either file aborts before any index or join is built.
    """
    options = options or ReconcileOptions()
    sink = sink or NullSink()

    web_records: List[WebRecord]
    accounting_records: List[AccountingRecord]
    web_records, web_summary = await load_records(
        web, RecordKind.WEB, stage=Stage.DECODING_WEB, sink=sink, options=options, cancel=cancel
    )
    sink.status(f"WEB 文件已加载: {web.name} ({web_summary.row_count} 行)")
    accounting_records, accounting_summary = await load_records(
        accounting,
        RecordKind.ACCOUNTING,
        stage=Stage.DECODING_ACCOUNTING,
        sink=sink,
        options=options,
        cancel=cancel,
    )
    sink.status(f"QBO 文件已加载: {accounting.name} ({accounting_summary.row_count} 行)")

    index = await build_sku_index(
        web_records,
        on_progress=stage_callback(sink, Stage.BUILDING_INDEX),
        chunk_size=options.index_chunk_size,
        cancel=cancel,
        stage=Stage.BUILDING_INDEX.value,
    )
    records = await join_records(
        accounting_records,
        index,
        on_progress=stage_callback(sink, Stage.JOINING),
        chunk_size=options.join_chunk_size,
        cancel=cancel,
        stage=Stage.JOINING.value,
    )
    sink.progress(Stage.DONE, 100)
    sink.status(f"数据整合完成！共找到 {len(records)} 条匹配记录。")

    result = ReconcileResult(
        records=records,
        web_summary=web_summary,
        accounting_summary=accounting_summary,
        web_count=len(web_records),
        accounting_count=len(accounting_records),
        indexed=len(index),
        duplicate_skus=index.overwritten,
    )
    if web_summary.skipped_rows:
        result.notes.append(f"{web.name}: 跳过 {len(web_summary.skipped_rows)} 条格式错误的行")
    if accounting_summary.skipped_rows:
        result.notes.append(f"{accounting.name}: 跳过 {len(accounting_summary.skipped_rows)} 条格式错误的行")
    if index.overwritten:
        # Kept as observed behaviour; surfaced so duplicates can be reviewed.
        result.notes.append(f"WEB 文件中有 {index.overwritten} 条重复 SKU，已按最后一行为准")
    LOGGER.info(
        "reconciliation finished: %d WEB rows, %d accounting rows, %d matches",
        result.web_count,
        result.accounting_count,
        len(records),
    )
    return result


def reconcile_paths(
    web_path: Path,
    accounting_path: Path,
    *,
    options: Optional[ReconcileOptions] = None,
    sink: Optional[ProgressSink] = None,
) -> ReconcileResult:
    """Blocking entry point for hosts without a running event loop."""
    web = SourceFile.from_path(web_path)
    accounting = SourceFile.from_path(accounting_path)
    return asyncio.run(reconcile(web, accounting, options=options, sink=sink))
