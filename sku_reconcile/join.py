from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .index import SkuIndex
from .models import AccountingRecord, ReconciliationRecord
from .progress import ProgressCallback
from .schema import JOIN_CHUNK_SIZE
from .utils import CancelSignal, checkpoint, chunk_bounds, ensure_not_cancelled, percent

LOGGER = logging.getLogger(__name__)


async def join_records(
    accounting: Sequence[AccountingRecord],
    index: SkuIndex,
    *,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = JOIN_CHUNK_SIZE,
    cancel: Optional[CancelSignal] = None,
    stage: str = "joining",
) -> List[ReconciliationRecord]:
    """Inner-join accounting rows against the SKU index, keeping accounting order.

    Rows whose SKU is empty or absent from the index produce nothing.
    """
    results: List[ReconciliationRecord] = []
    total = len(accounting)
    if total == 0:
        return results

    ensure_not_cancelled(cancel, stage)
    for start, end in chunk_bounds(total, chunk_size):
        if start:
            await checkpoint(cancel, stage)
        for record in accounting[start:end]:
            web = index.get(record.sku)
            if web is None:
                continue
            results.append(ReconciliationRecord.from_match(record, web))
        if on_progress is not None:
            on_progress(percent(end, total))

    LOGGER.info("matched %d of %d accounting rows", len(results), total)
    return results
