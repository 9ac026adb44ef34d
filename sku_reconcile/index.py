from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional, Sequence

from .models import WebRecord
from .progress import ProgressCallback
from .schema import INDEX_CHUNK_SIZE
from .utils import CancelSignal, checkpoint, chunk_bounds, ensure_not_cancelled, percent

LOGGER = logging.getLogger(__name__)


class SkuIndex:
    """Lookup from normalized SKU to the WEB record that last carried it."""

    def __init__(self) -> None:
        self.entries: Dict[str, WebRecord] = {}
        self.overwritten = 0  # duplicate SKUs replaced by a later row
        self.skipped = 0  # records without a usable SKU

    def add(self, record: WebRecord) -> None:
        if not record.sku:
            self.skipped += 1
            return
        if record.sku in self.entries:
            self.overwritten += 1
        # Later rows replace earlier ones with the same SKU.
        self.entries[record.sku] = record

    def get(self, sku: str) -> Optional[WebRecord]:
        if not sku:
            return None
        return self.entries.get(sku)

    def __contains__(self, sku: object) -> bool:
        return sku in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)


async def build_sku_index(
    records: Sequence[WebRecord],
    *,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = INDEX_CHUNK_SIZE,
    cancel: Optional[CancelSignal] = None,
    stage: str = "buildingIndex",
) -> SkuIndex:
    index = SkuIndex()
    total = len(records)
    if total == 0:
        return index

    ensure_not_cancelled(cancel, stage)
    for start, end in chunk_bounds(total, chunk_size):
        if start:
            await checkpoint(cancel, stage)
        for record in records[start:end]:
            index.add(record)
        if on_progress is not None:
            on_progress(percent(end, total))

    if index.overwritten:
        LOGGER.info("%d duplicate SKU rows overwritten by later WEB rows", index.overwritten)
    LOGGER.info("indexed %d SKUs from %d WEB rows (%d without SKU)", len(index), total, index.skipped)
    return index
