"""Progress reporting seam between the engine and whatever displays it."""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Callable, Optional, Protocol

LOGGER = logging.getLogger(__name__)


class Stage(StrEnum):
    DECODING_WEB = "decodingWeb"
    DECODING_ACCOUNTING = "decodingAccounting"
    BUILDING_INDEX = "buildingIndex"
    JOINING = "joining"
    DONE = "done"


ProgressCallback = Callable[[int], None]


class ProgressSink(Protocol):
    def progress(self, stage: Stage, percentage: int) -> None: ...

    def status(self, message: str) -> None: ...


class NullSink:
    def progress(self, stage: Stage, percentage: int) -> None:
        return None

    def status(self, message: str) -> None:
        return None


class CallbackSink:
    """Adapts plain callables, 示例：CallbackSink(lambda stage, pct: bar.update(pct))."""

    def __init__(
        self,
        on_progress: Callable[[Stage, int], None],
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._on_progress = on_progress
        self._on_status = on_status

    def progress(self, stage: Stage, percentage: int) -> None:
        self._on_progress(stage, percentage)

    def status(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)


class LoggingSink:
    def __init__(self, logger: logging.Logger = LOGGER) -> None:
        self._logger = logger

    def progress(self, stage: Stage, percentage: int) -> None:
        self._logger.debug("%s: %d%%", stage.value, percentage)

    def status(self, message: str) -> None:
        self._logger.info(message)


def stage_callback(sink: ProgressSink, stage: Stage) -> ProgressCallback:
    """Bind a sink to one stage so components only deal in percentages."""

    def report(percentage: int) -> None:
        sink.progress(stage, percentage)

    return report
