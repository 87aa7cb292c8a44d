"""Background worker that computes rename previews."""

from __future__ import annotations

import logging
import time

from core.rename.cue_titles import format_cue_title
from core.rename.preview import (
    DEFAULT_PREVIEW_CHUNK_ITEMS,
    TitleTemplate,
    compute_preview_chunked,
)
from core.utils.events import log_event
from core.workers.base import BackgroundWorker
from core.workers.messages import (
    PreviewCompute,
    PreviewComputed,
    PreviewFailed,
    PreviewOutbound,
)

_logger = logging.getLogger("cuebench.preview")


class PreviewWorker(BackgroundWorker[PreviewCompute, PreviewOutbound]):
    name = "preview"

    def __init__(
        self,
        *,
        title_template: TitleTemplate = format_cue_title,
        chunk_items: int = DEFAULT_PREVIEW_CHUNK_ITEMS,
    ) -> None:
        super().__init__()
        self._title_template = title_template
        self._chunk_items = chunk_items

    async def handle(self, message: PreviewCompute) -> None:
        started = time.perf_counter()
        preview = await compute_preview_chunked(
            message.items,
            message.rules,
            title_template=self._title_template,
            chunk_items=self._chunk_items,
        )
        self.emit(PreviewComputed(message.request_id, preview))

        statuses = preview.statuses().values()
        log_event(
            _logger,
            logging.INFO,
            "preview.done",
            message.request_id,
            items=preview.summary.total_items,
            changed=preview.summary.changed_items,
            errors=sum(1 for status in statuses if status == "error"),
            duplicates=sum(1 for status in statuses if status == "duplicate"),
            invalid_rules=preview.summary.has_invalid_rules,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

    def on_failure(self, message: PreviewCompute, exc: Exception) -> None:
        self.emit(
            PreviewFailed(message.request_id, message=str(exc), error_type=type(exc).__name__)
        )
        log_event(
            _logger,
            logging.ERROR,
            "preview.error",
            message.request_id,
            message=str(exc),
            error_type=type(exc).__name__,
        )
