"""Foreground controller that fences worker responses and owns UI-facing state."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from core.config.settings import PipelineSettings
from core.controller.fencing import RequestFence
from core.records.models import ParseResult, RecordParser
from core.rename.models import NamedItem, PreviewResult, TransformRule
from core.rename.undo import ApplyLedger, apply_preview
from core.search.index import SearchMatches, SearchStatus
from core.utils.events import log_event
from core.workers.base import BackgroundWorker
from core.workers.messages import (
    ParseCompleted,
    ParseFailed,
    ParseOutbound,
    ParseProgressed,
    ParseRequest,
    ParseStopped,
    PreviewCompute,
    PreviewComputed,
    PreviewFailed,
    PreviewOutbound,
    SearchCancel,
    SearchInit,
    SearchOutbound,
    SearchQuery,
)
from core.workers.parse_worker import ParseWorker
from core.workers.preview_worker import PreviewWorker
from core.workers.search_worker import SearchWorker

TOO_LARGE_MESSAGE = "File is too large to process safely. Use a smaller file."

ParseFailureKind = Literal["malformed_input", "too_large"]

_logger = logging.getLogger("cuebench.controller")


@dataclass(frozen=True)
class ParseFailure:
    kind: ParseFailureKind
    message: str


class WorkbenchController:
    """Issue requests to the workers and apply only the latest responses.

    Every outbound request takes a fresh id from its channel's fence; a
    response whose id is not the latest issued on that channel is dropped.
    """

    def __init__(
        self,
        *,
        parse_worker: ParseWorker,
        search_worker: SearchWorker,
        preview_worker: PreviewWorker,
        items: Sequence[NamedItem] = (),
    ) -> None:
        self._parse_worker = parse_worker
        self._search_worker = search_worker
        self._preview_worker = preview_worker

        self.parse_fence = RequestFence("parse")
        self.search_fence = RequestFence("search")
        self.preview_fence = RequestFence("preview")

        self.parse_result: ParseResult | None = None
        self.parse_failure: ParseFailure | None = None
        self.parse_progress = 0.0
        self.parsing = False

        self.matches: list[int] = []
        self.search_progress = 0.0
        self.search_busy = False

        self.items: list[NamedItem] = list(items)
        self.preview: PreviewResult | None = None
        self.preview_error: str | None = None
        self.preview_pending = False
        self.ledger = ApplyLedger()

    @classmethod
    def from_settings(
        cls,
        settings: PipelineSettings,
        *,
        parser: RecordParser | None = None,
        items: Sequence[NamedItem] = (),
    ) -> WorkbenchController:
        return cls(
            parse_worker=ParseWorker(parser=parser, settings=settings),
            search_worker=SearchWorker(window_size=settings.search_window),
            preview_worker=PreviewWorker(chunk_items=settings.preview_chunk_items),
            items=items,
        )

    async def __aenter__(self) -> WorkbenchController:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def start(self) -> None:
        for worker in self._workers():
            worker.start()

    async def close(self) -> None:
        for worker in self._workers():
            await worker.close()

    # Requests

    def start_parse(
        self,
        text: str,
        source: str,
        *,
        chunk_lines: int | None = None,
        max_records: int | None = None,
    ) -> int:
        request_id = self.parse_fence.issue()
        self.parse_failure = None
        self.parse_progress = 0.0
        self.parsing = True
        self._parse_worker.post(
            ParseRequest(
                request_id=request_id,
                text=text,
                source=source,
                chunk_lines=chunk_lines,
                max_records=max_records,
            )
        )
        return request_id

    def run_search(self, query: str) -> int:
        if self.search_busy:
            self._search_worker.post(SearchCancel(self.search_fence.latest))
        request_id = self.search_fence.issue()
        self.search_busy = True
        self.search_progress = 0.0
        self._search_worker.post(SearchQuery(request_id=request_id, query=query))
        return request_id

    def cancel_search(self) -> None:
        if not self.search_busy:
            return
        self._search_worker.post(SearchCancel(self.search_fence.latest))
        self.search_fence.issue()
        self.search_busy = False

    def request_preview(self, rules: Sequence[TransformRule]) -> int:
        request_id = self.preview_fence.issue()
        self.preview_pending = True
        self._preview_worker.post(
            PreviewCompute(request_id=request_id, items=self.items, rules=list(rules))
        )
        return request_id

    def set_items(self, items: Sequence[NamedItem]) -> None:
        """Replace the batch; any preview in flight was computed for the old one."""

        self.items = list(items)
        if self.preview_pending:
            self.preview_fence.issue()
            self.preview_pending = False
        self.preview = None
        self.preview_error = None
        self.ledger.clear()

    # Responses

    def dispatch(self, message: Any) -> bool:
        """Route one worker message; returns False when it was dropped."""

        if isinstance(message, (ParseProgressed, ParseCompleted, ParseStopped, ParseFailed)):
            return self.handle_parse(message)
        if isinstance(message, (SearchStatus, SearchMatches)):
            return self.handle_search(message)
        if isinstance(message, (PreviewComputed, PreviewFailed)):
            return self.handle_preview(message)
        raise TypeError(f"Unsupported worker message: {type(message).__name__}")

    def handle_parse(self, message: ParseOutbound) -> bool:
        if not self.parse_fence.is_current(message.request_id):
            self._drop_stale(self.parse_fence, message)
            return False

        if isinstance(message, ParseProgressed):
            self.parse_progress = message.fraction
        elif isinstance(message, ParseCompleted):
            self.parsing = False
            self.parse_progress = 1.0
            self.parse_result = message.result
            self._reset_search()
            self._search_worker.post(SearchInit(message.result.records))
        elif isinstance(message, ParseStopped):
            self.parsing = False
            self.parse_result = None
            self.parse_failure = ParseFailure("too_large", TOO_LARGE_MESSAGE)
            self._reset_search()
        elif isinstance(message, ParseFailed):
            self.parsing = False
            self.parse_result = None
            self.parse_failure = ParseFailure(
                "malformed_input", f"Malformed input: {message.message}"
            )
            self._reset_search()
        return True

    def handle_search(self, message: SearchOutbound) -> bool:
        if not self.search_fence.is_current(message.request_id):
            self._drop_stale(self.search_fence, message)
            return False

        if isinstance(message, SearchStatus):
            self.search_progress = message.progress
            self.search_busy = message.state == "working"
        else:
            self.matches = list(message.matches)
        return True

    def handle_preview(self, message: PreviewOutbound) -> bool:
        if not self.preview_fence.is_current(message.request_id):
            self._drop_stale(self.preview_fence, message)
            return False

        self.preview_pending = False
        if isinstance(message, PreviewComputed):
            self.preview = message.preview
            self.preview_error = None
        else:
            self.preview_error = message.message
        return True

    async def pump(self, worker: BackgroundWorker[Any, Any]) -> None:
        """Dispatch a worker's messages forever; run as a task and cancel to stop."""

        while True:
            self.dispatch(await worker.receive())

    async def settle_parse(self) -> None:
        while self.parsing:
            self.handle_parse(await self._parse_worker.receive())

    async def settle_search(self) -> None:
        while self.search_busy:
            self.handle_search(await self._search_worker.receive())

    async def settle_preview(self) -> None:
        while self.preview_pending:
            self.handle_preview(await self._preview_worker.receive())

    # Apply / undo

    def apply_preview(self) -> list[NamedItem]:
        """Commit the latest preview onto the batch, snapshotting it first."""

        if self.preview is None:
            raise RuntimeError("No preview to apply")
        self.ledger.record(self.items)
        self.items = apply_preview(self.items, self.preview)
        log_event(
            _logger,
            logging.INFO,
            "apply",
            self.preview_fence.latest,
            items=len(self.items),
            changed=self.preview.summary.changed_items,
        )
        self.preview = None
        return self.items

    def undo_apply(self) -> bool:
        """Restore the batch to its state before the last apply, once."""

        if not self.ledger.has_snapshot:
            return False
        self.items = self.ledger.restore(self.items)
        self.preview = None
        log_event(_logger, logging.INFO, "undo", None, items=len(self.items))
        return True

    def _reset_search(self) -> None:
        # Any scan in flight indexes the previous record set.
        if self.search_busy:
            self.search_fence.issue()
        self.search_busy = False
        self.search_progress = 0.0
        self.matches = []

    def _drop_stale(self, fence: RequestFence, message: Any) -> None:
        log_event(
            _logger,
            logging.DEBUG,
            "stale.drop",
            message.request_id,
            channel=fence.channel,
            latest=fence.latest,
            message_type=message.type,
        )

    def _workers(self) -> tuple[BackgroundWorker[Any, Any], ...]:
        return (self._parse_worker, self._search_worker, self._preview_worker)
