"""Background worker that owns the search index and runs cancellable scans."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Coroutine
from typing import Any

from core.search.index import DEFAULT_WINDOW_SIZE, SearchIndex, SearchStatus
from core.utils.events import log_event
from core.workers.base import BackgroundWorker
from core.workers.messages import (
    SearchCancel,
    SearchInbound,
    SearchInit,
    SearchOutbound,
    SearchQuery,
)

_logger = logging.getLogger("cuebench.search")


class SearchWorker(BackgroundWorker[SearchInbound, SearchOutbound]):
    """Scans run as tasks so cancel and newer queries are seen mid-scan."""

    name = "search"

    def __init__(self, *, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        super().__init__()
        self._index = SearchIndex(window_size)
        self._scans: set[asyncio.Task[None]] = set()

    @property
    def index(self) -> SearchIndex:
        return self._index

    async def handle(self, message: SearchInbound) -> None:
        if isinstance(message, SearchInit):
            rebuilt = self._index.initialize(message.records)
            log_event(
                _logger,
                logging.DEBUG,
                "search.init",
                None,
                entries=self._index.size,
                rebuilt=rebuilt,
            )
        elif isinstance(message, SearchQuery):
            log_event(
                _logger,
                logging.DEBUG,
                "search.start",
                message.request_id,
                query_length=len(message.query),
            )
            scan = self._index.start_search(message.query, message.request_id, self.emit)
            task = asyncio.create_task(self._run_scan(message, scan))
            self._scans.add(task)
            task.add_done_callback(self._scans.discard)
        elif isinstance(message, SearchCancel):
            self._index.cancel(message.request_id)
            log_event(_logger, logging.DEBUG, "search.cancel", message.request_id)
        else:
            raise TypeError(f"Unsupported search message: {type(message).__name__}")

    async def drain(self) -> None:
        if self._scans:
            await asyncio.gather(*self._scans)

    async def _run_scan(self, message: SearchQuery, scan: Coroutine[Any, Any, bool]) -> None:
        started = time.perf_counter()
        try:
            completed = await scan
        except Exception:  # noqa: BLE001
            _logger.exception("search scan failed for request %s", message.request_id)
            self._index.cancel(message.request_id)
            self.emit(SearchStatus(request_id=message.request_id, state="idle", progress=1.0))
            return
        log_event(
            _logger,
            logging.DEBUG,
            "search.done" if completed else "search.superseded",
            message.request_id,
            query_length=len(message.query),
            entries=self._index.size,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
