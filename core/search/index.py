"""Cancellable substring search over parsed records."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Literal

from core.records.models import ParsedRecord

# Unit separator: never produced by record text, so joins cannot create false matches.
ENTRY_DELIMITER = "\x1f"
DEFAULT_WINDOW_SIZE = 2000

SearchState = Literal["working", "idle"]


@dataclass(frozen=True)
class SearchStatus:
    type: ClassVar[str] = "status"

    request_id: int
    state: SearchState
    progress: float


@dataclass(frozen=True)
class SearchMatches:
    type: ClassVar[str] = "result"

    request_id: int
    matches: list[int]


SearchEmit = Callable[[SearchStatus | SearchMatches], None]


def flatten_record(record: ParsedRecord) -> str:
    """Build the case-folded, delimiter-joined search entry for one record."""

    return ENTRY_DELIMITER.join(record.values()).casefold()


class SearchIndex:
    """Own the cached search entries and the single current request id."""

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be > 0")
        self._window_size = window_size
        self._records: Sequence[ParsedRecord] | None = None
        self._entries: list[str] = []
        self._current_request: int | None = None

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def current_request(self) -> int | None:
        return self._current_request

    def initialize(self, records: Sequence[ParsedRecord]) -> bool:
        """Rebuild entries when ``records`` is a different sequence object.

        Returns True when the cache was rebuilt. A rebuild also drops the
        current request, since its match indices would refer to old records.
        """

        if records is self._records:
            return False
        self._records = records
        self._entries = [flatten_record(record) for record in records]
        self._current_request = None
        return True

    def cancel(self, request_id: int) -> None:
        if self._current_request == request_id:
            self._current_request = None

    def is_current(self, request_id: int) -> bool:
        return self._current_request == request_id

    async def search(self, query: str, request_id: int, emit: SearchEmit) -> bool:
        """Scan entries window by window, emitting progress and a final result.

        Returns False when the scan stopped because the request was superseded
        or cancelled; nothing is emitted after that point.
        """

        return await self.start_search(query, request_id, emit)

    def start_search(
        self, query: str, request_id: int, emit: SearchEmit
    ) -> Coroutine[Any, Any, bool]:
        """Claim ``request_id`` as current now and return the pending scan.

        Callers that schedule the scan as a task use this so a later request
        posted before the task starts still supersedes it.
        """

        self._current_request = request_id
        return self._scan(query, request_id, emit)

    async def _scan(self, query: str, request_id: int, emit: SearchEmit) -> bool:
        if not self.is_current(request_id):
            return False

        if not query:
            emit(SearchMatches(request_id=request_id, matches=[]))
            emit(SearchStatus(request_id=request_id, state="idle", progress=1.0))
            return True

        needle = query.casefold()
        entries = self._entries
        total = len(entries)
        matches: list[int] = []

        for start in range(0, total, self._window_size):
            end = min(start + self._window_size, total)
            for index in range(start, end):
                if needle in entries[index]:
                    matches.append(index)

            if not self.is_current(request_id):
                return False
            emit(
                SearchStatus(
                    request_id=request_id,
                    state="working",
                    progress=min(end, total) / total,
                )
            )
            await asyncio.sleep(0)

        if not self.is_current(request_id):
            return False
        emit(SearchMatches(request_id=request_id, matches=matches))
        emit(SearchStatus(request_id=request_id, state="idle", progress=1.0))
        return True
