"""Message payloads exchanged between the controller and background workers.

Every message carries the ``request_id`` it answers so the receiver can drop
results from superseded requests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from core.records.models import ParsedRecord, ParseResult
from core.rename.models import NamedItem, PreviewResult, TransformRule
from core.search.index import SearchMatches, SearchStatus


@dataclass(frozen=True)
class ParseRequest:
    """Parse ``text`` in chunks; ``chunk_lines``/``max_records`` default from settings."""

    type: ClassVar[str] = "parse"

    request_id: int
    text: str
    source: str
    chunk_lines: int | None = None
    max_records: int | None = None


@dataclass(frozen=True)
class ParseProgressed:
    type: ClassVar[str] = "progress"

    request_id: int
    fraction: float


@dataclass(frozen=True)
class ParseCompleted:
    type: ClassVar[str] = "done"

    request_id: int
    result: ParseResult


@dataclass(frozen=True)
class ParseStopped:
    """Parsing halted at the record ceiling; no partial result is delivered."""

    type: ClassVar[str] = "early_stop"

    request_id: int
    reason: str
    limit: int
    records_seen: int


@dataclass(frozen=True)
class ParseFailed:
    type: ClassVar[str] = "error"

    request_id: int
    message: str
    error_type: str | None = None


ParseOutbound = ParseProgressed | ParseCompleted | ParseStopped | ParseFailed


@dataclass(frozen=True)
class SearchInit:
    type: ClassVar[str] = "init"

    records: Sequence[ParsedRecord]


@dataclass(frozen=True)
class SearchQuery:
    type: ClassVar[str] = "search"

    request_id: int
    query: str


@dataclass(frozen=True)
class SearchCancel:
    type: ClassVar[str] = "cancel"

    request_id: int


SearchInbound = SearchInit | SearchQuery | SearchCancel
SearchOutbound = SearchStatus | SearchMatches


@dataclass(frozen=True)
class PreviewCompute:
    type: ClassVar[str] = "compute"

    request_id: int
    items: Sequence[NamedItem]
    rules: Sequence[TransformRule]


@dataclass(frozen=True)
class PreviewComputed:
    type: ClassVar[str] = "result"

    request_id: int
    preview: PreviewResult


@dataclass(frozen=True)
class PreviewFailed:
    type: ClassVar[str] = "error"

    request_id: int
    message: str
    error_type: str | None = None


PreviewOutbound = PreviewComputed | PreviewFailed
