"""Chunked record parsing that yields to the event loop between slices."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass

from core.records.models import ParseResult, ParseStatistics, RecordParser
from core.records.text import split_lines
from core.utils.errors import RecordParseError

DEFAULT_CHUNK_LINES = 4000
DEFAULT_MAX_RECORDS = 300_000

# Progress is reported at percent granularity.
_PROGRESS_DIGITS = 2


@dataclass(frozen=True)
class ParseProgress:
    fraction: float


@dataclass(frozen=True)
class ParseDone:
    result: ParseResult


@dataclass(frozen=True)
class ParseEarlyStop:
    reason: str
    limit: int
    records_seen: int


ParseEvent = ParseProgress | ParseDone | ParseEarlyStop


async def stream_parse(
    text: str,
    source: str,
    *,
    parser: RecordParser,
    chunk_lines: int = DEFAULT_CHUNK_LINES,
    max_records: int = DEFAULT_MAX_RECORDS,
) -> AsyncIterator[ParseEvent]:
    """Parse ``text`` slice by slice, yielding progress then one terminal event.

    Rules:
    - progress fractions are strictly increasing; the last one is 1.0
    - exactly one terminal event: ParseDone, or ParseEarlyStop when the
      running record total exceeds ``max_records`` (checked once per slice)
    - parser exceptions abort the run as RecordParseError
    """

    if chunk_lines <= 0:
        raise ValueError("chunk_lines must be > 0")
    if max_records <= 0:
        raise ValueError("max_records must be > 0")

    lines, separator = split_lines(text)
    total_lines = len(lines)

    result: ParseResult | None = None
    last_fraction = 0.0

    for start in range(0, total_lines, chunk_lines):
        slice_text = separator.join(lines[start : start + chunk_lines])
        first_line = start + 1
        try:
            partial = parser.parse_chunk(slice_text, source, first_line=first_line)
        except Exception as exc:  # noqa: BLE001
            raise RecordParseError(
                f"Record parser failed at line {first_line}: {exc}",
                source=source,
                first_line=first_line,
                cause=exc,
            ) from exc

        if result is None:
            result = ParseResult(
                source=source,
                metadata=dict(partial.metadata),
                statistics=ParseStatistics(),
            )
        result.records.extend(partial.records)
        result.statistics.merge(partial.statistics)

        if result.statistics.total_records > max_records:
            yield ParseEarlyStop(
                reason=(
                    f"File contains more than {max_records} records; "
                    "stopped early to protect memory"
                ),
                limit=max_records,
                records_seen=result.statistics.total_records,
            )
            return

        fraction = round(min((start + chunk_lines) / total_lines, 1.0), _PROGRESS_DIGITS)
        if fraction > last_fraction:
            last_fraction = fraction
            yield ParseProgress(fraction=fraction)

        await asyncio.sleep(0)

    if result is None:
        result = ParseResult(source=source)
    result.statistics.finalize()
    yield ParseDone(result=result)


async def parse_text(
    text: str,
    source: str,
    *,
    parser: RecordParser,
    chunk_lines: int = DEFAULT_CHUNK_LINES,
    max_records: int = DEFAULT_MAX_RECORDS,
) -> ParseDone | ParseEarlyStop:
    """Drain ``stream_parse`` and return its terminal event."""

    terminal: ParseDone | ParseEarlyStop | None = None
    async for event in stream_parse(
        text, source, parser=parser, chunk_lines=chunk_lines, max_records=max_records
    ):
        if isinstance(event, (ParseDone, ParseEarlyStop)):
            terminal = event
    if terminal is None:
        raise RuntimeError("stream_parse ended without a terminal event")
    return terminal
