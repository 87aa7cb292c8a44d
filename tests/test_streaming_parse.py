from __future__ import annotations

from typing import Any

import pytest

from core.records.fixed_width import FixedWidthRecordParser
from core.records.models import ChunkParse, ParsedRecord
from core.records.streaming import (
    ParseDone,
    ParseEarlyStop,
    ParseEvent,
    ParseProgress,
    parse_text,
    stream_parse,
)
from core.records.text import split_lines
from core.utils.errors import RecordParseError


class LineParser:
    """One record per line; keeps slices observable for chunking tests."""

    def __init__(self) -> None:
        self.slices: list[tuple[int, int]] = []

    def parse_chunk(self, text: str, source: str, *, first_line: int = 1) -> ChunkParse:
        lines, _ = split_lines(text)
        self.slices.append((first_line, len(lines)))
        chunk = ChunkParse(metadata={"first_line": str(first_line)})
        for offset, line in enumerate(lines):
            chunk.records.append(ParsedRecord("LIN", {"text": line}, first_line + offset))
        chunk.statistics.total_records = len(lines)
        chunk.statistics.record_counts = {"LIN": len(lines)}
        return chunk


class FailingParser:
    def __init__(self, fail_at_line: int) -> None:
        self.fail_at_line = fail_at_line

    def parse_chunk(self, text: str, source: str, *, first_line: int = 1) -> ChunkParse:
        if first_line == self.fail_at_line:
            raise RuntimeError("unexpected byte")
        return ChunkParse()


def _lines(count: int) -> str:
    return "\n".join(f"NWR{index:08d}00000000TITLE {index}" for index in range(count))


async def _collect(text: str, **kwargs: Any) -> list[ParseEvent]:
    return [event async for event in stream_parse(text, "sample", **kwargs)]


@pytest.mark.anyio
async def test_progress_scenario_for_10050_lines() -> None:
    events = await _collect(_lines(10_050), parser=LineParser(), chunk_lines=2000)

    progress = [event.fraction for event in events if isinstance(event, ParseProgress)]
    assert progress == [0.2, 0.4, 0.6, 0.8, 1.0]
    assert isinstance(events[-1], ParseDone)
    assert len(events[-1].result.records) == 10_050
    assert sum(isinstance(event, ParseDone) for event in events) == 1


@pytest.mark.anyio
async def test_trailing_newline_does_not_add_a_line() -> None:
    parser = LineParser()
    events = await _collect(_lines(10_050) + "\n", parser=parser, chunk_lines=2000)

    progress = [event.fraction for event in events if isinstance(event, ParseProgress)]
    assert progress == [0.2, 0.4, 0.6, 0.8, 1.0]
    assert parser.slices[-1] == (10_001, 50)


@pytest.mark.anyio
async def test_slices_carry_first_line_numbers() -> None:
    parser = LineParser()
    events = await _collect(_lines(7), parser=parser, chunk_lines=3)

    assert parser.slices == [(1, 3), (4, 3), (7, 1)]
    result = events[-1].result  # type: ignore[union-attr]
    assert [record.line_number for record in result.records] == list(range(1, 8))
    assert result.metadata == {"first_line": "1"}


@pytest.mark.anyio
async def test_chunk_size_does_not_change_result() -> None:
    header = "HDRPB000000123ACME MUSIC"
    body = [f"NWR{index:08d}00000000TITLE {index}" for index in range(25)]
    text = "\n".join([header, "", "XYZ unknown", "NWR0000000100000000", *body])
    parser = FixedWidthRecordParser()

    small = await parse_text(text, "s", parser=parser, chunk_lines=3)
    large = await parse_text(text, "s", parser=parser, chunk_lines=1000)

    assert isinstance(small, ParseDone)
    assert isinstance(large, ParseDone)
    assert small.result.records == large.result.records
    assert small.result.statistics == large.result.statistics
    assert small.result.metadata == large.result.metadata
    assert small.result.statistics.total_records == 27
    assert sum(small.result.statistics.record_counts.values()) == 27
    assert small.result.statistics.has_errors is True
    assert small.result.statistics.has_warnings is True


@pytest.mark.anyio
async def test_ceiling_breach_stops_early_without_result() -> None:
    events = await _collect(_lines(10), parser=LineParser(), chunk_lines=4, max_records=5)

    assert events[0] == ParseProgress(fraction=0.4)
    terminal = events[-1]
    assert isinstance(terminal, ParseEarlyStop)
    assert terminal.limit == 5
    assert terminal.records_seen == 8
    assert not any(isinstance(event, ParseDone) for event in events)


@pytest.mark.anyio
async def test_exactly_at_ceiling_completes() -> None:
    terminal = await parse_text(_lines(10), "s", parser=LineParser(), max_records=10)

    assert isinstance(terminal, ParseDone)
    assert terminal.result.statistics.total_records == 10


@pytest.mark.anyio
async def test_parser_failure_aborts_run() -> None:
    with pytest.raises(RecordParseError, match="unexpected byte") as exc_info:
        await _collect(_lines(10), parser=FailingParser(fail_at_line=5), chunk_lines=4)

    assert exc_info.value.first_line == 5
    assert exc_info.value.source == "sample"
    assert isinstance(exc_info.value.cause, RuntimeError)


@pytest.mark.anyio
async def test_empty_text_completes_with_no_records() -> None:
    events = await _collect("", parser=FixedWidthRecordParser())

    assert events[0] == ParseProgress(fraction=1.0)
    assert isinstance(events[-1], ParseDone)
    assert events[-1].result.records == []


@pytest.mark.anyio
async def test_crlf_text_parses_like_lf_text() -> None:
    lines = [f"NWR{index:08d}00000000TITLE {index}" for index in range(5)]
    parser = FixedWidthRecordParser()

    crlf = await parse_text("\r\n".join(lines), "s", parser=parser, chunk_lines=2)
    lf = await parse_text("\n".join(lines), "s", parser=parser, chunk_lines=2)

    assert isinstance(crlf, ParseDone)
    assert isinstance(lf, ParseDone)
    assert crlf.result.records == lf.result.records


@pytest.mark.anyio
@pytest.mark.parametrize("kwargs", [{"chunk_lines": 0}, {"max_records": 0}])
async def test_non_positive_limits_are_rejected(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        await _collect("HDR", parser=LineParser(), **kwargs)
