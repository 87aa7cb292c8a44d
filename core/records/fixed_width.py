"""Default record parser for fixed-width registration files.

The first three characters of each line name the record type. Known types
are sliced into named fields; unknown types are kept as a single ``raw``
field with a warning so that nothing in the file is silently dropped.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.records.models import ChunkParse, ParsedRecord, ParseIssue, ParseStatistics
from core.records.text import split_lines

_TYPE_WIDTH = 3


@dataclass(frozen=True)
class FieldSpec:
    """Fixed-width field position (0-based start, width in characters)."""

    name: str
    start: int
    size: int
    required: bool = False

    def extract(self, line: str) -> str:
        return line[self.start : self.start + self.size].rstrip()


_TRANSACTION_PREFIX = (
    FieldSpec("transaction_seq", 3, 8, required=True),
    FieldSpec("record_seq", 11, 8, required=True),
)

RECORD_LAYOUTS: dict[str, tuple[FieldSpec, ...]] = {
    "HDR": (
        FieldSpec("sender_type", 3, 2, required=True),
        FieldSpec("sender_id", 5, 9, required=True),
        FieldSpec("sender_name", 14, 45, required=True),
        FieldSpec("edi_version", 59, 5),
        FieldSpec("creation_date", 64, 8),
        FieldSpec("creation_time", 72, 6),
        FieldSpec("transmission_date", 78, 8),
    ),
    "GRH": (
        FieldSpec("transaction_type", 3, 3, required=True),
        FieldSpec("group_id", 6, 5, required=True),
        FieldSpec("version", 11, 5),
    ),
    "GRT": (
        FieldSpec("group_id", 3, 5, required=True),
        FieldSpec("transaction_count", 8, 8, required=True),
        FieldSpec("record_count", 16, 8, required=True),
    ),
    "TRL": (
        FieldSpec("group_count", 3, 5, required=True),
        FieldSpec("transaction_count", 8, 8, required=True),
        FieldSpec("record_count", 16, 8, required=True),
    ),
    "NWR": (
        *_TRANSACTION_PREFIX,
        FieldSpec("work_title", 19, 60, required=True),
        FieldSpec("language_code", 79, 2),
        FieldSpec("submitter_work_num", 81, 14),
        FieldSpec("iswc", 95, 11),
    ),
    "SPU": (
        *_TRANSACTION_PREFIX,
        FieldSpec("publisher_seq", 19, 2, required=True),
        FieldSpec("ip_num", 21, 9, required=True),
        FieldSpec("publisher_name", 30, 45, required=True),
        FieldSpec("publisher_type", 76, 2),
    ),
    "SWR": (
        *_TRANSACTION_PREFIX,
        FieldSpec("ip_num", 19, 9),
        FieldSpec("last_name", 28, 45, required=True),
        FieldSpec("first_name", 73, 30),
    ),
    "PER": (
        *_TRANSACTION_PREFIX,
        FieldSpec("last_name", 19, 45, required=True),
        FieldSpec("first_name", 64, 30),
    ),
    "ALT": (
        *_TRANSACTION_PREFIX,
        FieldSpec("alternate_title", 19, 60, required=True),
        FieldSpec("title_type", 79, 2),
    ),
}
RECORD_LAYOUTS["REV"] = RECORD_LAYOUTS["NWR"]

_METADATA_RECORD = "HDR"


class FixedWidthRecordParser:
    """Parse fixed-width record lines into typed records and slice statistics."""

    def __init__(self, layouts: dict[str, tuple[FieldSpec, ...]] | None = None) -> None:
        self._layouts = layouts if layouts is not None else RECORD_LAYOUTS

    def parse_chunk(self, text: str, source: str, *, first_line: int = 1) -> ChunkParse:
        lines, _ = split_lines(text)
        chunk = ChunkParse()
        statistics = chunk.statistics

        for offset, line in enumerate(lines):
            if not line.strip():
                continue
            line_number = first_line + offset

            if len(line) < _TYPE_WIDTH:
                statistics.errors.append(
                    ParseIssue(line_number=line_number, message="line too short for a record type")
                )
                continue

            record_type = line[:_TYPE_WIDTH].upper()
            layout = self._layouts.get(record_type)
            if layout is None:
                statistics.warnings.append(
                    ParseIssue(
                        line_number=line_number,
                        message=f"unknown record type {record_type!r}",
                        record_type=record_type,
                    )
                )
                record = ParsedRecord(
                    record_type=record_type,
                    fields={"raw": line.rstrip()},
                    line_number=line_number,
                )
            else:
                fields = {spec.name: spec.extract(line) for spec in layout}
                missing = [spec.name for spec in layout if spec.required and not fields[spec.name]]
                if missing:
                    statistics.errors.append(
                        ParseIssue(
                            line_number=line_number,
                            message=f"missing required fields: {', '.join(missing)}",
                            record_type=record_type,
                        )
                    )
                    continue
                record = ParsedRecord(
                    record_type=record_type,
                    fields=fields,
                    line_number=line_number,
                )
                if record_type == _METADATA_RECORD and not chunk.metadata:
                    chunk.metadata = dict(fields)

            chunk.records.append(record)
            statistics.total_records += 1
            statistics.record_counts[record_type] = (
                statistics.record_counts.get(record_type, 0) + 1
            )

        statistics.finalize()
        return chunk
