"""Data models for parsed records and merged parse statistics."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Protocol


@dataclass(frozen=True)
class ParsedRecord:
    """One typed record produced by the record parser.

    ``fields`` is stored as a read-only copy of the mapping passed in.
    """

    record_type: str
    fields: Mapping[str, str]
    line_number: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def values(self) -> list[str]:
        return list(self.fields.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_type": self.record_type,
            "fields": dict(self.fields),
            "line_number": self.line_number,
        }


@dataclass(frozen=True)
class ParseIssue:
    """Error or warning descriptor attached to a source line."""

    line_number: int
    message: str
    record_type: str | None = None


@dataclass
class ParseStatistics:
    """Aggregate counters for one parse run or one slice.

    Rules:
    - has_errors == bool(errors), has_warnings == bool(warnings) once finalized
    - sum(record_counts.values()) == total_records
    """

    total_records: int = 0
    record_counts: dict[str, int] = field(default_factory=dict)
    errors: list[ParseIssue] = field(default_factory=list)
    warnings: list[ParseIssue] = field(default_factory=list)
    has_errors: bool = False
    has_warnings: bool = False

    def merge(self, other: ParseStatistics) -> None:
        """Fold another slice's statistics into this accumulator."""

        self.total_records += other.total_records
        for record_type, count in other.record_counts.items():
            self.record_counts[record_type] = self.record_counts.get(record_type, 0) + count
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def finalize(self) -> None:
        self.has_errors = bool(self.errors)
        self.has_warnings = bool(self.warnings)


@dataclass
class ChunkParse:
    """Record parser output for one text slice."""

    metadata: dict[str, str] = field(default_factory=dict)
    records: list[ParsedRecord] = field(default_factory=list)
    statistics: ParseStatistics = field(default_factory=ParseStatistics)


@dataclass
class ParseResult:
    """Merged output of a full parse run."""

    source: str
    records: list[ParsedRecord] = field(default_factory=list)
    statistics: ParseStatistics = field(default_factory=ParseStatistics)
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "records": [record.to_dict() for record in self.records],
            "statistics": asdict(self.statistics),
            "metadata": dict(self.metadata),
        }


class RecordParser(Protocol):
    """Protocol for deterministic, side-effect-free slice parsers."""

    def parse_chunk(self, text: str, source: str, *, first_line: int = 1) -> ChunkParse:
        """Parse one text slice whose first line has the given 1-based number."""
