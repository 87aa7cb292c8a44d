"""Human-readable parse, search and preview rendering for CLI output."""

from __future__ import annotations

from collections import Counter

from core.records.models import ParsedRecord, ParseIssue, ParseResult
from core.rename.models import HighlightSegment, PreviewResult

_MAX_LISTED_ISSUES = 5


def render_parse_summary(result: ParseResult) -> str:
    """Render one-screen parse summary."""

    statistics = result.statistics
    lines: list[str] = []
    lines.append("parse_summary:")
    lines.append(f"source={result.source} records={statistics.total_records}")

    if statistics.record_counts:
        counts = ", ".join(
            f"{record_type}={count}"
            for record_type, count in sorted(statistics.record_counts.items())
        )
        lines.append(f"record_counts: {counts}")
    else:
        lines.append("record_counts: none")

    if result.metadata:
        metadata = " ".join(f"{key}={value}" for key, value in sorted(result.metadata.items()))
        lines.append(f"metadata: {metadata}")

    lines.extend(_render_issues("errors", statistics.errors))
    lines.extend(_render_issues("warnings", statistics.warnings))
    return "\n".join(lines)


def render_search_matches(
    query: str,
    records: list[ParsedRecord],
    matches: list[int],
    *,
    limit: int | None = None,
) -> str:
    lines = [f"search: query={query!r} matches={len(matches)}"]
    shown = matches if limit is None else matches[:limit]
    for index in shown:
        record = records[index]
        values = " | ".join(value for value in record.values() if value)
        lines.append(f"#{index} line {record.line_number} {record.record_type}: {values}")
    hidden = len(matches) - len(shown)
    if hidden > 0:
        lines.append(f"... {hidden} more")
    return "\n".join(lines)


def render_preview(preview: PreviewResult) -> str:
    """Render proposed names with changed runs wrapped in brackets."""

    summary = preview.summary
    status_counter: Counter[str] = Counter(entry.status for entry in preview.entries)
    lines: list[str] = []
    lines.append("preview:")
    lines.append(
        f"changed={summary.changed_items}/{summary.total_items} "
        f"applicable_rules={summary.applicable_rules} "
        f"invalid_rules={'yes' if summary.has_invalid_rules else 'no'}"
    )
    statuses = ", ".join(f"{status}={status_counter[status]}" for status in sorted(status_counter))
    lines.append(f"statuses: {statuses or 'none'}")

    for entry in preview.entries:
        current = mark_segments(entry.current_segments)
        proposed = mark_segments(entry.proposed_segments)
        lines.append(f"[{entry.status}] {current} -> {proposed}")
        if entry.message:
            lines.append(f"  {entry.message}")

    for impact in summary.rule_impacts:
        if impact.invalid_pattern:
            lines.append(f"rule {impact.rule_name}: invalid pattern")
    return "\n".join(lines)


def mark_segments(segments: list[HighlightSegment]) -> str:
    return "".join(
        f"[{segment.text}]" if segment.changed else segment.text for segment in segments
    )


def _render_issues(label: str, issues: list[ParseIssue]) -> list[str]:
    if not issues:
        return [f"{label}: none"]
    lines = [f"{label}: {len(issues)}"]
    for issue in issues[:_MAX_LISTED_ISSUES]:
        prefix = f"{issue.record_type} " if issue.record_type else ""
        lines.append(f"  line {issue.line_number}: {prefix}{issue.message}")
    if len(issues) > _MAX_LISTED_ISSUES:
        lines.append(f"  ... {len(issues) - _MAX_LISTED_ISSUES} more")
    return lines
