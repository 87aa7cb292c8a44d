"""Character-level highlight segments between a current and a proposed name."""

from __future__ import annotations

import difflib

from core.rename.models import HighlightSegment


def highlight_segments(
    current: str, proposed: str
) -> tuple[list[HighlightSegment], list[HighlightSegment]]:
    """Split both names into changed/unchanged runs from one diff of the pair.

    Both sides come from the same opcode list, so a given pair of strings
    always yields the same segmentation.
    """

    if current == proposed:
        unchanged = [HighlightSegment(text=current, changed=False)] if current else []
        return unchanged, list(unchanged)

    matcher = difflib.SequenceMatcher(None, current, proposed, autojunk=False)
    current_runs: list[tuple[str, bool]] = []
    proposed_runs: list[tuple[str, bool]] = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        changed = tag != "equal"
        if i2 > i1:
            current_runs.append((current[i1:i2], changed))
        if j2 > j1:
            proposed_runs.append((proposed[j1:j2], changed))

    return _merge_runs(current_runs), _merge_runs(proposed_runs)


def _merge_runs(runs: list[tuple[str, bool]]) -> list[HighlightSegment]:
    merged: list[tuple[str, bool]] = []
    for text, changed in runs:
        if merged and merged[-1][1] == changed:
            merged[-1] = (merged[-1][0] + text, changed)
        else:
            merged.append((text, changed))
    return [HighlightSegment(text=text, changed=changed) for text, changed in merged]
