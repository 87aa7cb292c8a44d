"""Single-level undo for batch rename applies."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from core.rename.models import ItemStatus, NamedItem, PreviewResult

_STICKY_PREVIEW_STATUSES: frozenset[ItemStatus] = frozenset({"error", "invalid", "duplicate"})


@dataclass(frozen=True)
class SnapshotEntry:
    """Mutable item fields captured before an apply."""

    current_name: str
    character_count: int
    status: ItemStatus


ApplySnapshot = dict[str, SnapshotEntry]


def create_apply_snapshot(items: Sequence[NamedItem]) -> ApplySnapshot:
    """Capture name, length and status of every item keyed by id."""

    return {
        item.id: SnapshotEntry(
            current_name=item.current_name,
            character_count=item.character_count,
            status=item.status,
        )
        for item in items
    }


def restore_from_apply_snapshot(
    items: Sequence[NamedItem], snapshot: ApplySnapshot
) -> list[NamedItem]:
    """Return a new batch with snapshot fields restored.

    Items missing from the snapshot (for example, added after it was taken)
    pass through unchanged.
    """

    restored: list[NamedItem] = []
    for item in items:
        original = snapshot.get(item.id)
        if original is None:
            restored.append(item)
            continue
        restored.append(
            item.model_copy(
                update={
                    "current_name": original.current_name,
                    "character_count": original.character_count,
                    "status": original.status,
                }
            )
        )
    return restored


def apply_preview(items: Sequence[NamedItem], preview: PreviewResult) -> list[NamedItem]:
    """Commit a preview's proposed names onto a batch.

    Items with an error/invalid/duplicate preview keep that status; renamed
    items become ``modified``; everything else keeps its status.
    """

    entries = {entry.item_id: entry for entry in preview.entries}
    now = datetime.now(timezone.utc)
    applied: list[NamedItem] = []

    for item in items:
        entry = entries.get(item.id)
        if entry is None:
            applied.append(item)
            continue

        if entry.status in _STICKY_PREVIEW_STATUSES:
            status = entry.status
        elif entry.proposed_name != item.current_name:
            status = "modified"
        else:
            status = item.status

        if entry.proposed_name == item.current_name and status == item.status:
            applied.append(item)
            continue
        applied.append(
            item.model_copy(
                update={
                    "current_name": entry.proposed_name,
                    "character_count": len(entry.proposed_name),
                    "status": status,
                    "last_modified": now,
                }
            )
        )
    return applied


class ApplyLedger:
    """Hold exactly one apply snapshot; taking a new one replaces the old."""

    def __init__(self) -> None:
        self._snapshot: ApplySnapshot | None = None

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> ApplySnapshot | None:
        return self._snapshot

    def record(self, items: Sequence[NamedItem]) -> ApplySnapshot:
        self._snapshot = create_apply_snapshot(items)
        return self._snapshot

    def restore(self, items: Sequence[NamedItem]) -> list[NamedItem]:
        """Restore from the held snapshot and clear it; no snapshot is a no-op."""

        if self._snapshot is None:
            return list(items)
        restored = restore_from_apply_snapshot(items, self._snapshot)
        self._snapshot = None
        return restored

    def clear(self) -> None:
        self._snapshot = None
