"""Data models for rename rules, item batches, and preview reports."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ItemStatus = Literal["valid", "modified", "duplicate", "error", "invalid"]
RuleKind = Literal["literal", "regex"]


class TransformRule(BaseModel):
    """Single find/replace rule applied to item names."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    search: str
    replace: str = ""
    kind: RuleKind = "literal"
    enabled: bool = True
    position: int = 0
    case_insensitive: bool = False


class NamedItem(BaseModel):
    """One nameable item in a rename batch; ``id`` is stable for its lifetime."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    original_name: str
    current_name: str
    character_count: int
    status: ItemStatus = "valid"
    last_modified: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_name(cls, name: str, *, item_id: str | None = None) -> NamedItem:
        return cls(
            id=item_id or uuid.uuid4().hex,
            original_name=name,
            current_name=name,
            character_count=len(name),
        )


class HighlightSegment(BaseModel):
    """Contiguous run of a name that is equal to or differs from the other name."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str
    changed: bool


class PreviewEntry(BaseModel):
    """Proposed outcome for one item."""

    model_config = ConfigDict(extra="forbid")

    item_id: str
    current_name: str
    proposed_name: str
    status: ItemStatus
    message: str | None = None
    current_segments: list[HighlightSegment] = Field(default_factory=list)
    proposed_segments: list[HighlightSegment] = Field(default_factory=list)


class RuleImpact(BaseModel):
    """How one rule behaved across the batch."""

    model_config = ConfigDict(extra="forbid")

    rule_name: str
    enabled: bool
    applicable: bool
    invalid_pattern: bool = False
    changed_items: int = 0


class PreviewSummary(BaseModel):
    """Batch-level preview counters.

    Rules:
    - applicable_rules counts enabled, applicable rules whose pattern compiled
    - has_invalid_rules == any(impact.invalid_pattern for enabled impacts)
    """

    model_config = ConfigDict(extra="forbid")

    changed_items: int
    total_items: int
    applicable_rules: int
    has_invalid_rules: bool
    rule_impacts: list[RuleImpact] = Field(default_factory=list)


class PreviewResult(BaseModel):
    """Derived preview for a batch; recomputed on every rule change."""

    model_config = ConfigDict(extra="forbid")

    entries: list[PreviewEntry] = Field(default_factory=list)
    summary: PreviewSummary

    def entry_for(self, item_id: str) -> PreviewEntry | None:
        for entry in self.entries:
            if entry.item_id == item_id:
                return entry
        return None

    def proposed_names(self) -> dict[str, str]:
        return {entry.item_id: entry.proposed_name for entry in self.entries}

    def statuses(self) -> dict[str, ItemStatus]:
        return {entry.item_id: entry.status for entry in self.entries}
