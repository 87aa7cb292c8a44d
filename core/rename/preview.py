"""Rename preview: ordered rule application, status classification, highlights."""

from __future__ import annotations

import asyncio
import re
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from core.rename.cue_titles import TitleOutcome, format_cue_title
from core.rename.diff import highlight_segments
from core.rename.models import (
    ItemStatus,
    NamedItem,
    PreviewEntry,
    PreviewResult,
    PreviewSummary,
    RuleImpact,
    TransformRule,
)
from core.rename.rules import PreparedRule, apply_rule, prepare_rules

TitleTemplate = Callable[[str, bool], TitleOutcome]

DEFAULT_PREVIEW_CHUNK_ITEMS = 500

_FORBIDDEN_NAME_CHARS_RE = re.compile(r'[<>:"/\\|?*]')


@dataclass
class _ItemPlan:
    item: NamedItem
    proposed_name: str
    error: str | None = None
    note: str | None = None


def is_valid_name(name: str) -> bool:
    """Return True when ``name`` is non-blank and safe as a file name."""

    return bool(name.strip()) and _FORBIDDEN_NAME_CHARS_RE.search(name) is None


def compute_preview(
    items: Sequence[NamedItem],
    rules: Sequence[TransformRule],
    *,
    title_template: TitleTemplate = format_cue_title,
) -> PreviewResult:
    """Compute proposed names, statuses and highlights for a batch.

    Rules:
    - disabled rules are skipped; others apply in position order, each on
      the previous rule's output
    - status precedence: error > invalid > duplicate > valid
    - a broken rule or template marks affected items ``error`` and never
      aborts the batch
    """

    prepared = prepare_rules(rules)
    impacts = _initial_impacts(prepared)
    plans = [_plan_item(item, prepared, impacts, title_template) for item in items]
    return _finalize(plans, impacts)


async def compute_preview_chunked(
    items: Sequence[NamedItem],
    rules: Sequence[TransformRule],
    *,
    title_template: TitleTemplate = format_cue_title,
    chunk_items: int = DEFAULT_PREVIEW_CHUNK_ITEMS,
) -> PreviewResult:
    """Same result as ``compute_preview``, yielding to the loop between chunks."""

    if chunk_items <= 0:
        raise ValueError("chunk_items must be > 0")

    prepared = prepare_rules(rules)
    impacts = _initial_impacts(prepared)
    plans: list[_ItemPlan] = []
    for start in range(0, len(items), chunk_items):
        for item in items[start : start + chunk_items]:
            plans.append(_plan_item(item, prepared, impacts, title_template))
        await asyncio.sleep(0)
    return _finalize(plans, impacts)


def _initial_impacts(prepared: list[PreparedRule]) -> list[RuleImpact]:
    return [
        RuleImpact(
            rule_name=entry.rule.name,
            enabled=entry.rule.enabled,
            applicable=entry.applicable,
            invalid_pattern=entry.rule.enabled and entry.error is not None,
        )
        for entry in prepared
    ]


def _plan_item(
    item: NamedItem,
    prepared: list[PreparedRule],
    impacts: list[RuleImpact],
    title_template: TitleTemplate,
) -> _ItemPlan:
    plan = _ItemPlan(item=item, proposed_name=item.current_name)

    for index, entry in enumerate(prepared):
        if not entry.applicable:
            continue
        name = plan.proposed_name

        if entry.is_template:
            try:
                outcome = title_template(name, bool(entry.template_has_episode))
            except Exception as exc:  # noqa: BLE001
                plan.error = plan.error or f"{entry.rule.replace} template failed: {exc}"
                continue
            if outcome.status == "error":
                plan.error = plan.error or (
                    f"Name does not follow the {entry.rule.replace} layout"
                )
                continue
            if outcome.status == "truncated":
                plan.note = f"Title shortened to fit {entry.rule.replace} length limit"
            next_name = outcome.title
        elif entry.error is not None:
            plan.error = plan.error or entry.error
            continue
        else:
            next_name = apply_rule(name, entry)

        if next_name != name:
            impacts[index].changed_items += 1
        plan.proposed_name = next_name

    return plan


def _finalize(plans: list[_ItemPlan], impacts: list[RuleImpact]) -> PreviewResult:
    name_counts = Counter(plan.proposed_name for plan in plans)
    entries: list[PreviewEntry] = []

    for plan in plans:
        status: ItemStatus
        message = plan.note
        if plan.error is not None:
            status = "error"
            message = plan.error
        elif not is_valid_name(plan.proposed_name):
            status = "invalid"
            message = "Name is empty or contains forbidden characters"
        elif name_counts[plan.proposed_name] > 1:
            status = "duplicate"
            message = "Another item in the batch has the same proposed name"
        else:
            status = "valid"

        current_segments, proposed_segments = highlight_segments(
            plan.item.current_name, plan.proposed_name
        )
        entries.append(
            PreviewEntry(
                item_id=plan.item.id,
                current_name=plan.item.current_name,
                proposed_name=plan.proposed_name,
                status=status,
                message=message,
                current_segments=current_segments,
                proposed_segments=proposed_segments,
            )
        )

    summary = PreviewSummary(
        changed_items=sum(1 for plan in plans if plan.proposed_name != plan.item.current_name),
        total_items=len(plans),
        applicable_rules=sum(
            1 for impact in impacts if impact.applicable and not impact.invalid_pattern
        ),
        has_invalid_rules=any(impact.invalid_pattern for impact in impacts),
        rule_impacts=impacts,
    )
    return PreviewResult(entries=entries, summary=summary)
