from __future__ import annotations

import pytest

from core.rename.cue_titles import TitleOutcome
from core.rename.models import NamedItem, TransformRule
from core.rename.preview import compute_preview, compute_preview_chunked, is_valid_name


def _items(*names: str) -> list[NamedItem]:
    return [NamedItem.from_name(name, item_id=f"item-{index}") for index, name in enumerate(names)]


def test_regex_scenario_produces_expected_name() -> None:
    rule = TransformRule(
        name="episode",
        kind="regex",
        search=r"^(.+)\s-\s(\d+)\s-\s(.+)$",
        replace="$1   $3  Ep No. $2",
    )

    preview = compute_preview(_items("Show - 101 - Intro"), [rule])

    entry = preview.entries[0]
    assert entry.proposed_name == "Show   Intro  Ep No. 101"
    assert entry.status == "valid"
    assert "".join(segment.text for segment in entry.current_segments) == "Show - 101 - Intro"
    assert "".join(segment.text for segment in entry.proposed_segments) == entry.proposed_name
    assert entry.proposed_segments[0].text.startswith("Show")
    assert entry.proposed_segments[0].changed is False


def test_identical_proposals_are_duplicates_and_unique_one_is_valid() -> None:
    rule = TransformRule(name="merge", kind="regex", search=r"^[ab]\.txt$", replace="same.txt")

    preview = compute_preview(_items("a.txt", "b.txt", "c.txt"), [rule])

    assert [entry.status for entry in preview.entries] == ["duplicate", "duplicate", "valid"]
    assert preview.entries[0].message is not None
    assert preview.summary.changed_items == 2
    assert preview.summary.rule_impacts[0].changed_items == 2


def test_rules_apply_in_position_order_and_chain() -> None:
    rules = [
        TransformRule(name="second", search="b", replace="c", position=2),
        TransformRule(name="first", search="a", replace="b", position=1),
    ]

    preview = compute_preview(_items("a"), rules)

    assert preview.entries[0].proposed_name == "c"
    assert [impact.rule_name for impact in preview.summary.rule_impacts] == ["first", "second"]


def test_disabled_rules_are_skipped() -> None:
    rules = [TransformRule(name="off", search="a", replace="z", enabled=False)]

    preview = compute_preview(_items("abc"), rules)

    assert preview.entries[0].proposed_name == "abc"
    assert preview.summary.applicable_rules == 0
    assert preview.summary.rule_impacts[0].enabled is False


def test_invalid_pattern_marks_items_error_without_aborting_batch() -> None:
    rules = [
        TransformRule(name="broken", kind="regex", search="(", position=0),
        TransformRule(name="upper", search="x", replace="X", position=1),
    ]

    preview = compute_preview(_items("x1", "x2"), rules)

    assert [entry.status for entry in preview.entries] == ["error", "error"]
    assert "broken" in (preview.entries[0].message or "")
    assert [entry.proposed_name for entry in preview.entries] == ["X1", "X2"]
    assert preview.summary.has_invalid_rules is True
    assert preview.summary.applicable_rules == 1
    assert preview.summary.rule_impacts[0].invalid_pattern is True


def test_disabled_invalid_rule_is_not_reported() -> None:
    rules = [TransformRule(name="broken", kind="regex", search="(", enabled=False)]

    preview = compute_preview(_items("x"), rules)

    assert preview.entries[0].status == "valid"
    assert preview.summary.has_invalid_rules is False


@pytest.mark.parametrize("proposed", ["", "   ", "a/b", 'quote"d', "what?"])
def test_unsafe_names_are_invalid(proposed: str) -> None:
    rule = TransformRule(name="swap", kind="regex", search="^.*$", replace=proposed)

    preview = compute_preview(_items("name"), [rule])

    assert preview.entries[0].status == "invalid"


def test_error_takes_precedence_over_duplicate() -> None:
    rules = [
        TransformRule(name="broken", kind="regex", search="[", position=0),
        TransformRule(name="same", kind="regex", search="^.*$", replace="x", position=1),
    ]

    preview = compute_preview(_items("a", "b"), rules)

    assert {entry.status for entry in preview.entries} == {"error"}


def test_invalid_takes_precedence_over_duplicate() -> None:
    rule = TransformRule(name="slash", kind="regex", search="^.*$", replace="a/b")

    preview = compute_preview(_items("one", "two"), [rule])

    assert {entry.status for entry in preview.entries} == {"invalid"}


def test_cue_sheet_template_rule() -> None:
    rule = TransformRule(name="titles", search="", replace="CUE_SHEET")

    preview = compute_preview(_items("The Show   Pilot  ep no 1"), [rule])

    entry = preview.entries[0]
    assert entry.proposed_name == "SHOW, THE   Pilot  Ep No. 1"
    assert entry.status == "valid"
    assert entry.message is None


def test_cue_sheet_template_truncation_adds_note() -> None:
    rule = TransformRule(name="titles", search="", replace="CUE_SHEET")
    name = "The Series That Would Never End   The Episode Title That Is Way Too Long  Ep No. 123"

    preview = compute_preview(_items(name), [rule])

    entry = preview.entries[0]
    assert entry.proposed_name == "SERIES THAT WOULD NEVER END, THE   Episode. . .  Ep No. 123"
    assert entry.status == "valid"
    assert entry.message is not None and "shortened" in entry.message


def test_template_layout_mismatch_is_item_error() -> None:
    rule = TransformRule(name="titles", search="", replace="CUE_SHEET")

    preview = compute_preview(_items("NoSeparatorsHere", "Show   Pilot  Ep No. 2"), [rule])

    assert preview.entries[0].status == "error"
    assert "CUE_SHEET" in (preview.entries[0].message or "")
    assert preview.entries[1].status == "valid"


def test_template_exception_is_item_error() -> None:
    def exploding_template(name: str, has_episode_title: bool) -> TitleOutcome:
        if name.startswith("bad"):
            raise ValueError("boom")
        return TitleOutcome(title=name.upper(), status="modified")

    rule = TransformRule(name="titles", search="", replace="CUE_SHEET_NO_EP")

    preview = compute_preview(
        _items("bad one", "good one"), [rule], title_template=exploding_template
    )

    assert preview.entries[0].status == "error"
    assert "boom" in (preview.entries[0].message or "")
    assert preview.entries[1].proposed_name == "GOOD ONE"


def test_unchanged_entry_has_single_unchanged_segment() -> None:
    preview = compute_preview(_items("same"), [])

    entry = preview.entries[0]
    assert [(segment.text, segment.changed) for segment in entry.current_segments] == [
        ("same", False)
    ]
    assert entry.proposed_segments == entry.current_segments
    assert preview.summary.changed_items == 0
    assert preview.summary.total_items == 1


def test_preview_helpers() -> None:
    rule = TransformRule(name="dash", search=" ", replace="-")

    preview = compute_preview(_items("a b", "c"), [rule])

    assert preview.proposed_names() == {"item-0": "a-b", "item-1": "c"}
    assert preview.statuses() == {"item-0": "valid", "item-1": "valid"}
    assert preview.entry_for("item-1") is not None
    assert preview.entry_for("missing") is None


@pytest.mark.anyio
async def test_chunked_preview_matches_single_pass() -> None:
    items = _items(*(f"Show - {index} - Part" for index in range(7)), "Show - 1 - Part")
    rules = [
        TransformRule(
            name="episode",
            kind="regex",
            search=r"^(.+)\s-\s(\d+)\s-\s(.+)$",
            replace="$1   $3  Ep No. $2",
        )
    ]

    chunked = await compute_preview_chunked(items, rules, chunk_items=3)

    assert chunked == compute_preview(items, rules)
    assert chunked.entries[1].status == "duplicate"
    assert chunked.entries[7].status == "duplicate"


def test_is_valid_name() -> None:
    assert is_valid_name("Show   Intro  Ep No. 101") is True
    assert is_valid_name("") is False
    assert is_valid_name("a|b") is False
