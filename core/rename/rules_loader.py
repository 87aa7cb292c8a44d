"""Rule-set loading from YAML for rename previews."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.rename.models import TransformRule


def load_rules(path: Path) -> list[TransformRule]:
    """Load and validate an ordered rule list from YAML.

    Accepts either a top-level list or a mapping with a ``rules`` list.
    Rules without an explicit ``position`` take their list index.
    """

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Rules file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in rules file: {path}") from exc

    if isinstance(raw, dict):
        raw = raw.get("rules")
    if not isinstance(raw, list):
        raise ValueError(f"Rules file must contain a list of rules: {path}")

    rules: list[TransformRule] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"Rule #{index + 1} must be a mapping: {path}")
        payload = dict(item)
        payload.setdefault("name", f"rule-{index + 1}")
        payload.setdefault("position", index)
        try:
            rules.append(TransformRule.model_validate(payload))
        except ValidationError as exc:
            raise ValueError(f"Invalid rule #{index + 1} in rules file: {path}") from exc
    return rules
