"""Rule compilation and single-rule application for rename previews."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from core.rename.models import TransformRule
from core.utils.errors import RuleCompileError

# Replacement targets that route a rule to the cue-sheet title template.
# The value says whether names carry an episode title segment.
TEMPLATE_TARGETS: dict[str, bool] = {
    "CUE_SHEET": True,
    "CUE_SHEET_NO_EP": False,
}

_REPLACEMENT_TOKEN_RE = re.compile(r"\$(?:(\$)|(&)|(\d{1,2})|<([^>]*)>)")


@dataclass(frozen=True)
class PreparedRule:
    """A rule with its compiled pattern or compile error."""

    rule: TransformRule
    pattern: re.Pattern[str] | None = None
    error: str | None = None

    @property
    def template_has_episode(self) -> bool | None:
        return TEMPLATE_TARGETS.get(self.rule.replace)

    @property
    def is_template(self) -> bool:
        return self.rule.replace in TEMPLATE_TARGETS

    @property
    def applicable(self) -> bool:
        return self.rule.enabled and (self.is_template or bool(self.rule.search))


def ordered_rules(rules: Iterable[TransformRule]) -> list[TransformRule]:
    """Return rules in ordinal order; ties keep their input order."""

    return sorted(rules, key=lambda rule: rule.position)


def compile_rule(rule: TransformRule) -> re.Pattern[str]:
    """Compile a rule's search field; literal rules match the exact text."""

    flags = re.IGNORECASE if rule.case_insensitive else 0
    source = rule.search if rule.kind == "regex" else re.escape(rule.search)
    try:
        return re.compile(source, flags)
    except re.error as exc:
        raise RuleCompileError(
            f"Invalid pattern in rule {rule.name!r}: {exc}",
            rule_name=rule.name,
            pattern=rule.search,
        ) from exc


def prepare_rules(rules: Iterable[TransformRule]) -> list[PreparedRule]:
    """Compile every enabled, applicable non-template rule once per preview."""

    prepared: list[PreparedRule] = []
    for rule in ordered_rules(rules):
        if not rule.enabled or rule.replace in TEMPLATE_TARGETS or not rule.search:
            prepared.append(PreparedRule(rule=rule))
            continue
        try:
            prepared.append(PreparedRule(rule=rule, pattern=compile_rule(rule)))
        except RuleCompileError as exc:
            prepared.append(PreparedRule(rule=rule, error=str(exc)))
    return prepared


def apply_rule(name: str, prepared: PreparedRule) -> str:
    """Replace every match of a compiled rule in ``name``."""

    if prepared.pattern is None:
        return name
    replacement = prepared.rule.replace
    if prepared.rule.kind == "literal":
        return prepared.pattern.sub(lambda _match: replacement, name)
    return prepared.pattern.sub(lambda match: expand_replacement(match, replacement), name)


def expand_replacement(match: re.Match[str], template: str) -> str:
    """Expand ``$n``, ``$<name>``, ``$&`` and ``$$`` tokens against a match.

    Tokens naming a group the pattern does not have are kept literally;
    groups that did not participate in the match expand to "".
    """

    group_count = match.re.groups
    named_groups = match.re.groupindex

    def _token(token: re.Match[str]) -> str:
        dollar, whole, digits, group_name = token.groups()
        if dollar is not None:
            return "$"
        if whole is not None:
            return match.group(0)
        if digits is not None:
            if len(digits) == 2 and 1 <= int(digits) <= group_count:
                return match.group(int(digits)) or ""
            first = int(digits[0])
            if 1 <= first <= group_count:
                return (match.group(first) or "") + digits[1:]
            return token.group(0)
        if not named_groups:
            return token.group(0)
        if group_name in named_groups:
            return match.group(group_name) or ""
        return ""

    return _REPLACEMENT_TOKEN_RE.sub(_token, template)
