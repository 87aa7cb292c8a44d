"""Cue-sheet title template used by ``CUE_SHEET`` rename rules.

Names are expected as ``Production   Episode Title  Ep No. N`` (three spaces
between production and the rest, two before the episode number), or
``Production   Ep No. N`` when there is no episode title.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Literal

MAX_TITLE_LENGTH = 60
ELLIPSIS = ". . ."
PRODUCTION_SEPARATOR = "   "
EPISODE_SEPARATOR = "  "

# English, Spanish and French leading articles, matched in this order.
ARTICLES = (
    "a", "an", "the",
    "el", "la", "los", "las", "un", "una", "unos", "unas",
    "le", "les", "une", "des", "l'",
)

TitleStatus = Literal["valid", "modified", "truncated", "error"]

_PDF_EXTENSION_RE = re.compile(r"\.pdf$", re.IGNORECASE)
_EPISODE_TOKEN_RE = re.compile(r"^ep\.?\s*no\.?\s*(.*)$", re.IGNORECASE)
_PART_SUFFIX_RE = re.compile(r"(\d+)([ab])\b")
_ELLIPSIS_VARIANTS = (re.compile(r"\.{3,}"), re.compile(r"\s?\.\s?\.\s?\."))
_TRAILING_PUNCT = (",", ".", "'", "!")


@dataclass(frozen=True)
class TitleOutcome:
    title: str
    status: TitleStatus


@dataclass(frozen=True)
class TitleParts:
    production: str
    episode_number: str
    episode_title: str | None = None


def format_cue_title(name: str, has_episode_title: bool) -> TitleOutcome:
    """Normalize a name to the cue-sheet title convention."""

    parts = split_title(_PDF_EXTENSION_RE.sub("", name), has_episode_title)
    if parts is None:
        return TitleOutcome(title=name, status="error")

    normalized = _normalize(parts)
    sanitized = _sanitize_ellipses(normalized)
    status: TitleStatus = "modified" if sanitized != parts else "valid"

    if title_length(sanitized) > MAX_TITLE_LENGTH:
        sanitized = _truncate(sanitized)
        status = "truncated"

    return TitleOutcome(title=build_title(sanitized), status=status)


def split_title(text: str, has_episode_title: bool) -> TitleParts | None:
    production, _, rest = text.partition(PRODUCTION_SEPARATOR)
    if not production or not rest:
        return None
    if not has_episode_title:
        return TitleParts(production=production, episode_number=rest)

    episode_title, _, episode_number = rest.partition(EPISODE_SEPARATOR)
    if not episode_title or not episode_number:
        return None
    return TitleParts(
        production=production,
        episode_number=episode_number,
        episode_title=episode_title,
    )


def move_article(title: str) -> str:
    """Move a leading article to the end: ``The Fall`` -> ``Fall, The``."""

    lowered = title.lower()
    for article in ARTICLES:
        prefix = article if article == "l'" else f"{article} "
        if lowered.startswith(prefix):
            remainder = title[len(prefix) :].strip()
            return f"{remainder}, {title[: len(prefix)].strip()}"
    return title


def format_episode_number(token: str) -> str:
    match = _EPISODE_TOKEN_RE.match(token)
    if match is None:
        return token
    return f"Ep No. {match.group(1).strip()}"


def title_case(title: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in title.lower().split(" "))


def title_length(
    parts: TitleParts, *, pad_production: bool = False, pad_episode: bool = False
) -> int:
    production = parts.production.strip()
    episode_title = (parts.episode_title or "").strip()
    episode_number = parts.episode_number.strip()

    production_pad = len(ELLIPSIS) if pad_production and not production.endswith(ELLIPSIS) else 0
    episode_pad = len(ELLIPSIS) if pad_episode and not episode_title.endswith(ELLIPSIS) else 0

    length = len(production) + production_pad + len(PRODUCTION_SEPARATOR) + len(episode_number)
    if parts.episode_title:
        length += len(episode_title) + episode_pad + len(EPISODE_SEPARATOR)
    return length


def build_title(parts: TitleParts) -> str:
    if parts.episode_title:
        return (
            f"{parts.production.upper()}{PRODUCTION_SEPARATOR}"
            f"{title_case(parts.episode_title)}{EPISODE_SEPARATOR}{parts.episode_number}"
        )
    return f"{parts.production.upper()}{PRODUCTION_SEPARATOR}{parts.episode_number}"


def _normalize(parts: TitleParts) -> TitleParts:
    episode_title = parts.episode_title.strip() if parts.episode_title is not None else None
    if episode_title:
        episode_title = move_article(episode_title)

    episode_number = format_episode_number(parts.episode_number.strip())
    episode_number = episode_number.replace("&", "-", 1)
    episode_number = _PART_SUFFIX_RE.sub(
        lambda match: match.group(1) + match.group(2).upper(), episode_number
    )

    return TitleParts(
        production=move_article(parts.production.strip()),
        episode_number=episode_number,
        episode_title=episode_title,
    )


def _sanitize_ellipses(parts: TitleParts) -> TitleParts:
    def clean(text: str) -> str:
        for pattern in _ELLIPSIS_VARIANTS:
            text = pattern.sub(ELLIPSIS, text)
        return text

    episode_title = clean(parts.episode_title) if parts.episode_title else parts.episode_title
    return replace(parts, production=clean(parts.production), episode_title=episode_title)


def _remove_trailing_punct(text: str) -> str:
    while text and text[-1] in _TRAILING_PUNCT:
        text = text[:-1].rstrip()
    return text


def _truncate(parts: TitleParts) -> TitleParts:
    production = parts.production
    episode_title = parts.episode_title
    episode_truncated = False
    production_truncated = False

    while production and (
        title_length(
            TitleParts(production, parts.episode_number, episode_title),
            pad_production=not episode_title or production_truncated,
            pad_episode=episode_truncated,
        )
        > MAX_TITLE_LENGTH
    ):
        if episode_title and len(episode_title) > 3:
            episode_title = episode_title[:-1].rstrip()
            episode_truncated = True
        else:
            production = production[:-1].rstrip()
            production_truncated = True

    if episode_truncated and episode_title and not episode_title.endswith(ELLIPSIS):
        episode_title = _remove_trailing_punct(episode_title).rstrip() + ELLIPSIS
    if production_truncated and not production.endswith(ELLIPSIS):
        production = _remove_trailing_punct(production).rstrip() + ELLIPSIS

    return TitleParts(
        production=production.strip(),
        episode_number=parts.episode_number,
        episode_title=episode_title.strip() if episode_title else episode_title,
    )
