"""Pipeline settings loaded from YAML with environment overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

_ENV_OVERRIDES = {
    "parse_chunk_lines": "CUEBENCH_PARSE_CHUNK_LINES",
    "max_records": "CUEBENCH_MAX_RECORDS",
    "search_window": "CUEBENCH_SEARCH_WINDOW",
    "preview_chunk_items": "CUEBENCH_PREVIEW_CHUNK_ITEMS",
}


class PipelineSettings(BaseModel):
    """Chunking and safety limits for the background pipeline."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    parse_chunk_lines: int = Field(default=4000, gt=0)
    max_records: int = Field(default=300_000, gt=0)
    search_window: int = Field(default=2000, gt=0)
    preview_chunk_items: int = Field(default=500, gt=0)


def load_settings(path: Path | None = None) -> PipelineSettings:
    """Load and validate pipeline settings from YAML, then apply env overrides."""

    settings_path = path or Path(__file__).with_name("settings.yaml")

    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Settings file not found: {settings_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in settings file: {settings_path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain a mapping: {settings_path}")

    try:
        settings = PipelineSettings.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid settings schema: {settings_path}") from exc

    overrides: dict[str, int] = {}
    for field_name, env_name in _ENV_OVERRIDES.items():
        value = _positive_int_from_env(env_name)
        if value is not None:
            overrides[field_name] = value
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


def _positive_int_from_env(env_name: str) -> int | None:
    raw = os.getenv(env_name)
    if raw is None:
        return None
    try:
        parsed = int(raw)
    except ValueError:
        return None
    return parsed if parsed > 0 else None
