from __future__ import annotations

from pathlib import Path

import pytest

from core.config.settings import load_settings


def test_load_default_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CUEBENCH_PARSE_CHUNK_LINES",
        "CUEBENCH_MAX_RECORDS",
        "CUEBENCH_SEARCH_WINDOW",
        "CUEBENCH_PREVIEW_CHUNK_ITEMS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.parse_chunk_lines == 4000
    assert settings.max_records == 300_000
    assert settings.search_window == 2000
    assert settings.preview_chunk_items == 500


def test_env_overrides_file_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("parse_chunk_lines: 100\nmax_records: 50\n", encoding="utf-8")
    monkeypatch.setenv("CUEBENCH_MAX_RECORDS", "7")

    settings = load_settings(path)

    assert settings.parse_chunk_lines == 100
    assert settings.max_records == 7


@pytest.mark.parametrize("raw", ["0", "-3", "lots"])
def test_bad_env_values_fall_back_to_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("search_window: 64\n", encoding="utf-8")
    monkeypatch.setenv("CUEBENCH_SEARCH_WINDOW", raw)

    assert load_settings(path).search_window == 64


def test_empty_settings_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")

    assert load_settings(path).preview_chunk_items == 500


def test_unknown_key_is_schema_error(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("chunk_size: 10\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid settings schema"):
        load_settings(path)


def test_non_positive_value_is_schema_error(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("max_records: 0\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid settings schema"):
        load_settings(path)


def test_missing_settings_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Settings file not found"):
        load_settings(tmp_path / "absent.yaml")


def test_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("max_records: [1, 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_settings(path)


def test_settings_must_be_mapping(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_settings(path)
