"""CLI I/O helpers: input reading and atomic output writing."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from core.records.models import ParsedRecord, ParseResult
from core.rename.models import PreviewResult


def read_input_text(path: Path) -> str:
    """Read a record file as UTF-8 text; failures surface as ValueError."""

    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ValueError(f"Input file not found: {path}") from exc
    except IsADirectoryError as exc:
        raise ValueError(f"Input path is a directory: {path}") from exc
    except UnicodeDecodeError as exc:
        raise ValueError(f"Input file is not valid UTF-8: {path}") from exc


def read_names(path: Path) -> list[str]:
    """Read one item name per line, skipping blank lines."""

    text = read_input_text(path)
    return [line.rstrip("\r") for line in text.split("\n") if line.strip()]


def parse_result_payload(result: ParseResult) -> dict[str, Any]:
    return result.to_dict()


def search_payload(
    query: str,
    records: list[ParsedRecord],
    matches: list[int],
    *,
    limit: int | None = None,
) -> dict[str, Any]:
    shown = matches if limit is None else matches[:limit]
    return {
        "query": query,
        "total": len(matches),
        "matches": [{"index": index, **records[index].to_dict()} for index in shown],
    }


def preview_payload(preview: PreviewResult) -> dict[str, Any]:
    return preview.model_dump(mode="json")


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    """Write a JSON artifact atomically using a temporary file + replace."""

    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(path, payload)


def write_rename_plan_atomic(path: Path, preview: PreviewResult) -> None:
    """Write the preview as a YAML rename plan (from/to/status per item) atomically."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "renames": [
            {
                "id": entry.item_id,
                "from": entry.current_name,
                "to": entry.proposed_name,
                "status": entry.status,
            }
            for entry in preview.entries
        ]
    }

    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(payload, handle, allow_unicode=True, sort_keys=False)
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)
