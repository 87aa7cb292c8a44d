"""Structured JSON log events shared by workers and the controller."""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    request_id: int | str | None,
    **fields: Any,
) -> None:
    """Log one event as a compact single-line JSON payload."""

    if not logger.isEnabledFor(level):
        return
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, dump_json(payload))


def dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
