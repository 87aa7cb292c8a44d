#!/usr/bin/env python3
"""Summarize cuebench JSON event logs for ops/CI usage.

Lines may carry a logging prefix (``INFO cuebench.parse ...``) before the
JSON payload; everything from the first ``{`` is parsed.
"""

from __future__ import annotations

import argparse
import json
import math
from collections import Counter
from pathlib import Path
from typing import Any


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Summarize cuebench structured logs.")
    parser.add_argument("files", nargs="+", help="One or more log files.")
    parser.add_argument("--json", action="store_true", help="Output JSON.")
    return parser.parse_args()


def _percentile(values: list[int], p: float) -> int | None:
    if not values:
        return None
    ordered = sorted(values)
    index = min(len(ordered) - 1, max(0, math.ceil((p / 100) * len(ordered)) - 1))
    return ordered[index]


def _extract_payload(line: str) -> Any:
    start = line.find("{")
    if start < 0:
        raise ValueError("no JSON payload")
    return json.loads(line[start:])


def summarize_log_files(paths: list[Path]) -> dict[str, Any]:
    event_counts: Counter[str] = Counter()
    durations: dict[str, list[int]] = {}
    early_stops: list[dict[str, Any]] = []
    stale_drops: Counter[str] = Counter()
    parse_errors = 0
    lines_total = 0

    for path in paths:
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except Exception:  # noqa: BLE001
            parse_errors += 1
            continue

        for line in lines:
            lines_total += 1
            raw = line.strip()
            if not raw:
                continue

            try:
                payload = _extract_payload(raw)
            except Exception:  # noqa: BLE001
                parse_errors += 1
                continue

            if not isinstance(payload, dict):
                parse_errors += 1
                continue

            event = payload.get("event")
            if not isinstance(event, str):
                parse_errors += 1
                continue
            event_counts[event] += 1

            duration_ms = payload.get("duration_ms")
            if isinstance(duration_ms, int | float):
                durations.setdefault(event, []).append(int(duration_ms))

            if event == "parse.early_stop":
                early_stops.append(
                    {
                        "request_id": payload.get("request_id"),
                        "limit": payload.get("limit"),
                        "records_seen": payload.get("records_seen"),
                    }
                )
            elif event == "stale.drop":
                stale_drops[str(payload.get("channel", "unknown"))] += 1

    return {
        "files": [str(path) for path in paths],
        "lines_total": lines_total,
        "parse_errors": parse_errors,
        "event_counts": dict(sorted(event_counts.items())),
        "early_stops": early_stops,
        "stale_drops": dict(sorted(stale_drops.items())),
        "duration_ms": {
            event: {"p50": _percentile(values, 50), "p95": _percentile(values, 95)}
            for event, values in sorted(durations.items())
        },
    }


def main() -> None:
    args = _parse_args()
    paths = [Path(item).expanduser() for item in args.files]
    summary = summarize_log_files(paths)

    if args.json:
        print(json.dumps(summary, ensure_ascii=False, indent=2, sort_keys=True))
        return

    print("cuebench Log Summary")
    print(f"files={len(summary['files'])}")
    print(f"lines_total={summary['lines_total']}")
    print(f"parse_errors={summary['parse_errors']}")
    print(f"event_counts={summary['event_counts']}")
    print(f"early_stops={len(summary['early_stops'])}")
    print(f"stale_drops={summary['stale_drops']}")
    for event, stats in summary["duration_ms"].items():
        print(f"{event}_ms_p50={stats['p50']} {event}_ms_p95={stats['p95']}")


if __name__ == "__main__":
    main()
