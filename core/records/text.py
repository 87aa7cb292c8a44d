"""Line splitting shared by the coordinator and record parsers."""

from __future__ import annotations

import re

_LINE_BREAK_RE = re.compile(r"\r?\n")


def split_lines(text: str) -> tuple[list[str], str]:
    """Split text on ``\\r?\\n`` and report the separator used to rejoin slices.

    A final line break terminates the last line; it does not start a new one.
    """

    separator = "\r\n" if "\r\n" in text else "\n"
    lines = _LINE_BREAK_RE.split(text)
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines, separator
