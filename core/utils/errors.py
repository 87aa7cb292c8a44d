"""Custom exceptions for core logic."""

from __future__ import annotations


class RecordParseError(Exception):
    """Raised when the record parser fails on a slice; fatal for the whole run."""

    def __init__(
        self,
        message: str,
        *,
        source: str,
        first_line: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.first_line = first_line
        self.cause = cause


class RuleCompileError(Exception):
    """Raised when a transform rule's search pattern cannot be compiled."""

    def __init__(self, message: str, *, rule_name: str, pattern: str) -> None:
        super().__init__(message)
        self.rule_name = rule_name
        self.pattern = pattern
