"""Monotonic request ids for dropping superseded responses."""

from __future__ import annotations


class RequestFence:
    """Issue strictly increasing ids; only the latest issued id is current."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, request_id: int) -> bool:
        return self._latest > 0 and request_id == self._latest
