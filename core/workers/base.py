"""Queue-backed background worker base class."""

from __future__ import annotations

import asyncio
import logging
from typing import Generic, TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")

_logger = logging.getLogger("cuebench.workers")


class BackgroundWorker(Generic[InT, OutT]):
    """Process inbound messages one at a time on its own task.

    Inbound messages go through ``post``; outbound messages are read with
    ``receive``. ``close`` stops the loop after already-posted messages.
    """

    name = "worker"

    def __init__(self) -> None:
        self._inbox: asyncio.Queue[InT | None] = asyncio.Queue()
        self._outbox: asyncio.Queue[OutT] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError(f"{self.name} worker already started")
        self._task = asyncio.create_task(self._run(), name=f"cuebench-{self.name}")

    def post(self, message: InT) -> None:
        self._inbox.put_nowait(message)

    async def receive(self) -> OutT:
        return await self._outbox.get()

    def receive_nowait(self) -> OutT | None:
        try:
            return self._outbox.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def pending(self) -> int:
        return self._outbox.qsize()

    async def close(self) -> None:
        if self._task is None:
            return
        self._inbox.put_nowait(None)
        await self._task
        self._task = None

    async def __aenter__(self) -> BackgroundWorker[InT, OutT]:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def emit(self, message: OutT) -> None:
        self._outbox.put_nowait(message)

    async def handle(self, message: InT) -> None:
        raise NotImplementedError

    def on_failure(self, message: InT, exc: Exception) -> None:
        """Report an unexpected handler failure; the loop keeps running."""

        _logger.exception("%s worker failed on %s", self.name, type(message).__name__)

    async def drain(self) -> None:
        """Wait for work still in flight after the inbox closes."""

    async def _run(self) -> None:
        while True:
            message = await self._inbox.get()
            if message is None:
                break
            try:
                await self.handle(message)
            except Exception as exc:  # noqa: BLE001
                self.on_failure(message, exc)
        await self.drain()
