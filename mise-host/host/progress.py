"""Cancellation tokens and progress reporting for long-running workflows."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from host.errors import GenerationCancelled

if TYPE_CHECKING:
    from host.interfaces import WebviewChannel

logger = logging.getLogger("mise.progress")


class CancellationToken:
    """Cooperative cancellation flag backed by an ``asyncio.Event``."""

    def __init__(self, operation: str = ""):
        self.operation = operation
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.info("Cancellation requested: %s", self.operation or "operation")
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled(self.operation or "operation")


class ProgressReporter:
    """Posts ``progress`` messages for one operation to a panel channel."""

    def __init__(self, channel: "WebviewChannel", operation: str):
        self.channel = channel
        self.operation = operation
        self.last_percent = 0

    async def report(self, percent: int, message: str) -> None:
        percent = max(0, min(100, int(percent)))
        self.last_percent = percent
        logger.debug("%s %d%% %s", self.operation, percent, message)
        await self.channel.post_message({
            "command": "progress",
            "operation": self.operation,
            "percent": percent,
            "message": message,
        })
