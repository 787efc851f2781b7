"""
Mise Host — Panel Session

Per-panel state: the channel back to the panel, the paths produced by the
last successful generation of each kind, and the in-flight guard that keeps
one run per workflow at a time.  A session lives exactly as long as its
panel.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator

from host.errors import WorkflowBusyError
from host.interfaces import WebviewChannel
from host.progress import CancellationToken

logger = logging.getLogger("mise.panel.session")


@dataclass(frozen=True)
class GeneratedPaths:
    primary: Path
    secondary: Path | None = None


class PanelSession:
    """Channel for one live panel plus its session state."""

    def __init__(self, webview: WebviewChannel):
        self._webview = webview
        self.last_generated: dict[str, GeneratedPaths] = {}
        self._in_flight: dict[str, CancellationToken] = {}
        self.disposed = False

    async def post_message(self, message: dict[str, Any]) -> bool:
        if self.disposed:
            logger.debug("Session disposed; dropping %s", message.get("command"))
            return False
        return await self._webview.post_message(message)

    # -- generated paths -----------------------------------------------------

    def remember(self, kind: str, primary: Path, secondary: Path | None = None) -> GeneratedPaths:
        paths = GeneratedPaths(primary=primary, secondary=secondary)
        self.last_generated[kind] = paths
        return paths

    def last(self, kind: str) -> GeneratedPaths | None:
        return self.last_generated.get(kind)

    # -- in-flight guard -----------------------------------------------------

    def is_running(self, operation: str) -> bool:
        return operation in self._in_flight

    @asynccontextmanager
    async def guard(self, operation: str) -> AsyncIterator[CancellationToken]:
        """Hold the in-flight slot for ``operation``; raise if already held."""
        if operation in self._in_flight:
            raise WorkflowBusyError(operation)
        token = CancellationToken(operation)
        self._in_flight[operation] = token
        try:
            yield token
        finally:
            if self._in_flight.get(operation) is token:
                del self._in_flight[operation]

    def cancel(self, operation: str | None = None) -> list[str]:
        """Cancel one in-flight operation, or all of them. Returns what was cancelled."""
        names = [operation] if operation else list(self._in_flight)
        cancelled = []
        for name in names:
            token = self._in_flight.get(name)
            if token is not None:
                token.cancel()
                cancelled.append(name)
        return cancelled

    def dispose(self) -> None:
        self.cancel()
        self.last_generated.clear()
        self.disposed = True
