"""
Mise Host — Websocket Panel

The panel UI runs in a browser tab served by ``api.py``.  A ``WebPanel``
owns the websocket(s) attached to it: inbound JSON frames are handed to the
registered message callback, and ``post_message`` pushes host messages out.
``WebWindow`` plays the part of the IDE window (notifications, quick picks,
document viewer) on top of the live panel.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from pathlib import Path
from typing import Any

from aiohttp import WSMsgType, web

from host.interfaces import DisposeCallback, MessageCallback

logger = logging.getLogger("mise.host.webview")

QUICK_PICK_TIMEOUT_SECONDS = 300
MAX_BACKLOG = 200


class WebPanel:
    """One panel instance; also serves as its own webview channel."""

    def __init__(self, window: "WebWindow", view_type: str, title: str):
        self.window = window
        self.view_type = view_type
        self.title = title
        self.html = ""
        self.disposed = False
        self.reveal_count = 0
        self._sockets: set[web.WebSocketResponse] = set()
        self._backlog: list[dict[str, Any]] = []
        self._message_callbacks: list[MessageCallback] = []
        self._dispose_callbacks: list[DisposeCallback] = []
        self._tasks: set[asyncio.Task] = set()

    # -- WebviewPanel --------------------------------------------------------

    @property
    def webview(self) -> "WebPanel":
        return self

    def reveal(self) -> None:
        self.reveal_count += 1
        logger.info("Revealing panel %s", self.view_type)
        self._spawn(self.post_message({"command": "reveal"}), tag="panel-reveal")

    def on_did_dispose(self, callback: DisposeCallback) -> None:
        self._dispose_callbacks.append(callback)

    def on_did_receive_message(self, callback: MessageCallback) -> None:
        self._message_callbacks.append(callback)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        for ws in list(self._sockets):
            self._spawn(ws.close(), tag="panel-close-socket")
        self._sockets.clear()
        self._backlog.clear()
        for callback in self._dispose_callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Panel dispose callback failed")
        self._dispose_callbacks.clear()
        self._message_callbacks.clear()

    # -- WebviewChannel ------------------------------------------------------

    async def post_message(self, message: dict[str, Any]) -> bool:
        if self.disposed:
            logger.debug("Dropping message for disposed panel: %s", message.get("command"))
            return False
        if not self._sockets:
            self._backlog.append(message)
            del self._backlog[:-MAX_BACKLOG]
            return True
        payload = json.dumps(message)
        delivered = False
        for ws in list(self._sockets):
            if ws.closed:
                self._sockets.discard(ws)
                continue
            try:
                await ws.send_str(payload)
                delivered = True
            except ConnectionResetError:
                self._sockets.discard(ws)
        return delivered

    # -- transport -----------------------------------------------------------

    async def attach(self, ws: web.WebSocketResponse) -> None:
        """Serve one websocket until it closes."""
        self._sockets.add(ws)
        backlog, self._backlog = self._backlog, []
        for message in backlog:
            await ws.send_str(json.dumps(message))
        logger.info("Websocket attached to panel (%d open)", len(self._sockets))
        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    self._on_frame(msg.data)
                elif msg.type == WSMsgType.ERROR:
                    logger.warning("Websocket error: %s", ws.exception())
        finally:
            self._sockets.discard(ws)
            logger.info("Websocket detached from panel (%d open)", len(self._sockets))

    def _on_frame(self, data: str) -> None:
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("Ignoring non-JSON frame from panel")
            return
        if not isinstance(message, dict):
            logger.warning("Ignoring non-object frame from panel: %r", type(message).__name__)
            return
        if message.get("command") == "quickPickResult":
            self.window.resolve_quick_pick(message.get("requestId"), message.get("selection"))
            return
        for callback in self._message_callbacks:
            self._spawn(callback(message), tag=f"panel-message-{message.get('command')}")

    def _spawn(self, coro, *, tag: str) -> None:
        """Run a coroutine in background and surface failures in logs."""
        task = asyncio.create_task(coro, name=tag)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.error("Background task failed: %s", tag, exc_info=exc)

        task.add_done_callback(_done)


class WebWindow:
    """Window facade over the currently live ``WebPanel``."""

    def __init__(self):
        self.panel: WebPanel | None = None
        self._request_ids = itertools.count(1)
        self._pending_picks: dict[str, asyncio.Future] = {}

    def create_webview_panel(self, view_type: str, title: str) -> WebPanel:
        panel = WebPanel(self, view_type, title)
        self.panel = panel

        def _forget() -> None:
            if self.panel is panel:
                self.panel = None
            for fut in self._pending_picks.values():
                if not fut.done():
                    fut.set_result(None)
            self._pending_picks.clear()

        panel.on_did_dispose(_forget)
        return panel

    async def _notify(self, level: str, text: str) -> None:
        if self.panel is not None:
            await self.panel.post_message({"command": "notification", "level": level, "text": text})

    async def show_information_message(self, text: str) -> None:
        logger.info(text)
        await self._notify("info", text)

    async def show_warning_message(self, text: str) -> None:
        logger.warning(text)
        await self._notify("warning", text)

    async def show_error_message(self, text: str) -> None:
        await self._notify("error", text)

    async def show_quick_pick(self, items: list[str], *, title: str) -> str | None:
        if self.panel is None:
            return None
        request_id = str(next(self._request_ids))
        fut = asyncio.get_running_loop().create_future()
        self._pending_picks[request_id] = fut
        await self.panel.post_message({
            "command": "quickPick",
            "requestId": request_id,
            "title": title,
            "items": items,
        })
        try:
            selection = await asyncio.wait_for(fut, timeout=QUICK_PICK_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.info("Quick pick %s timed out", request_id)
            return None
        finally:
            self._pending_picks.pop(request_id, None)
        return selection if selection in items else None

    def resolve_quick_pick(self, request_id: Any, selection: Any) -> None:
        fut = self._pending_picks.get(str(request_id))
        if fut is None or fut.done():
            logger.debug("Stale quick pick reply: %s", request_id)
            return
        fut.set_result(selection if isinstance(selection, str) else None)

    async def show_document(self, path: Path, content: str, *, language: str = "markdown") -> None:
        if self.panel is None:
            logger.warning("No panel to show %s", path)
            return
        await self.panel.post_message({
            "command": "showDocument",
            "path": str(path),
            "language": language,
            "content": content,
        })
