"""
Mise Host — Panel Manager

Owns the single PRD Generator panel.  ``create_and_show_panel()`` reveals
the live panel when there is one and creates a fresh one otherwise; the
panel's inbound messages are parsed and handed to the router, and any
exception a handler lets escape is reported through ``handle_error``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

from host.errors import ErrorContext, handle_error
from host.interfaces import HostContext, WebviewPanel
from panel.content import render_panel_html
from panel.session import PanelSession
from webview.commands import parse_message
from webview.router import MessageRouter

logger = logging.getLogger("mise.panel.manager")

VIEW_TYPE = "prdGenerator"
PANEL_TITLE = "PRD Generator"


class PanelState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class PanelManager:
    """Create-or-reveal lifecycle for the one live panel."""

    def __init__(
        self,
        host: HostContext,
        router: MessageRouter,
        *,
        render_html: Callable[[str], str] = render_panel_html,
    ):
        self.host = host
        self.router = router
        self._render_html = render_html
        self._panel: WebviewPanel | None = None
        self._session: PanelSession | None = None

    @property
    def state(self) -> PanelState:
        return PanelState.OPEN if self._panel is not None else PanelState.CLOSED

    @property
    def panel(self) -> WebviewPanel | None:
        return self._panel

    @property
    def session(self) -> PanelSession | None:
        return self._session

    def create_and_show_panel(self) -> WebviewPanel:
        if self._panel is not None:
            self._panel.reveal()
            return self._panel

        panel = self.host.window.create_webview_panel(VIEW_TYPE, PANEL_TITLE)
        try:
            panel.html = self._render_html(PANEL_TITLE)
        except Exception:
            logger.exception("Panel render failed; discarding panel")
            panel.dispose()
            raise

        session = PanelSession(panel.webview)
        self._panel = panel
        self._session = session
        panel.on_did_dispose(lambda: self._on_dispose(panel))
        panel.on_did_receive_message(
            lambda message: self._on_message(message, session),
        )
        logger.info("Panel created")
        return panel

    def close(self) -> None:
        if self._panel is not None:
            self._panel.dispose()

    def _on_dispose(self, panel: WebviewPanel) -> None:
        if self._panel is not panel:
            return
        if self._session is not None:
            self._session.dispose()
        self._panel = None
        self._session = None
        logger.info("Panel disposed")

    async def _on_message(self, raw: dict[str, Any], session: PanelSession) -> Any:
        message = parse_message(raw)
        try:
            return await self.router.route(message, self.host, session)
        except Exception as exc:
            await handle_error(
                exc,
                ErrorContext(operation=f"handle {raw.get('command')}", component="PanelManager"),
                self.host.window,
                session,
            )
            return None
