"""
Mise Host — HTTP API

Loopback HTTP server (127.0.0.1:8770 by default) that serves the panel page
and carries its message channel.

Endpoints:

    GET  /              Panel page (404 while the panel is closed).
    GET  /ws            Websocket carrying panel <-> host messages.
    POST /panel/open    Open the panel, or reveal it if already open.
    POST /panel/close   Close the panel.
    GET  /status        Panel state, protocol version, workspace, API key presence.
"""

from __future__ import annotations

import logging

from aiohttp import web

import host_config as cfg
from generation.common import get_api_key
from host.webview import WebPanel
from panel.manager import PanelManager, PanelState
from webview.commands import PROTOCOL_VERSION

logger = logging.getLogger("mise.api")

PANEL_MANAGER_KEY = web.AppKey("panel_manager", PanelManager)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def handle_index(request: web.Request) -> web.Response:
    panel = request.app[PANEL_MANAGER_KEY].panel
    if panel is None:
        return web.Response(status=404, text="Panel is closed. POST /panel/open to open it.")
    return web.Response(text=panel.html, content_type="text/html")


async def handle_ws(request: web.Request) -> web.StreamResponse:
    panel = request.app[PANEL_MANAGER_KEY].panel
    if not isinstance(panel, WebPanel):
        return web.json_response({"error": "Panel is closed."}, status=409)
    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)
    await panel.attach(ws)
    return ws


async def handle_open(request: web.Request) -> web.Response:
    manager = request.app[PANEL_MANAGER_KEY]
    revealed = manager.state is PanelState.OPEN
    try:
        manager.create_and_show_panel()
    except Exception as exc:
        logger.exception("Panel open failed")
        return web.json_response({"error": f"Failed to open panel: {exc}"}, status=500)
    return web.json_response({"state": manager.state.value, "revealed": revealed})


async def handle_close(request: web.Request) -> web.Response:
    manager = request.app[PANEL_MANAGER_KEY]
    manager.close()
    return web.json_response({"state": manager.state.value})


async def handle_status(request: web.Request) -> web.Response:
    manager = request.app[PANEL_MANAGER_KEY]
    host = manager.host
    return web.json_response({
        "panel": manager.state.value,
        "protocol_version": PROTOCOL_VERSION,
        "workspace_roots": [str(p) for p in host.workspace_roots],
        "output_root": str(host.config.paths.root) if host.config else None,
        "api_key_present": bool(await get_api_key(host)),
        "commands": manager.router.commands(),
    })


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(manager: PanelManager) -> web.Application:
    app = web.Application()
    app[PANEL_MANAGER_KEY] = manager
    app.router.add_get("/", handle_index)
    app.router.add_get("/ws", handle_ws)
    app.router.add_post("/panel/open", handle_open)
    app.router.add_post("/panel/close", handle_close)
    app.router.add_get("/status", handle_status)
    return app


async def start_http_api(manager: PanelManager) -> web.AppRunner:
    """Start the HTTP API server and return the runner."""
    app = create_app(manager)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, cfg.HTTP_HOST, cfg.HTTP_PORT)
    await site.start()
    logger.info("HTTP API listening on http://%s:%d", cfg.HTTP_HOST, cfg.HTTP_PORT)
    return runner
