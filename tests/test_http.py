"""HTTP surface: panel page, websocket channel, and the OpenAI client."""

from __future__ import annotations

import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from mise_fakes import make_host

from ai.service import OpenAIService
from api import create_app
from host.errors import AIResponseError, AIServiceError
from host.webview import WebWindow
from panel.manager import PanelManager
from webview.handlers import build_router


def _web_manager(tmp_path) -> tuple[PanelManager, WebWindow]:
    host, _, _ = make_host(tmp_path)
    window = WebWindow()
    host.window = window
    return PanelManager(host, build_router()), window


@pytest.mark.asyncio
async def test_open_reveal_close_over_http(tmp_path) -> None:
    manager, _ = _web_manager(tmp_path)
    async with TestClient(TestServer(create_app(manager))) as client:
        resp = await client.get("/")
        assert resp.status == 404

        resp = await client.post("/panel/open")
        assert await resp.json() == {"state": "open", "revealed": False}
        resp = await client.post("/panel/open")
        assert await resp.json() == {"state": "open", "revealed": True}

        resp = await client.get("/")
        assert resp.status == 200
        assert "PRD Generator" in await resp.text()

        status = await (await client.get("/status")).json()
        assert status["panel"] == "open"
        assert status["api_key_present"] is True
        assert "generate-prd" in status["commands"]

        resp = await client.post("/panel/close")
        assert await resp.json() == {"state": "closed"}


@pytest.mark.asyncio
async def test_websocket_roundtrip(tmp_path) -> None:
    manager, _ = _web_manager(tmp_path)
    manager.create_and_show_panel()
    async with TestClient(TestServer(create_app(manager))) as client:
        ws = await client.ws_connect("/ws")
        await ws.send_str(json.dumps({"command": "webviewReady"}))
        msg = await asyncio.wait_for(ws.receive_json(), timeout=5)
        assert msg["command"] == "apiKeyStatus"
        assert msg["present"] is True
        assert msg["hint"] == "sk-...cdef"
        await ws.close()


@pytest.mark.asyncio
async def test_quick_pick_over_websocket(tmp_path) -> None:
    manager, window = _web_manager(tmp_path)
    manager.create_and_show_panel()
    async with TestClient(TestServer(create_app(manager))) as client:
        ws = await client.ws_connect("/ws")
        pick = asyncio.create_task(window.show_quick_pick(["a.md", "b.md"], title="Pick"))
        request = await asyncio.wait_for(ws.receive_json(), timeout=5)
        assert request["command"] == "quickPick"
        await ws.send_str(json.dumps({
            "command": "quickPickResult",
            "requestId": request["requestId"],
            "selection": "b.md",
        }))
        assert await asyncio.wait_for(pick, timeout=5) == "b.md"
        await ws.close()


@pytest.mark.asyncio
async def test_messages_before_attach_are_delivered_on_connect(tmp_path) -> None:
    manager, window = _web_manager(tmp_path)
    manager.create_and_show_panel()
    await window.show_information_message("hello")
    async with TestClient(TestServer(create_app(manager))) as client:
        ws = await client.ws_connect("/ws")
        msg = await asyncio.wait_for(ws.receive_json(), timeout=5)
        assert msg == {"command": "notification", "level": "info", "text": "hello"}
        await ws.close()


# ---------------------------------------------------------------------------
# OpenAI client against a local stub server
# ---------------------------------------------------------------------------

async def _serve(handler) -> tuple[web.AppRunner, str]:
    app = web.Application()
    app.router.add_post("/v1/chat/completions", handler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    return runner, f"http://{host}:{port}/v1"


@pytest.mark.asyncio
async def test_openai_service_parses_json_reply() -> None:
    seen = {}

    async def handler(request: web.Request) -> web.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = await request.json()
        return web.json_response({
            "model": "gpt-4o",
            "choices": [{"message": {"content": '```json\n{"title": "X"}\n```'}}],
        })

    runner, base = await _serve(handler)
    try:
        service = OpenAIService("sk-abc", model="gpt-4o", base_url=base)
        response = await service.generate("idea", system_prompt="sys", json_mode=True)
    finally:
        await runner.cleanup()

    assert response.structured_json == {"title": "X"}
    assert response.model == "gpt-4o"
    assert seen["auth"] == "Bearer sk-abc"
    assert seen["body"]["messages"][0] == {"role": "system", "content": "sys"}
    assert seen["body"]["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_openai_service_maps_http_errors() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"error": {"message": "Incorrect API key provided"}}, status=401)

    runner, base = await _serve(handler)
    try:
        service = OpenAIService("bad", model="gpt-4o", base_url=base)
        with pytest.raises(AIServiceError) as info:
            await service.generate("idea")
    finally:
        await runner.cleanup()

    assert info.value.status == 401
    assert "Incorrect API key" in str(info.value)


@pytest.mark.asyncio
async def test_openai_service_empty_reply() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"choices": []})

    runner, base = await _serve(handler)
    try:
        service = OpenAIService("k", model="gpt-4o", base_url=base)
        with pytest.raises(AIResponseError):
            await service.generate("idea")
    finally:
        await runner.cleanup()
