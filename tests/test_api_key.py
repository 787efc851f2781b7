"""API key handlers and masking."""

from __future__ import annotations

import pytest

from mise_fakes import make_host, make_session

from host.errors import PreconditionError
from host_config import API_KEY_SECRET_NAME
from webview.commands import DeleteApiKey, GetApiKey, SaveApiKey, WebviewReady
from webview.handlers import handle_delete_api_key, handle_get_api_key, handle_save_api_key
from webview.handlers.api_key import mask_api_key


def test_mask_never_contains_full_key() -> None:
    key = "sk-proj-abcdefghijklmnopqrstuvwxyz123456"
    hint = mask_api_key(key)
    assert hint == "sk-...3456"
    assert key not in hint
    assert len(hint) <= 10
    assert mask_api_key("short") == "****"
    assert mask_api_key("exactly-11c") == "****"


@pytest.mark.asyncio
async def test_status_without_key(tmp_path) -> None:
    host, _, _ = make_host(tmp_path, api_key=None)
    session, channel = make_session()

    status = await handle_get_api_key(GetApiKey(), host, session)

    assert status == {"command": "apiKeyStatus", "present": False}
    assert channel.messages == [status]


@pytest.mark.asyncio
async def test_save_then_status_is_masked(tmp_path) -> None:
    host, window, _ = make_host(tmp_path, api_key=None)
    session, channel = make_session()
    key = "sk-live-0123456789abcdef"

    await handle_save_api_key(SaveApiKey(api_key=key), host, session)

    assert host.secrets.values[API_KEY_SECRET_NAME] == key
    for message in channel.messages:
        assert key not in str(message)
    assert channel.messages[-1]["present"] is True
    assert channel.messages[-1]["hint"] == "sk-...cdef"
    assert window.infos == ["API key saved."]


@pytest.mark.asyncio
async def test_empty_key_is_rejected(tmp_path) -> None:
    host, _, _ = make_host(tmp_path, api_key=None)
    session, channel = make_session()

    with pytest.raises(PreconditionError):
        await handle_save_api_key(SaveApiKey(api_key="   "), host, session)
    assert host.secrets.values == {}
    assert channel.messages == []


@pytest.mark.asyncio
async def test_delete_key(tmp_path) -> None:
    host, _, _ = make_host(tmp_path)
    session, channel = make_session()

    await handle_delete_api_key(DeleteApiKey(), host, session)

    assert API_KEY_SECRET_NAME not in host.secrets.values
    assert channel.messages[-1] == {"command": "apiKeyStatus", "present": False}


@pytest.mark.asyncio
async def test_ready_reports_existing_artifacts(tmp_path) -> None:
    host, _, _ = make_host(tmp_path)
    paths = host.config.paths
    for directory in (paths.prd, paths.context_cards, paths.diagrams):
        directory.mkdir(parents=True)
    (paths.prd / "checkout.md").write_text("# Checkout")
    (paths.prd / "checkout.json").write_text("{}")
    (paths.context_cards / "billing.md").write_text("# Card")
    (paths.context_cards / "orders.md").write_text("# Card")
    (paths.diagrams / "data_flow_diagram.md").write_text("flowchart TD")
    session, channel = make_session()

    await handle_get_api_key(WebviewReady(), host, session)

    assert [m["command"] for m in channel.messages] == ["apiKeyStatus", "project-state-update"]
    state = channel.of("project-state-update")[0]["projectState"]
    assert state["hasPRD"] is True
    assert state["prdCount"] == 1
    assert state["prdFiles"] == [str(paths.prd / "checkout.md")]
    assert state["hasContextCards"] is True
    assert state["contextCardCount"] == 2
    assert state["hasDataFlowDiagram"] is True
    assert state["hasComponentHierarchy"] is False
    assert state["hasContextTemplates"] is False


@pytest.mark.asyncio
async def test_ready_without_workspace_reports_empty_state(tmp_path) -> None:
    host, _, _ = make_host(None)
    session, channel = make_session()

    await handle_get_api_key(WebviewReady(), host, session)

    state = channel.of("project-state-update")[0]["projectState"]
    assert not any(v for k, v in state.items() if k.startswith("has"))
    assert state["prdCount"] == 0


@pytest.mark.asyncio
async def test_ready_falls_back_to_empty_state_when_scan_fails(tmp_path, monkeypatch) -> None:
    host, _, _ = make_host(tmp_path)
    host.config.paths.prd.mkdir(parents=True)
    (host.config.paths.prd / "a.md").write_text("# A")

    async def broken(path):
        raise OSError("disk went away")

    monkeypatch.setattr(host.fs, "read_directory", broken)
    session, channel = make_session()

    await handle_get_api_key(WebviewReady(), host, session)

    state = channel.of("project-state-update")[0]["projectState"]
    assert state["hasPRD"] is False
    assert state["prdFiles"] == []
