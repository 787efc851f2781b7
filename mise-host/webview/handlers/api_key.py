"""API key status, save and delete; the ready handshake also reports project state."""

from __future__ import annotations

import logging
from typing import Any

from generation.common import get_api_key
from host.errors import PreconditionError
from host.interfaces import HostContext
from host_config import API_KEY_SECRET_NAME
from panel.session import PanelSession
from storage.project_state import detect_project_state
from webview.commands import (
    PROTOCOL_VERSION,
    Command,
    DeleteApiKey,
    GetApiKey,
    Outbound,
    SaveApiKey,
    WebviewReady,
)
from webview.handlers.base import handles

logger = logging.getLogger("mise.webview.handlers.api_key")

MIN_MASKABLE_LENGTH = 12


def mask_api_key(key: str) -> str:
    """Short hint that never contains the whole key."""
    if len(key) < MIN_MASKABLE_LENGTH:
        return "****"
    return f"{key[:3]}...{key[-4:]}"


async def post_api_key_status(host: HostContext, session: PanelSession, **extra: Any) -> dict[str, Any]:
    key = await get_api_key(host)
    status: dict[str, Any] = {"command": Outbound.API_KEY_STATUS.value, "present": bool(key)}
    if key:
        status["hint"] = mask_api_key(key)
    status.update(extra)
    await session.post_message(status)
    return status


@handles(Command.WEBVIEW_READY, Command.GET_API_KEY)
async def handle_get_api_key(
    message: WebviewReady | GetApiKey,
    host: HostContext,
    session: PanelSession,
) -> dict[str, Any]:
    if message.command is Command.WEBVIEW_READY:
        logger.info("Panel ready")
        status = await post_api_key_status(host, session, protocolVersion=PROTOCOL_VERSION)
        state = await detect_project_state(host)
        await session.post_message({
            "command": Outbound.PROJECT_STATE_UPDATE.value,
            "projectState": state.to_message(),
        })
        return status
    return await post_api_key_status(host, session)


@handles(Command.SAVE_API_KEY, Command.SAVE_API_KEY_LEGACY)
async def handle_save_api_key(message: SaveApiKey, host: HostContext, session: PanelSession) -> dict[str, Any]:
    key = message.api_key.strip()
    if not key:
        raise PreconditionError("API key must not be empty.")
    await host.secrets.store(API_KEY_SECRET_NAME, key)
    logger.info("API key saved (%s)", mask_api_key(key))
    status = await post_api_key_status(host, session)
    await host.window.show_information_message("API key saved.")
    return status


@handles(Command.DELETE_API_KEY)
async def handle_delete_api_key(message: DeleteApiKey, host: HostContext, session: PanelSession) -> dict[str, Any]:
    await host.secrets.delete(API_KEY_SECRET_NAME)
    logger.info("API key deleted")
    status = await post_api_key_status(host, session)
    await host.window.show_information_message("API key removed.")
    return status
