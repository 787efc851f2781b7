"""Shared precondition checks and the cancellable AI-call wrapper."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from host.errors import GenerationCancelled, PreconditionError
from host.interfaces import HostContext
from host.progress import CancellationToken
from host_config import API_KEY_SECRET_NAME, HostConfig

logger = logging.getLogger("mise.generation")

T = TypeVar("T")

MISSING_API_KEY = "OpenAI API key is not set. Save your API key before generating."
MISSING_WORKSPACE = "No workspace folder is open. Open a folder to generate artifacts."


async def get_api_key(host: HostContext) -> str | None:
    key = await host.secrets.get(API_KEY_SECRET_NAME)
    return key.strip() if key and key.strip() else None


async def require_api_key(host: HostContext) -> str:
    key = await get_api_key(host)
    if not key:
        raise PreconditionError(MISSING_API_KEY)
    return key


def require_workspace(host: HostContext) -> HostConfig:
    if host.workspace_root is None or host.config is None:
        raise PreconditionError(MISSING_WORKSPACE)
    return host.config


async def run_cancellable(aw: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``aw`` unless ``token`` is cancelled first."""
    if token is None:
        return await aw
    if token.is_cancelled:
        if asyncio.iscoroutine(aw):
            aw.close()
        raise GenerationCancelled(token.operation or "operation")
    work = asyncio.ensure_future(aw)
    stopper = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        stopper.cancel()
    if work.done():
        return work.result()
    work.cancel()
    logger.info("Abandoned in-flight AI call for %s", token.operation)
    raise GenerationCancelled(token.operation or "operation")
