"""Shared plumbing for command handlers."""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable

from host.errors import ErrorContext, GenerationCancelled, WorkflowBusyError, handle_error
from host.interfaces import HostContext
from host.progress import CancellationToken
from panel.session import PanelSession
from webview.commands import Command, Outbound

logger = logging.getLogger("mise.webview.handlers")


def handles(*commands: Command):
    """Declare the commands a handler owns; any other command returns None."""
    owned = frozenset(commands)

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(message: Any, host: HostContext, channel: Any) -> Any:
            if getattr(message, "command", None) not in owned:
                return None
            return await fn(message, host, channel)

        wrapper.commands = tuple(commands)
        return wrapper

    return decorator


async def run_workflow(
    session: PanelSession,
    host: HostContext,
    *,
    operation: str,
    ctx: ErrorContext,
    body: Callable[[CancellationToken], Awaitable[Any]],
) -> Any:
    """Run ``body`` under the session's in-flight guard with uniform reporting.

    Returns the body's result, or None when the workflow was busy, cancelled
    or failed (each of which has already been reported to the panel).
    """
    try:
        async with session.guard(operation) as token:
            return await body(token)
    except WorkflowBusyError as exc:
        logger.info("Ignoring %s: already running", operation)
        await session.post_message({"command": Outbound.WARNING.value, "text": str(exc), "operation": operation})
    except GenerationCancelled:
        logger.info("%s cancelled", operation)
        await session.post_message({"command": Outbound.CANCELLED.value, "operation": operation})
        await host.window.show_information_message(f"Cancelled: {ctx.operation}.")
    except Exception as exc:
        await handle_error(exc, ctx, host.window, session)
    return None
