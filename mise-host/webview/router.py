"""
Mise Host — Message Router

Maps each panel command to exactly one handler.  Unknown commands are not
an error: they are logged and ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from webview.commands import Command, parse_message

if TYPE_CHECKING:
    from host.interfaces import HostContext, WebviewChannel

logger = logging.getLogger("mise.webview.router")

MessageHandler = Callable[[Any, "HostContext", "WebviewChannel"], Awaitable[Any]]


class MessageRouter:
    """Command string -> handler table."""

    def __init__(self):
        self._handlers: dict[str, MessageHandler] = {}

    def register(self, command: Command | str, handler: MessageHandler) -> None:
        """Register a handler. A later registration for the same command replaces the earlier one."""
        key = command.value if isinstance(command, Command) else str(command)
        previous = self._handlers.get(key)
        if previous is not None and previous is not handler:
            logger.warning(
                "Handler for %s replaced: %s -> %s",
                key,
                getattr(previous, "__name__", previous),
                getattr(handler, "__name__", handler),
            )
        self._handlers[key] = handler

    def commands(self) -> list[str]:
        return sorted(self._handlers)

    def handler_for(self, command: Command | str) -> MessageHandler | None:
        key = command.value if isinstance(command, Command) else str(command)
        return self._handlers.get(key)

    async def route(self, message: Any, host: "HostContext", channel: "WebviewChannel") -> Any:
        """Dispatch ``message`` to its handler and return the handler's result, or None.

        Raw frames are parsed into their typed message first; typed messages
        reach the handler unchanged.
        """
        if isinstance(message, dict):
            message = parse_message(message)
        command = getattr(message, "command", None)
        if isinstance(command, Command):
            command = command.value
        handler = self._handlers.get(command) if isinstance(command, str) else None
        if handler is None:
            logger.warning("No handler registered for command: %s", command)
            return None
        return await handler(message, host, channel)
