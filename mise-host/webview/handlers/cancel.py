"""``cancel-generation``: cooperative cancellation of in-flight workflows."""

from __future__ import annotations

import logging

from host.interfaces import HostContext
from panel.session import PanelSession
from webview.commands import CancelGeneration, Command, Outbound
from webview.handlers.base import handles

logger = logging.getLogger("mise.webview.handlers.cancel")


@handles(Command.CANCEL_GENERATION)
async def handle_cancel(message: CancelGeneration, host: HostContext, session: PanelSession) -> list[str]:
    cancelled = session.cancel(message.operation)
    if not cancelled:
        await session.post_message({"command": Outbound.INFO.value, "text": "Nothing is running."})
        return []
    logger.info("Cancellation requested for: %s", ", ".join(cancelled))
    return cancelled
