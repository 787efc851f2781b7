"""Mise Host -- panel command handlers."""
from webview.router import MessageRouter

from .api_key import handle_delete_api_key, handle_get_api_key, handle_save_api_key
from .cancel import handle_cancel
from .context_cards import handle_generate_context_cards
from .diagrams import handle_generate_diagram
from .generate_prd import handle_generate_prd
from .view import handle_view

ALL_HANDLERS = (
    handle_get_api_key,
    handle_save_api_key,
    handle_delete_api_key,
    handle_generate_prd,
    handle_generate_context_cards,
    handle_generate_diagram,
    handle_view,
    handle_cancel,
)


def build_router() -> MessageRouter:
    """Router with every built-in handler registered for the commands it owns."""
    router = MessageRouter()
    for handler in ALL_HANDLERS:
        for command in handler.commands:
            router.register(command, handler)
    return router


__all__ = [
    "ALL_HANDLERS",
    "build_router",
    "handle_cancel",
    "handle_delete_api_key",
    "handle_generate_context_cards",
    "handle_generate_diagram",
    "handle_generate_prd",
    "handle_get_api_key",
    "handle_save_api_key",
    "handle_view",
]
