"""``generate-context-cards``: one card per workspace source file."""

from __future__ import annotations

import logging

from generation.common import get_api_key, require_workspace
from generation.context_cards.batch import BatchResult, ContextCardBatch, discover_source_files
from host.errors import ErrorContext, handle_error
from host.interfaces import HostContext
from host.progress import CancellationToken, ProgressReporter
from panel.session import PanelSession
from webview.commands import Command, GenerateContextCards, Outbound
from webview.handlers.base import handles, run_workflow

logger = logging.getLogger("mise.webview.handlers.context_cards")

WORKFLOW = Command.GENERATE_CONTEXT_CARDS.value


def summarize_batch(result: BatchResult) -> dict:
    return {
        "command": Outbound.CONTEXT_CARDS_GENERATED.value,
        "count": result.count,
        "total": result.total,
        "failed": result.failed,
        "cancelled": result.cancelled,
        "files": [str(p) for p in result.written],
    }


@handles(Command.GENERATE_CONTEXT_CARDS, Command.GENERATE_CONTEXT_CARDS_LEGACY)
async def handle_generate_context_cards(
    message: GenerateContextCards,
    host: HostContext,
    session: PanelSession,
) -> BatchResult | None:
    ctx = ErrorContext(operation="generate context cards", component="ContextCardsHandler")
    try:
        config = require_workspace(host)
    except Exception as exc:
        await handle_error(exc, ctx, host.window, session)
        return None

    async def body(token: CancellationToken) -> BatchResult:
        api_key = await get_api_key(host)
        if api_key is None:
            logger.info("No API key; context cards will not include AI summaries")
        ai = host.ai_factory(api_key, config) if api_key else None
        files = await discover_source_files(host)
        if not files:
            return BatchResult()
        batch = ContextCardBatch(host, session, ai)
        return await batch.run(files, ProgressReporter(session, WORKFLOW), token)

    result = await run_workflow(session, host, operation=WORKFLOW, ctx=ctx, body=body)
    if result is None:
        return None

    await session.post_message(summarize_batch(result))
    if result.total == 0:
        await host.window.show_information_message("No source files found for context cards.")
    elif result.cancelled:
        await host.window.show_information_message(
            f"Context card generation cancelled after {result.count} of {result.total} files."
        )
    else:
        summary = f"Generated {result.count} context cards."
        if result.failed:
            summary += f" {len(result.failed)} file(s) failed."
        await host.window.show_information_message(summary)
    return result
