"""``generate-prd``: idea text in, PRD markdown and JSON out."""

from __future__ import annotations

from generation.common import require_api_key, require_workspace
from generation.prd import OPERATION, PrdGenerator, PrdResult
from host.errors import ErrorContext, handle_error
from host.interfaces import HostContext
from host.progress import CancellationToken, ProgressReporter
from panel.session import PanelSession
from webview.commands import Command, GeneratePrd, Outbound
from webview.handlers.base import handles, run_workflow

WORKFLOW = Command.GENERATE_PRD.value


@handles(Command.GENERATE_PRD, Command.GENERATE_PRD_LEGACY)
async def handle_generate_prd(message: GeneratePrd, host: HostContext, session: PanelSession) -> PrdResult | None:
    ctx = ErrorContext(operation=OPERATION, component="GeneratePrdHandler")
    try:
        api_key = await require_api_key(host)
        config = require_workspace(host)
    except Exception as exc:
        await handle_error(exc, ctx, host.window, session)
        return None

    async def body(token: CancellationToken) -> PrdResult:
        generator = PrdGenerator(host, host.ai_factory(api_key, config))
        return await generator.generate(message.text, ProgressReporter(session, WORKFLOW), token)

    result = await run_workflow(session, host, operation=WORKFLOW, ctx=ctx, body=body)
    if result is None:
        return None

    session.remember("prd", result.markdown_path, result.json_path)
    await session.post_message({
        "command": Outbound.PRD_GENERATED.value,
        "title": result.title,
        "prd": result.prd,
        "graph": result.graph,
        "files": {
            "markdown": str(result.markdown_path),
            "json": str(result.json_path),
        },
        "overwritten": result.overwritten,
    })
    await host.window.show_information_message(f"PRD '{result.title}' saved to {result.markdown_path.name}.")
    return result
