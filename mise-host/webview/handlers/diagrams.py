"""``generate-data-flow-diagram`` and ``generate-component-hierarchy``."""

from __future__ import annotations

from generation.common import require_api_key, require_workspace
from generation.diagrams import DiagramGenerator, DiagramKind, DiagramResult, find_prd_source
from host.errors import ErrorContext, handle_error
from host.interfaces import HostContext
from host.progress import CancellationToken, ProgressReporter
from panel.session import PanelSession
from webview.commands import Command, GenerateDiagram, Outbound
from webview.handlers.base import handles, run_workflow

KIND_BY_COMMAND = {
    Command.GENERATE_DATA_FLOW_DIAGRAM: DiagramKind.DATA_FLOW,
    Command.GENERATE_COMPONENT_HIERARCHY: DiagramKind.COMPONENT_HIERARCHY,
}


@handles(Command.GENERATE_DATA_FLOW_DIAGRAM, Command.GENERATE_COMPONENT_HIERARCHY)
async def handle_generate_diagram(
    message: GenerateDiagram,
    host: HostContext,
    session: PanelSession,
) -> DiagramResult | None:
    kind = KIND_BY_COMMAND[message.command]
    ctx = ErrorContext(operation=f"generate {kind.label}", component="DiagramHandler")
    try:
        api_key = await require_api_key(host)
        config = require_workspace(host)
        last_prd = session.last("prd")
        source = await find_prd_source(host, last_prd.primary if last_prd else None)
    except Exception as exc:
        await handle_error(exc, ctx, host.window, session)
        return None

    async def body(token: CancellationToken) -> DiagramResult:
        generator = DiagramGenerator(host, host.ai_factory(api_key, config))
        return await generator.generate(kind, source, ProgressReporter(session, message.command.value), token)

    result = await run_workflow(session, host, operation=message.command.value, ctx=ctx, body=body)
    if result is None:
        return None

    session.remember(kind.value, result.path)
    await session.post_message({
        "command": Outbound.DIAGRAM_GENERATED.value,
        "kind": kind.value,
        "path": str(result.path),
        "source": str(result.source_path),
        "viewCommand": kind.view_command,
    })
    await host.window.show_information_message(f"{kind.label.capitalize()} saved to {result.path.name}.")
    return result
