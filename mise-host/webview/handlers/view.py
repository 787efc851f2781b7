"""
Mise Host — View Commands

Resolve a previously generated artifact and open it in the document viewer.
Lookup order: explicit ``filePath``, the session's last generated paths,
then a scan of the output directory (with a quick pick when several files
match).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from generation.common import require_workspace
from generation.diagrams import DiagramKind, extract_mermaid_blocks
from generation.prd import derive_feature_graph
from host.errors import PreconditionError
from host.interfaces import HostContext
from host_config import OutputPaths
from panel.session import PanelSession
from webview.commands import Command, Outbound, ViewArtifact
from webview.handlers.base import handles

logger = logging.getLogger("mise.webview.handlers.view")


@dataclass(frozen=True)
class ViewTarget:
    session_kind: str
    use_secondary: bool
    directory: Callable[[OutputPaths], Path]
    accepts: Callable[[str], bool]
    empty_message: str
    pick_title: str


def _is_prd_json(name: str) -> bool:
    return name.endswith(".json") and name != "manifest.json"


TARGETS: dict[Command, ViewTarget] = {
    Command.VIEW_PRD: ViewTarget(
        "prd", False, lambda p: p.prd, lambda n: n.endswith(".md"),
        "No PRDs found.", "Select a PRD to view",
    ),
    Command.VIEW_GRAPH: ViewTarget(
        "prd", True, lambda p: p.prd, _is_prd_json,
        "No PRD graphs found.", "Select a PRD graph to view",
    ),
    Command.VIEW_DATA_FLOW_DIAGRAM: ViewTarget(
        DiagramKind.DATA_FLOW.value, False, lambda p: p.diagrams,
        lambda n: n == DiagramKind.DATA_FLOW.file_name,
        "No data flow diagram found. Generate one first.", "Select a diagram to view",
    ),
    Command.VIEW_COMPONENT_HIERARCHY: ViewTarget(
        DiagramKind.COMPONENT_HIERARCHY.value, False, lambda p: p.diagrams,
        lambda n: n == DiagramKind.COMPONENT_HIERARCHY.file_name,
        "No component hierarchy found. Generate one first.", "Select a diagram to view",
    ),
    Command.VIEW_CONTEXT_CARDS: ViewTarget(
        "context-cards", False, lambda p: p.context_cards, lambda n: n.endswith(".md"),
        "No context cards found.", "Select a context card to view",
    ),
}
TARGETS[Command.VIEW_PRD_LEGACY] = TARGETS[Command.VIEW_PRD]
TARGETS[Command.VIEW_GRAPH_LEGACY] = TARGETS[Command.VIEW_GRAPH]


async def _explicit_path(host: HostContext, raw: str) -> Path:
    config = require_workspace(host)
    root = config.workspace_root
    path = Path(raw)
    if not path.is_absolute():
        path = root / path
    path = path.resolve()
    if path != root and root not in path.parents:
        raise PreconditionError(f"{raw} is outside the workspace.")
    if not await host.fs.exists(path):
        raise PreconditionError(f"File not found: {raw}")
    return path


async def _scan(host: HostContext, target: ViewTarget) -> list[Path]:
    config = require_workspace(host)
    directory = target.directory(config.paths)
    if not await host.fs.exists(directory):
        return []
    files = [directory / n for n in await host.fs.read_directory(directory) if target.accepts(n)]
    mtimes = {p: await host.fs.stat_mtime(p) for p in files}
    return sorted(files, key=lambda p: mtimes[p], reverse=True)


async def resolve_view_path(
    message: ViewArtifact,
    host: HostContext,
    session: PanelSession,
) -> Path | None:
    target = TARGETS[message.command]
    if message.file_path:
        return await _explicit_path(host, message.file_path)

    last = session.last(target.session_kind)
    if last is not None:
        candidate = last.secondary if target.use_secondary else last.primary
        if candidate is not None and await host.fs.exists(candidate):
            return candidate

    files = await _scan(host, target)
    if not files:
        await host.window.show_information_message(target.empty_message)
        await session.post_message({"command": Outbound.INFO.value, "text": target.empty_message})
        return None
    if len(files) == 1:
        return files[0]
    picked = await host.window.show_quick_pick([p.name for p in files], title=target.pick_title)
    if picked is None:
        logger.info("View cancelled from quick pick")
        return None
    return next(p for p in files if p.name == picked)


async def _render(host: HostContext, command: Command, path: Path) -> tuple[str, str]:
    text = await host.fs.read_text(path)
    if command in (Command.VIEW_GRAPH, Command.VIEW_GRAPH_LEGACY):
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise PreconditionError(f"{path.name} is not valid JSON: {exc}") from exc
        graph = data.get("graph") if isinstance(data, dict) else None
        if not isinstance(graph, dict):
            graph = derive_feature_graph(data if isinstance(data, dict) else {})
        return json.dumps(graph, indent=2), "json"
    if command in (Command.VIEW_DATA_FLOW_DIAGRAM, Command.VIEW_COMPONENT_HIERARCHY):
        blocks = extract_mermaid_blocks(text)
        if blocks:
            return "\n\n".join(blocks), "mermaid"
    return text, "markdown"


@handles(*TARGETS)
async def handle_view(message: ViewArtifact, host: HostContext, session: PanelSession) -> Path | None:
    path = await resolve_view_path(message, host, session)
    if path is None:
        return None
    content, language = await _render(host, message.command, path)
    await host.window.show_document(path, content, language=language)
    logger.info("Opened %s as %s", path, language)
    return path
