"""
Mise Host — Diagram Generation

Data-flow and component-hierarchy diagrams are generated from a PRD's
markdown and stored as Mermaid inside markdown under ``diagrams/``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ai.service import AIService
from generation.common import require_workspace, run_cancellable
from generation.prompts import (
    COMPONENT_HIERARCHY_SYSTEM_PROMPT,
    DATA_FLOW_SYSTEM_PROMPT,
    build_diagram_prompt,
)
from host.errors import AIResponseError, PreconditionError
from host.interfaces import HostContext
from host.progress import CancellationToken, ProgressReporter
from storage.manifest import update_manifest

logger = logging.getLogger("mise.generation.diagrams")

MERMAID_BLOCK_RE = re.compile(r"```mermaid\n([\s\S]*?)\n```")


class DiagramKind(str, Enum):
    DATA_FLOW = "data-flow-diagram"
    COMPONENT_HIERARCHY = "component-hierarchy"

    @property
    def file_name(self) -> str:
        return {
            DiagramKind.DATA_FLOW: "data_flow_diagram.md",
            DiagramKind.COMPONENT_HIERARCHY: "component_hierarchy.md",
        }[self]

    @property
    def label(self) -> str:
        return {
            DiagramKind.DATA_FLOW: "data flow diagram",
            DiagramKind.COMPONENT_HIERARCHY: "component hierarchy",
        }[self]

    @property
    def system_prompt(self) -> str:
        return {
            DiagramKind.DATA_FLOW: DATA_FLOW_SYSTEM_PROMPT,
            DiagramKind.COMPONENT_HIERARCHY: COMPONENT_HIERARCHY_SYSTEM_PROMPT,
        }[self]

    @property
    def view_command(self) -> str:
        return f"view-{self.value}"


@dataclass
class DiagramResult:
    kind: DiagramKind
    path: Path
    source_path: Path
    manifest_path: Path


def extract_mermaid_blocks(markdown: str) -> list[str]:
    return [m.strip() for m in MERMAID_BLOCK_RE.findall(markdown or "")]


def ensure_mermaid(text: str, kind: DiagramKind) -> str:
    """Return markdown that contains at least one mermaid block."""
    body = (text or "").strip()
    if not body:
        raise AIResponseError(f"AI returned an empty {kind.label}.")
    if extract_mermaid_blocks(body):
        return body + "\n"
    if body.startswith("```") and body.endswith("```"):
        body = re.sub(r"^```[a-zA-Z]*\s*|\s*```$", "", body)
    title = kind.label.title()
    return f"# {title}\n\n```mermaid\n{body.strip()}\n```\n"


async def find_prd_source(host: HostContext, last_markdown: Path | None) -> Path:
    """Most recent PRD markdown: the session's last one, else the newest on disk."""
    if last_markdown is not None and await host.fs.exists(last_markdown):
        return last_markdown
    config = require_workspace(host)
    prd_dir = config.paths.prd
    if await host.fs.exists(prd_dir):
        candidates = [prd_dir / n for n in await host.fs.read_directory(prd_dir) if n.endswith(".md")]
        if candidates:
            mtimes = {p: await host.fs.stat_mtime(p) for p in candidates}
            return max(candidates, key=lambda p: mtimes[p])
    raise PreconditionError("No PRD found. Generate a PRD before creating diagrams.")


class DiagramGenerator:

    def __init__(self, host: HostContext, ai: AIService):
        self.host = host
        self.ai = ai

    async def generate(
        self,
        kind: DiagramKind,
        source_path: Path,
        progress: ProgressReporter,
        token: CancellationToken | None = None,
    ) -> DiagramResult:
        config = require_workspace(self.host)
        prd_markdown = await self.host.fs.read_text(source_path)
        if not prd_markdown.strip():
            raise PreconditionError(f"PRD {source_path.name} is empty.")

        await progress.report(0, f"Generating {kind.label}...")
        response = await run_cancellable(
            self.ai.generate(build_diagram_prompt(prd_markdown), system_prompt=kind.system_prompt),
            token,
        )
        content = ensure_mermaid(response.text, kind)
        if token is not None:
            token.raise_if_cancelled()

        await progress.report(50, "Saving diagram...")
        out_dir = config.paths.diagrams
        await self.host.fs.create_directory(out_dir)
        path = out_dir / kind.file_name
        await self.host.fs.write_text(path, content)

        manifest_path = await update_manifest(self.host, {
            "type": "diagram",
            "diagramType": kind.value,
            "path": str(path),
            "source": str(source_path),
        })
        logger.info("%s written to %s", kind.label, path)
        return DiagramResult(kind=kind, path=path, source_path=source_path, manifest_path=manifest_path)
