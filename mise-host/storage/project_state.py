"""
Mise Host — Project State

Scan of the output directories for artifacts that already exist.  The panel
uses it to show "View" instead of "Generate" for work that is already done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TYPE_CHECKING

from generation.diagrams import DiagramKind

if TYPE_CHECKING:
    from host.interfaces import HostContext

logger = logging.getLogger("mise.storage.project_state")

ROOT_PRD_NAMES = ("PRD.md", "prd.md", "product-requirements.md", "ProductRequirements.md")


@dataclass
class ProjectState:
    prd_files: list[Path] = field(default_factory=list)
    context_card_files: list[Path] = field(default_factory=list)
    context_template_files: list[Path] = field(default_factory=list)
    data_flow_diagram_files: list[Path] = field(default_factory=list)
    component_hierarchy_files: list[Path] = field(default_factory=list)

    def to_message(self) -> dict[str, Any]:
        def paths(files: list[Path]) -> list[str]:
            return [str(p) for p in files]

        return {
            "hasPRD": bool(self.prd_files),
            "hasContextCards": bool(self.context_card_files),
            "hasContextTemplates": bool(self.context_template_files),
            "hasDataFlowDiagram": bool(self.data_flow_diagram_files),
            "hasComponentHierarchy": bool(self.component_hierarchy_files),
            "prdFiles": paths(self.prd_files),
            "contextCardFiles": paths(self.context_card_files),
            "contextTemplateFiles": paths(self.context_template_files),
            "dataFlowDiagramFiles": paths(self.data_flow_diagram_files),
            "componentHierarchyFiles": paths(self.component_hierarchy_files),
            "prdCount": len(self.prd_files),
            "contextCardCount": len(self.context_card_files),
            "contextTemplateCount": len(self.context_template_files),
        }


async def _markdown_in(host: "HostContext", directory: Path) -> list[Path]:
    if not await host.fs.exists(directory):
        return []
    return [directory / n for n in await host.fs.read_directory(directory) if n.endswith(".md")]


async def _diagram(host: "HostContext", directory: Path, kind: DiagramKind) -> list[Path]:
    path = directory / kind.file_name
    return [path] if await host.fs.exists(path) else []


async def detect_project_state(host: "HostContext") -> ProjectState:
    """Artifacts present in the workspace; an empty state when nothing is open or the scan fails."""
    if host.workspace_root is None or host.config is None:
        return ProjectState()
    paths = host.config.paths
    try:
        prd_files = await _markdown_in(host, paths.prd)
        root = host.config.workspace_root
        root_names = set(await host.fs.read_directory(root))
        prd_files += [root / n for n in ROOT_PRD_NAMES if n in root_names]
        return ProjectState(
            prd_files=prd_files,
            context_card_files=await _markdown_in(host, paths.context_cards),
            context_template_files=await _markdown_in(host, paths.context_templates),
            data_flow_diagram_files=await _diagram(host, paths.diagrams, DiagramKind.DATA_FLOW),
            component_hierarchy_files=await _diagram(host, paths.diagrams, DiagramKind.COMPONENT_HIERARCHY),
        )
    except OSError as exc:
        logger.warning("Project state scan failed: %s", exc)
        return ProjectState()
