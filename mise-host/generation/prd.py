"""
Mise Host — PRD Generation

Sequence: check preconditions, call the AI (progress 0%), parse its reply,
save ``prd/<safe-title>.md`` and ``prd/<safe-title>.json`` (progress 50%),
then record the artifact in the manifest.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ai.parsing import extract_json_object
from ai.service import AIResponse, AIService
from generation.common import require_workspace, run_cancellable
from generation.prompts import PRD_SYSTEM_PROMPT
from host.errors import AIResponseError, PreconditionError
from host.interfaces import HostContext
from host.progress import CancellationToken, ProgressReporter
from storage.manifest import update_manifest

logger = logging.getLogger("mise.generation.prd")

OPERATION = "generate PRD"
UNTITLED = "untitled-prd"


def safe_title(title: str) -> str:
    """Filesystem-safe base name: lowercase alphanumerics joined by '-'."""
    s = (title or "").strip().lower()
    s = re.sub(r"[^a-z0-9]+", "-", s).strip("-")
    return s or UNTITLED


@dataclass
class ParsedPrd:
    title: str
    markdown: str
    data: dict[str, Any]
    graph: dict[str, Any] = field(default_factory=dict)


@dataclass
class PrdResult:
    title: str
    markdown_path: Path
    json_path: Path
    manifest_path: Path
    prd: dict[str, Any]
    graph: dict[str, Any]
    overwritten: bool = False


# ---------------------------------------------------------------------------
# Parsing and rendering
# ---------------------------------------------------------------------------

def parse_prd_response(response: AIResponse) -> ParsedPrd:
    payload = response.structured_json or extract_json_object(response.text)
    if not isinstance(payload, dict):
        raise AIResponseError("AI response did not contain a JSON PRD.")

    data = payload.get("json")
    if not isinstance(data, dict):
        data = {k: v for k, v in payload.items() if k not in ("markdown", "graph")}

    title = str(payload.get("title") or data.get("title") or "").strip()
    if not title:
        raise AIResponseError("AI response is missing a PRD title.")
    data.setdefault("title", title)

    markdown = payload.get("markdown")
    if not isinstance(markdown, str) or not markdown.strip():
        markdown = render_prd_markdown(data)

    graph = payload.get("graph")
    if not _is_graph(graph):
        graph = derive_feature_graph(data)
    return ParsedPrd(title=title, markdown=markdown, data=data, graph=graph)


def _is_graph(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("nodes"), list)
        and isinstance(value.get("edges"), list)
    )


def derive_feature_graph(data: dict[str, Any]) -> dict[str, Any]:
    """One node for the PRD, one per feature, ``contains`` edges between them."""
    title = str(data.get("title") or "PRD")
    nodes = [{"data": {"id": "prd", "label": title, "type": "prd"}}]
    edges = []
    for i, feature in enumerate(data.get("features") or [], start=1):
        if not isinstance(feature, dict):
            continue
        fid = str(feature.get("id") or f"feature-{i}")
        nodes.append({"data": {"id": fid, "label": str(feature.get("title") or fid), "type": "feature"}})
        edges.append({"data": {"id": f"prd-{fid}", "source": "prd", "target": fid, "label": "contains"}})
    return {"nodes": nodes, "edges": edges}


def _bullets(items: Any, *, fallback: str = "TBD") -> list[str]:
    if not items:
        return [f"- {fallback}"]
    if isinstance(items, str):
        return [f"- {items}"]
    return [f"- {i}" for i in items]


def render_prd_markdown(data: dict[str, Any]) -> str:
    lines = [f"# {data.get('title', 'Product Requirements Document')}", ""]
    lines += ["## 1. Purpose", str(data.get("purpose") or "TBD"), ""]
    lines += ["## 2. Goals and Objectives", *_bullets(data.get("goals")), ""]
    lines += ["## 3. Features and Requirements", "", "### User Roles", *_bullets(data.get("userRoles")), ""]
    lines += ["### Core Features"]
    for feature in data.get("features") or []:
        if not isinstance(feature, dict):
            continue
        lines.append(f"#### {feature.get('id', '')} {feature.get('title', '')}".rstrip())
        lines += _bullets(feature.get("requirements"))
    lines.append("")

    tech = data.get("technicalRequirements") or {}
    lines.append("## 4. Technical Requirements")
    if isinstance(tech, dict):
        for layer, detail in tech.items():
            if isinstance(detail, dict):
                lines.append(f"- **{layer}**: {detail.get('stack', '')} {detail.get('notes', '')}".rstrip())
            else:
                lines.append(f"- **{layer}**: {detail}")
    lines.append("")

    nfr = data.get("nonFunctionalRequirements") or {}
    lines.append("## 5. Non-Functional Requirements")
    if isinstance(nfr, dict):
        lines += [f"- **{k}**: {v}" for k, v in nfr.items()]
    lines.append("")

    lines.append("## 6. User Journey Summary")
    journeys = data.get("userJourneys") or {}
    if isinstance(journeys, dict):
        for role, steps in journeys.items():
            lines.append(f"### {role}")
            lines += _bullets(steps)
    lines.append("")

    lines += ["## 7. Success Metrics", *_bullets(data.get("successMetrics")), ""]
    lines += ["## 8. Future Enhancements", *_bullets(data.get("futureEnhancements")), ""]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class PrdGenerator:
    """Runs one PRD generation for an already validated request."""

    def __init__(self, host: HostContext, ai: AIService):
        self.host = host
        self.ai = ai

    async def generate(
        self,
        idea: str,
        progress: ProgressReporter,
        token: CancellationToken | None = None,
    ) -> PrdResult:
        if not idea.strip():
            raise PreconditionError("Describe your product idea before generating a PRD.")
        config = require_workspace(self.host)

        await progress.report(0, "Calling AI...")
        response = await run_cancellable(
            self.ai.generate(idea, system_prompt=PRD_SYSTEM_PROMPT, json_mode=True),
            token,
        )
        parsed = parse_prd_response(response)
        if token is not None:
            token.raise_if_cancelled()

        await progress.report(50, "Saving files...")
        out_dir = config.paths.prd
        await self.host.fs.create_directory(out_dir)
        base = safe_title(parsed.title)
        md_path = out_dir / f"{base}.md"
        json_path = out_dir / f"{base}.json"

        overwritten = await self.host.fs.exists(md_path) or await self.host.fs.exists(json_path)
        if overwritten:
            logger.warning("PRD '%s' already exists as %s; overwriting", parsed.title, base)

        sidecar = {**parsed.data, "graph": parsed.graph}
        await self.host.fs.write_text(md_path, parsed.markdown)
        await self.host.fs.write_text(json_path, json.dumps(sidecar, indent=2))

        manifest_path = await update_manifest(self.host, {
            "type": "prd",
            "title": parsed.title,
            "markdownPath": str(md_path),
            "jsonPath": str(json_path),
            "model": response.model,
        })
        logger.info("PRD generated: %s", md_path)
        return PrdResult(
            title=parsed.title,
            markdown_path=md_path,
            json_path=json_path,
            manifest_path=manifest_path,
            prd=parsed.data,
            graph=parsed.graph,
            overwritten=overwritten,
        )
