"""
Mise Host — Context Card Batch

Walks the workspace sources and writes one ``context-cards/<name>.md`` per
file.  A failure on one file is reported as a warning and the batch moves
on; cancellation is checked between files and never rolls back cards that
were already written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ai.service import AIService
from generation.common import require_workspace
from generation.context_cards.analyzer import analyze_source
from generation.context_cards.enricher import enrich_analysis
from generation.context_cards.formatter import format_context_card
from host.errors import GenerationCancelled
from host.interfaces import HostContext, WebviewChannel
from host.progress import CancellationToken, ProgressReporter
from storage.manifest import update_manifest

logger = logging.getLogger("mise.generation.context_cards")

MAX_FEATURE_CONTEXT_CHARS = 4000


@dataclass
class BatchResult:
    written: list[Path] = field(default_factory=list)
    failed: list[dict[str, str]] = field(default_factory=list)
    cancelled: bool = False
    total: int = 0

    @property
    def count(self) -> int:
        return len(self.written)


async def discover_source_files(host: HostContext) -> list[Path]:
    config = require_workspace(host)
    exclude = (*config.exclude_dirs, config.output_root)
    return await host.fs.find_files(
        config.workspace_root,
        config.source_globs,
        exclude,
        config.max_source_files,
    )


async def load_feature_context(host: HostContext) -> str:
    """Concatenated ``*.md`` templates from the context-templates directory."""
    config = require_workspace(host)
    templates = config.paths.context_templates
    if not await host.fs.exists(templates):
        return ""
    chunks = []
    for name in await host.fs.read_directory(templates):
        if not name.endswith(".md"):
            continue
        try:
            chunks.append(await host.fs.read_text(templates / name))
        except OSError as exc:
            logger.warning("Skipping context template %s: %s", name, exc)
    return "\n\n".join(chunks)[:MAX_FEATURE_CONTEXT_CHARS]


class ContextCardBatch:

    def __init__(
        self,
        host: HostContext,
        channel: WebviewChannel,
        ai: AIService | None = None,
    ):
        self.host = host
        self.channel = channel
        self.ai = ai

    def _card_path(self, out_dir: Path, source: Path, used: set[str]) -> Path:
        name = f"{source.stem}.md"
        if name in used:
            base = f"{source.parent.name}.{source.stem}"
            name = f"{base}.md"
            suffix = 2
            while name in used:
                name = f"{base}-{suffix}.md"
                suffix += 1
        used.add(name)
        return out_dir / name

    async def run(
        self,
        files: list[Path],
        progress: ProgressReporter,
        token: CancellationToken | None = None,
    ) -> BatchResult:
        config = require_workspace(self.host)
        out_dir = config.paths.context_cards
        await self.host.fs.create_directory(out_dir)
        feature_context = await load_feature_context(self.host) if self.ai is not None else ""

        result = BatchResult(total=len(files))
        used: set[str] = set()
        await progress.report(0, f"Generating context cards for {len(files)} files...")

        for index, source in enumerate(files, start=1):
            if token is not None and token.is_cancelled:
                result.cancelled = True
                break
            rel = _relative(source, config.workspace_root)
            try:
                card = await self._process(source, rel, out_dir, used, feature_context, token)
            except GenerationCancelled:
                result.cancelled = True
                break
            except Exception as exc:
                await self._report_failure(result, rel, exc)
            else:
                result.written.append(card)
            await progress.report(
                index * 100 // max(len(files), 1),
                f"Processed {index}/{len(files)}: {rel}",
            )

        if result.cancelled:
            logger.info("Context card batch cancelled after %d cards", result.count)
        logger.info(
            "Context cards: %d written, %d failed of %d",
            result.count, len(result.failed), result.total,
        )
        return result

    async def _process(
        self,
        source: Path,
        rel: str,
        out_dir: Path,
        used: set[str],
        feature_context: str,
        token: CancellationToken | None,
    ) -> Path:
        text = await self.host.fs.read_text(source)
        analysis = analyze_source(source, text)
        if self.ai is not None:
            await enrich_analysis(analysis, self.ai, feature_context=feature_context, token=token)
        card_path = self._card_path(out_dir, source, used)
        await self.host.fs.write_text(card_path, format_context_card(analysis, display_path=rel))
        await update_manifest(self.host, {
            "type": "context-card",
            "source": rel,
            "path": str(card_path),
            "enriched": self.ai is not None,
        })
        return card_path

    async def _report_failure(self, result: BatchResult, rel: str, exc: Exception) -> None:
        logger.warning("Context card failed for %s: %s", rel, exc, exc_info=exc)
        result.failed.append({"file": rel, "error": str(exc)})
        text = f"Could not generate a context card for {rel}: {exc}"
        await self.host.window.show_warning_message(text)
        await self.channel.post_message({"command": "warning", "text": text, "file": rel})


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
