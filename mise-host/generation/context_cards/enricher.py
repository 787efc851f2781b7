"""AI summaries for the classes and functions found by the analyzer."""

from __future__ import annotations

import logging

from ai.service import AIService
from generation.context_cards.analyzer import FileAnalysis
from generation.prompts import build_summary_prompt
from host.errors import GenerationCancelled
from host.progress import CancellationToken

logger = logging.getLogger("mise.generation.context_cards")

SUMMARY_FALLBACK = "Error generating summary."
MAX_SOURCE_CHARS = 6000


async def _summarise(ai: AIService, *, kind: str, name: str, file_name: str, source: str, feature_context: str) -> str:
    prompt = build_summary_prompt(
        kind=kind,
        name=name,
        file_name=file_name,
        source=source[:MAX_SOURCE_CHARS],
        feature_context=feature_context,
    )
    try:
        response = await ai.generate(prompt)
    except GenerationCancelled:
        raise
    except Exception as exc:
        logger.warning("Summary failed for %s in %s: %s", name, file_name, exc)
        return SUMMARY_FALLBACK
    return response.text.strip() or SUMMARY_FALLBACK


async def enrich_analysis(
    analysis: FileAnalysis,
    ai: AIService,
    *,
    feature_context: str = "",
    token: CancellationToken | None = None,
) -> FileAnalysis:
    """Fill in ``summary`` for every class and top-level function."""
    file_name = analysis.path.name
    for cls in analysis.classes:
        if token is not None:
            token.raise_if_cancelled()
        cls.summary = await _summarise(
            ai, kind="class", name=cls.name, file_name=file_name,
            source=cls.source, feature_context=feature_context,
        )
    for fn in analysis.functions:
        if token is not None:
            token.raise_if_cancelled()
        fn.summary = await _summarise(
            ai, kind="function", name=fn.name, file_name=file_name,
            source=fn.source, feature_context=feature_context,
        )
    return analysis
