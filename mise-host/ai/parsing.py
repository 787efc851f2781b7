"""Helpers for pulling structured data out of free-form model output."""

from __future__ import annotations

import ast
import json
import re
from typing import Any, Iterator

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_BRACES_RE = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fence(text: str) -> str:
    raw = (text or "").strip()
    if raw.startswith("```") and raw.endswith("```"):
        return _FENCE_RE.sub("", raw).strip()
    return raw


def _json_candidates(raw: str) -> Iterator[str]:
    yield raw
    unfenced = strip_code_fence(raw)
    if unfenced != raw:
        yield unfenced
    braces = _BRACES_RE.search(unfenced)
    if braces and braces.group(0) != unfenced:
        yield braces.group(0)


def _load_mapping(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except ValueError:
        # Models sometimes answer with a Python-style dict (single quotes, True/None).
        try:
            value = ast.literal_eval(candidate)
        except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
            return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: str) -> dict | None:
    """First JSON object found in ``text``: whole reply, fenced body, then outermost braces."""
    raw = (text or "").strip()
    if not raw:
        return None
    for candidate in _json_candidates(raw):
        mapping = _load_mapping(candidate)
        if mapping is not None:
            return mapping
    return None
