"""Markdown rendering of a context card."""

from __future__ import annotations

from generation.context_cards.analyzer import FileAnalysis, FunctionInfo


def _function_block(fn: FunctionInfo, *, level: str) -> list[str]:
    lines = [f"{level} `{fn.name}`", "", f"**Signature:** `{fn.signature}`", ""]
    if fn.docstring:
        lines += [fn.docstring, ""]
    if fn.summary:
        lines += [f"**Summary:** {fn.summary}", ""]
    return lines


def format_context_card(analysis: FileAnalysis, *, display_path: str = "") -> str:
    name = display_path or analysis.path.name
    lines = [f"# Context Card for {name}", ""]
    if analysis.module_docstring:
        lines += [analysis.module_docstring, ""]

    lines += ["## Dependencies", ""]
    lines += [f"- `{d}`" for d in analysis.dependencies] or ["_None_"]
    lines.append("")

    if analysis.classes:
        lines += ["---", "", "## Classes", ""]
        for cls in analysis.classes:
            bases = f"({', '.join(cls.bases)})" if cls.bases else ""
            lines += [f"### `{cls.name}{bases}`", ""]
            if cls.docstring:
                lines += [cls.docstring, ""]
            if cls.summary:
                lines += [f"**Summary:** {cls.summary}", ""]
            for method in cls.methods:
                lines += _function_block(method, level="####")

    if analysis.functions:
        lines += ["---", "", "## Functions", ""]
        for fn in analysis.functions:
            lines += _function_block(fn, level="###")

    return "\n".join(lines).rstrip() + "\n"
