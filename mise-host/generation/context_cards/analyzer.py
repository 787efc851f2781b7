"""Local structural analysis of a Python source file (no AI)."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path

from host.errors import AnalysisError


@dataclass
class FunctionInfo:
    name: str
    signature: str
    docstring: str = ""
    is_async: bool = False
    source: str = ""
    summary: str = ""


@dataclass
class ClassInfo:
    name: str
    bases: list[str] = field(default_factory=list)
    docstring: str = ""
    methods: list[FunctionInfo] = field(default_factory=list)
    source: str = ""
    summary: str = ""


@dataclass
class FileAnalysis:
    path: Path
    module_docstring: str = ""
    dependencies: list[str] = field(default_factory=list)
    classes: list[ClassInfo] = field(default_factory=list)
    functions: list[FunctionInfo] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.classes or self.functions)


def _signature(node: ast.FunctionDef | ast.AsyncFunctionDef) -> str:
    prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
    returns = f" -> {ast.unparse(node.returns)}" if node.returns is not None else ""
    return f"{prefix} {node.name}({ast.unparse(node.args)}){returns}"


def _function(node: ast.FunctionDef | ast.AsyncFunctionDef, text: str) -> FunctionInfo:
    return FunctionInfo(
        name=node.name,
        signature=_signature(node),
        docstring=ast.get_docstring(node) or "",
        is_async=isinstance(node, ast.AsyncFunctionDef),
        source=ast.get_source_segment(text, node) or "",
    )


def _dependencies(tree: ast.Module) -> list[str]:
    deps: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names = [alias.name for alias in node.names]
        elif isinstance(node, ast.ImportFrom):
            names = ["." * node.level + (node.module or "")]
        else:
            continue
        for name in names:
            if name and name not in deps:
                deps.append(name)
    return deps


def analyze_source(path: Path, text: str) -> FileAnalysis:
    try:
        tree = ast.parse(text, filename=str(path))
    except (SyntaxError, ValueError) as exc:
        raise AnalysisError(f"Cannot parse {path.name}: {exc}") from exc

    analysis = FileAnalysis(
        path=path,
        module_docstring=ast.get_docstring(tree) or "",
        dependencies=_dependencies(tree),
    )
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            analysis.functions.append(_function(node, text))
        elif isinstance(node, ast.ClassDef):
            analysis.classes.append(ClassInfo(
                name=node.name,
                bases=[ast.unparse(b) for b in node.bases],
                docstring=ast.get_docstring(node) or "",
                methods=[
                    _function(item, text)
                    for item in node.body
                    if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef))
                ],
                source=ast.get_source_segment(text, node) or "",
            ))
    return analysis
