"""
Mise Host — Local File System

``FileSystem`` implementation over ``pathlib``.  Blocking calls run in a
worker thread so handlers only suspend, never block the event loop.
"""

from __future__ import annotations

import asyncio
import fnmatch
import os
from pathlib import Path, PurePosixPath


class LocalFileSystem:

    async def create_directory(self, path: Path) -> None:
        await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)

    async def read_text(self, path: Path) -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")

    async def write_text(self, path: Path, content: str) -> None:
        await asyncio.to_thread(Path(path).write_text, content, encoding="utf-8")

    async def read_directory(self, path: Path) -> list[str]:
        entries = await asyncio.to_thread(os.listdir, path)
        return sorted(entries)

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(Path(path).exists)

    async def stat_mtime(self, path: Path) -> float:
        stat = await asyncio.to_thread(Path(path).stat)
        return stat.st_mtime

    async def find_files(
        self,
        root: Path,
        patterns: tuple[str, ...],
        exclude_dirs: tuple[str, ...],
        limit: int,
    ) -> list[Path]:
        return await asyncio.to_thread(_walk, Path(root), patterns, exclude_dirs, limit)


def _matches(rel: PurePosixPath, pattern: str) -> bool:
    """Glob match of a workspace-relative path.

    A pattern without ``/`` matches the file name at any depth.  Otherwise
    it is anchored at the workspace root, and ``**/`` stands for any number
    of directories.
    """
    if "/" not in pattern:
        return fnmatch.fnmatch(rel.name, pattern)
    head, sep, tail = pattern.partition("**/")
    if not sep:
        return len(rel.parts) == len(PurePosixPath(pattern).parts) and rel.match(pattern)
    head_parts = PurePosixPath(head).parts if head else ()
    if len(rel.parts) <= len(head_parts):
        return False
    if not all(fnmatch.fnmatch(part, glob) for part, glob in zip(rel.parts, head_parts)):
        return False
    rest = PurePosixPath(*rel.parts[len(head_parts):])
    if "/" in tail:
        return rest.match(tail)
    return fnmatch.fnmatch(rest.name, tail)


def _walk(root: Path, patterns: tuple[str, ...], exclude_dirs: tuple[str, ...], limit: int) -> list[Path]:
    excluded = set(exclude_dirs)
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = PurePosixPath(Path(dirpath).relative_to(root).as_posix())
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in excluded and (rel_dir / d).as_posix() not in excluded
        )
        for filename in sorted(filenames):
            rel = rel_dir / filename
            if any(_matches(rel, pattern) for pattern in patterns):
                found.append(Path(dirpath) / filename)
                if len(found) >= limit:
                    return found
    return found
