"""
Mise Host — Artifact Manifest

Every artifact the host writes is recorded in ``<prd dir>/manifest.json``:

    { "artifacts": [ { "agent": ..., "timestamp": ..., "type": ..., ... } ] }

Updates are read-modify-write of the whole file.  A per-path lock
serialises writers inside this process; a missing file starts a new
manifest and an unreadable one is backed up and replaced.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from host.interfaces import HostContext

logger = logging.getLogger("mise.storage.manifest")

AGENT_ID = "ai-prd-generator"

_locks: dict[Path, asyncio.Lock] = {}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _lock_for(path: Path) -> asyncio.Lock:
    lock = _locks.get(path)
    if lock is None:
        lock = asyncio.Lock()
        _locks[path] = lock
    return lock


async def read_manifest(host: "HostContext", path: Path) -> dict[str, Any]:
    """Return the parsed manifest, or an empty one if absent or unreadable."""
    try:
        if not await host.fs.exists(path):
            return {"artifacts": []}
        raw = await host.fs.read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Manifest %s could not be read (%s); starting a new one", path, exc)
        return {"artifacts": []}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.warning("Manifest %s is unreadable (%s); starting a new one", path, exc)
        await _backup_corrupt(host, path)
        return {"artifacts": []}
    if not isinstance(data, dict) or not isinstance(data.get("artifacts"), list):
        logger.warning("Manifest %s has an unexpected shape; starting a new one", path)
        await _backup_corrupt(host, path)
        return {"artifacts": []}
    return data


async def _backup_corrupt(host: "HostContext", path: Path) -> None:
    backup = path.with_name(f"{path.name}.corrupt-{datetime.now(timezone.utc):%Y%m%dT%H%M%S}")
    try:
        await host.fs.write_text(backup, await host.fs.read_text(path))
        logger.warning("Saved previous manifest to %s", backup)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not back up manifest %s: %s", path, exc)


async def update_manifest(host: "HostContext", record: dict[str, Any]) -> Path:
    """Append one artifact record and return the manifest path."""
    if host.config is None:
        raise ValueError("No workspace configuration; cannot locate the manifest.")
    path = host.config.paths.manifest
    async with _lock_for(path):
        await host.fs.create_directory(path.parent)
        manifest = await read_manifest(host, path)
        entry = {"agent": AGENT_ID, "timestamp": utc_now_iso(), **record}
        manifest["artifacts"].append(entry)
        await host.fs.write_text(path, json.dumps(manifest, indent=4))
    logger.debug("Manifest %s: +%s (%d entries)", path, record.get("type"), len(manifest["artifacts"]))
    return path
