"""
Mise Host — Secret Storage

SQLite-backed key/value secret store.  Run ``await open_secret_storage(path)``
once at startup; the table is created if missing.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger("mise.host.secrets")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS secrets (
    key             TEXT PRIMARY KEY,
    value           TEXT NOT NULL,
    updated_at      TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


async def init_db(db_path: str) -> aiosqlite.Connection:
    """Open (or create) the secrets database and ensure the table exists."""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(db_path)
    db.row_factory = aiosqlite.Row
    await db.executescript(SCHEMA_SQL)
    await db.commit()
    return db


class SqliteSecretStorage:
    """``SecretStorage`` over a single aiosqlite connection."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def get(self, key: str) -> str | None:
        async with self.db.execute("SELECT value FROM secrets WHERE key = ?", (key,)) as cur:
            row = await cur.fetchone()
        return row["value"] if row else None

    async def store(self, key: str, value: str) -> None:
        await self.db.execute(
            "INSERT INTO secrets (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = datetime('now')",
            (key, value),
        )
        await self.db.commit()
        logger.info("Stored secret %s", key)

    async def delete(self, key: str) -> None:
        await self.db.execute("DELETE FROM secrets WHERE key = ?", (key,))
        await self.db.commit()
        logger.info("Deleted secret %s", key)

    async def close(self) -> None:
        await self.db.close()


async def open_secret_storage(db_path: str) -> SqliteSecretStorage:
    return SqliteSecretStorage(await init_db(db_path))
