"""Persistent key-value store: SQLite-backed."""

from __future__ import annotations

import tempfile
from datetime import datetime, timezone

import aiosqlite

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SQLiteKeyValueStore:
    """Key-value store persisted to a single SQLite table."""

    def __init__(self, db_path: str = "sessionlab.db") -> None:
        self._initialized = False
        # For :memory: databases, use a temp file so all connections share the same db
        if db_path == ":memory:":
            self._tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
            self.db_path = self._tmp.name
        else:
            self._tmp = None
            self.db_path = db_path

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(self.db_path)

    async def _ensure_tables(self) -> None:
        if self._initialized:
            return
        async with self._connect() as db:
            await db.executescript(SCHEMA)
            await db.commit()
        self._initialized = True

    async def get(self, key: str) -> str | None:
        await self._ensure_tables()
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
            return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        await self._ensure_tables()
        async with self._connect() as db:
            await db.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            await db.commit()

    async def delete(self, key: str) -> None:
        await self._ensure_tables()
        async with self._connect() as db:
            await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await db.commit()

