"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Durable SQLite cache store backend.
"""

from __future__ import annotations

import asyncio
import logging
import time

import aiosqlite

from ..errors import GenerationNotFoundError
from ..types import ResourceEntry, ResponseSnapshot
from ..utils import json_dumps, json_loads
from .base import CacheStore, GenerationHandle

logger = logging.getLogger("resq.cache.sqlite")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_generations (
    tag TEXT PRIMARY KEY,
    created_at REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS cache_entries (
    generation TEXT NOT NULL,
    key TEXT NOT NULL,
    response TEXT NOT NULL,
    stored_at REAL NOT NULL,
    PRIMARY KEY (generation, key)
);
CREATE TABLE IF NOT EXISTS cache_meta (
    name TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_ACTIVE = "active_generation"


class SQLiteCacheStore(CacheStore):
    """
    Cache store persisted in one SQLite file via `aiosqlite`.

    Survives process restarts: the active pointer lives in `cache_meta` and
    `match` resolves pointer and entry in a single statement.
    """

    backend_id = "sqlite"

    def __init__(self, path: str) -> None:
        self.path = path
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()

    async def _conn(self) -> aiosqlite.Connection:
        if self._db is not None:
            return self._db
        async with self._connect_lock:
            if self._db is None:
                db = await aiosqlite.connect(self.path)
                await db.executescript(_SCHEMA)
                await db.commit()
                self._db = db
                logger.debug("Opened cache store at %s", self.path)
        return self._db

    async def open_generation(self, tag: str) -> GenerationHandle:
        db = await self._conn()
        await db.execute(
            "INSERT OR IGNORE INTO cache_generations (tag, created_at) VALUES (?, ?)",
            (tag, time.time()),
        )
        await db.commit()
        return GenerationHandle(tag=tag)

    async def put(self, handle: GenerationHandle, key: str, entry: ResourceEntry) -> None:
        db = await self._conn()
        cursor = await db.execute(
            """
            INSERT OR REPLACE INTO cache_entries (generation, key, response, stored_at)
            SELECT ?, ?, ?, ?
            WHERE EXISTS (SELECT 1 FROM cache_generations WHERE tag = ?)
            """,
            (
                handle.tag,
                key,
                json_dumps(entry.response.to_dict()),
                entry.stored_at,
                handle.tag,
            ),
        )
        await db.commit()
        if cursor.rowcount == 0:
            raise GenerationNotFoundError(f"Generation '{handle.tag}' does not exist")

    async def get(self, handle: GenerationHandle, key: str) -> ResourceEntry | None:
        db = await self._conn()
        async with db.execute(
            "SELECT response, stored_at FROM cache_entries WHERE generation = ? AND key = ?",
            (handle.tag, key),
        ) as cursor:
            row = await cursor.fetchone()
        return self._entry(key, row)

    async def keys(self, handle: GenerationHandle) -> list[str]:
        db = await self._conn()
        async with db.execute(
            "SELECT key FROM cache_entries WHERE generation = ? ORDER BY key",
            (handle.tag,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def list_generations(self) -> set[str]:
        db = await self._conn()
        async with db.execute("SELECT tag FROM cache_generations") as cursor:
            rows = await cursor.fetchall()
        return {row[0] for row in rows}

    async def delete(self, tag: str) -> bool:
        db = await self._conn()
        async with self._lock:
            await db.execute("DELETE FROM cache_entries WHERE generation = ?", (tag,))
            await db.execute(
                "DELETE FROM cache_meta WHERE name = ? AND value = ?", (_ACTIVE, tag)
            )
            cursor = await db.execute(
                "DELETE FROM cache_generations WHERE tag = ?", (tag,)
            )
            await db.commit()
        return cursor.rowcount > 0

    async def get_active(self) -> str | None:
        db = await self._conn()
        async with db.execute(
            "SELECT value FROM cache_meta WHERE name = ?", (_ACTIVE,)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set_active(self, tag: str) -> None:
        db = await self._conn()
        cursor = await db.execute(
            """
            INSERT OR REPLACE INTO cache_meta (name, value)
            SELECT ?, ? WHERE EXISTS (SELECT 1 FROM cache_generations WHERE tag = ?)
            """,
            (_ACTIVE, tag, tag),
        )
        await db.commit()
        if cursor.rowcount == 0:
            raise GenerationNotFoundError(f"Generation '{tag}' does not exist")

    async def match(self, key: str) -> ResourceEntry | None:
        db = await self._conn()
        async with db.execute(
            """
            SELECT e.response, e.stored_at
            FROM cache_entries e
            JOIN cache_meta m ON m.name = ? AND e.generation = m.value
            WHERE e.key = ?
            """,
            (_ACTIVE, key),
        ) as cursor:
            row = await cursor.fetchone()
        return self._entry(key, row)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    def _entry(self, key: str, row) -> ResourceEntry | None:
        if row is None:
            return None
        payload = json_loads(row[0])
        if not isinstance(payload, dict):
            return None
        return ResourceEntry(
            key=key,
            response=ResponseSnapshot.from_dict(payload),
            stored_at=float(row[1]),
        )
