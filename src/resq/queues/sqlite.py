"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

SQLite-backed durable record queue.
"""

from __future__ import annotations

import asyncio
import logging

import aiosqlite

from ..utils import json_dumps, json_loads
from .base import BaseRecordQueue
from .types import PendingRecord

logger = logging.getLogger("resq.queues.sqlite")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pending_records (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    kind TEXT NOT NULL,
    payload TEXT NOT NULL,
    status TEXT NOT NULL,
    retry_count INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL,
    last_attempt_at REAL,
    last_error TEXT
);
"""

_COLUMNS = "id, kind, payload, status, retry_count, created_at, last_attempt_at, last_error"


class SQLiteRecordQueue(BaseRecordQueue):
    """
    Record queue persisted in SQLite via `aiosqlite`.

    FIFO order is the autoincrement `seq` assigned on first insert; updates
    never move a record.
    """

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path
        self._db: aiosqlite.Connection | None = None
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
                logger.debug("Opened record queue at %s", self.path)
        return self._db

    async def _save_record(self, record: PendingRecord) -> None:
        db = await self._conn()
        await db.execute(
            f"""
            INSERT INTO pending_records ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                kind = excluded.kind,
                payload = excluded.payload,
                status = excluded.status,
                retry_count = excluded.retry_count,
                last_attempt_at = excluded.last_attempt_at,
                last_error = excluded.last_error
            """,
            (
                record.id,
                record.kind,
                json_dumps(record.payload),
                record.status,
                record.retry_count,
                record.created_at,
                record.last_attempt_at,
                record.last_error,
            ),
        )
        await db.commit()

    async def _load_record(self, record_id: str) -> PendingRecord | None:
        db = await self._conn()
        async with db.execute(
            f"SELECT {_COLUMNS} FROM pending_records WHERE id = ?", (record_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return None if row is None else self._from_row(row)

    async def _delete_record(self, record_id: str) -> bool:
        db = await self._conn()
        cursor = await db.execute("DELETE FROM pending_records WHERE id = ?", (record_id,))
        await db.commit()
        return cursor.rowcount > 0

    async def _ordered_records(self) -> list[PendingRecord]:
        db = await self._conn()
        async with db.execute(
            f"SELECT {_COLUMNS} FROM pending_records ORDER BY seq"
        ) as cursor:
            rows = await cursor.fetchall()
        return [self._from_row(row) for row in rows]

    def _from_row(self, row) -> PendingRecord:
        payload = json_loads(row[2])
        return PendingRecord(
            id=row[0],
            kind=row[1],
            payload=payload if isinstance(payload, dict) else {"value": payload},
            status=row[3],
            retry_count=int(row[4]),
            created_at=float(row[5]),
            last_attempt_at=None if row[6] is None else float(row[6]),
            last_error=row[7],
        )

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
