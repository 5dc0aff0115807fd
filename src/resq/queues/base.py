"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared base queue implementation for storage-backed record queues.
"""

from __future__ import annotations

import asyncio
import time
from abc import abstractmethod

from ..types import JSONValue
from .types import PendingRecord, RecordQueue, RecordStatus


class BaseRecordQueue(RecordQueue):
    """
    Shared pending-record lifecycle logic for storage-backed implementations.

    Backends only implement record persistence and ordered listing.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    def _now(self) -> float:
        """Return wall-clock timestamp used for record lifecycle events."""
        return time.time()

    @abstractmethod
    async def _save_record(self, record: PendingRecord) -> None:
        """Insert or update one record, keeping its original queue position."""

    @abstractmethod
    async def _load_record(self, record_id: str) -> PendingRecord | None:
        """Load one record."""

    @abstractmethod
    async def _delete_record(self, record_id: str) -> bool:
        """Delete one record; return whether it existed."""

    @abstractmethod
    async def _ordered_records(self) -> list[PendingRecord]:
        """Return every record in creation order."""

    async def enqueue(
        self,
        payload: dict[str, JSONValue],
        *,
        kind: str = "emergency",
        record_id: str | None = None,
    ) -> str:
        """Persist a new queued record."""
        async with self._lock:
            if record_id is not None and await self._load_record(record_id) is not None:
                return record_id
            record = PendingRecord(payload=dict(payload), kind=kind, created_at=self._now())
            if record_id is not None:
                record.id = record_id
            await self._save_record(record)
            return record.id

    async def dequeue_all(self, *, kind: str | None = None) -> list[PendingRecord]:
        return [
            r
            for r in await self._ordered_records()
            if r.is_drainable and (kind is None or r.kind == kind)
        ]

    async def claim(self, record_id: str) -> PendingRecord | None:
        async with self._lock:
            record = await self._load_record(record_id)
            if record is None or not record.is_drainable:
                return None
            record.status = "in_flight"
            record.last_attempt_at = self._now()
            await self._save_record(record)
            return record

    async def remove(self, record_id: str) -> bool:
        async with self._lock:
            return await self._delete_record(record_id)

    async def mark_failed(
        self, record_id: str, *, error: str | None = None
    ) -> PendingRecord | None:
        async with self._lock:
            record = await self._load_record(record_id)
            if record is None:
                return None
            record.retry_count += 1
            record.status = "failed"
            record.last_error = error
            await self._save_record(record)
            return record

    async def release(self, record_id: str) -> bool:
        async with self._lock:
            record = await self._load_record(record_id)
            if record is None or record.status != "in_flight":
                return False
            record.status = "queued"
            await self._save_record(record)
            return True

    async def get(self, record_id: str) -> PendingRecord | None:
        """Return one record by id, or `None` when missing."""
        return await self._load_record(record_id)

    async def list_records(
        self,
        *,
        status: RecordStatus | None = None,
        kind: str | None = None,
        limit: int = 1000,
    ) -> list[PendingRecord]:
        items = [
            r
            for r in await self._ordered_records()
            if (status is None or r.status == status) and (kind is None or r.kind == kind)
        ]
        return items[:limit]

    async def recover_in_flight(self) -> int:
        moved = 0
        async with self._lock:
            for record in await self._ordered_records():
                if record.status != "in_flight":
                    continue
                record.status = "queued"
                await self._save_record(record)
                moved += 1
        return moved
