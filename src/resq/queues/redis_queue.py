"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Redis-backed durable record queue.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any

from .base import BaseRecordQueue
from .types import PendingRecord

logger = logging.getLogger("resq.queues.redis")


class RedisRecordQueue(BaseRecordQueue):
    """
    Persistent record queue using Redis for durability across restarts.

    Uses:
    - Redis list (``{prefix}:order``) for FIFO record ids
    - Redis hash (``{prefix}:records``) for record state

    Requires ``redis.asyncio`` (``pip install redis``).

    Args:
        redis: An ``redis.asyncio.Redis`` client instance.
        prefix: Key prefix for namespacing.
    """

    def __init__(self, redis: Any, *, prefix: str = "resq:queue") -> None:
        super().__init__()
        self._redis = redis
        self._prefix = prefix

    def _order_key(self) -> str:
        """Redis list key storing record ids in creation order."""
        return f"{self._prefix}:order"

    def _records_key(self) -> str:
        """Redis hash key storing serialized records."""
        return f"{self._prefix}:records"

    def _serialize(self, record: PendingRecord) -> str:
        return json.dumps(asdict(record), default=str)

    def _deserialize(self, raw: str | bytes) -> PendingRecord:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return PendingRecord(**json.loads(raw))

    async def _save_record(self, record: PendingRecord) -> None:
        added = await self._redis.hset(self._records_key(), record.id, self._serialize(record))
        if added:
            await self._redis.rpush(self._order_key(), record.id)

    async def _load_record(self, record_id: str) -> PendingRecord | None:
        raw = await self._redis.hget(self._records_key(), record_id)
        if raw is None:
            return None
        return self._deserialize(raw)

    async def _delete_record(self, record_id: str) -> bool:
        removed = await self._redis.hdel(self._records_key(), record_id)
        await self._redis.lrem(self._order_key(), 0, record_id)
        return bool(removed)

    async def _ordered_records(self) -> list[PendingRecord]:
        ids = await self._redis.lrange(self._order_key(), 0, -1)
        if not ids:
            return []
        raws = await self._redis.hmget(self._records_key(), ids)
        records: list[PendingRecord] = []
        for record_id, raw in zip(ids, raws):
            if raw is None:
                logger.debug("Dropping dangling record id %r from order list", record_id)
                continue
            records.append(self._deserialize(raw))
        return records

    async def close(self) -> None:
        close = getattr(self._redis, "aclose", None)
        if close is not None:
            await close()
