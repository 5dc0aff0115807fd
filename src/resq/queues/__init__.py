"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Pending-write queue for locally created records.

Quick start::

    from resq.queues import InMemoryRecordQueue

    queue = InMemoryRecordQueue()
    record_id = await queue.enqueue({"type": "fire"}, kind="emergency")
    for record in await queue.dequeue_all():
        ...
"""

from .base import BaseRecordQueue
from .factory import create_record_queue_from_env
from .memory import InMemoryRecordQueue
from .sqlite import SQLiteRecordQueue
from .types import DRAINABLE_STATUSES, PendingRecord, RecordQueue, RecordStatus

__all__ = [
    "PendingRecord",
    "RecordQueue",
    "RecordStatus",
    "DRAINABLE_STATUSES",
    "BaseRecordQueue",
    "InMemoryRecordQueue",
    "SQLiteRecordQueue",
    "create_record_queue_from_env",
]


# Lazy import for Redis queue
def __getattr__(name: str):
    """Lazily expose optional queue backends that require extra dependencies."""
    if name == "RedisRecordQueue":
        from .redis_queue import RedisRecordQueue

        return RedisRecordQueue
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
