"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

In-memory record queue implementation.
"""

from __future__ import annotations

from dataclasses import replace

from .base import BaseRecordQueue
from .types import PendingRecord


class InMemoryRecordQueue(BaseRecordQueue):
    """
    In-process record queue backed by an insertion-ordered dict.

    Suitable for tests and single-process use. Records are lost on process
    restart.
    """

    def __init__(self) -> None:
        super().__init__()
        self._records: dict[str, PendingRecord] = {}

    async def _save_record(self, record: PendingRecord) -> None:
        self._records[record.id] = replace(record, payload=dict(record.payload))

    async def _load_record(self, record_id: str) -> PendingRecord | None:
        record = self._records.get(record_id)
        return None if record is None else replace(record, payload=dict(record.payload))

    async def _delete_record(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None

    async def _ordered_records(self) -> list[PendingRecord]:
        return [replace(r, payload=dict(r.payload)) for r in self._records.values()]

    @property
    def total_count(self) -> int:
        """Total number of tracked records."""
        return len(self._records)
