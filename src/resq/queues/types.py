"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Pending-write queue types and abstract base.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal

from ..types import JSONValue
from ..utils import new_id

RecordStatus = Literal["queued", "in_flight", "failed", "submitted"]

# Records in these states are picked up by the next drain.
DRAINABLE_STATUSES: tuple[RecordStatus, ...] = ("queued", "failed")


@dataclass(slots=True)
class PendingRecord:
    """
    A locally created record awaiting confirmed delivery.

    Attributes:
        payload: Opaque record submitted upstream.
        kind: Record family, e.g. ``"emergency"`` or ``"location"``.
        id: Locally generated unique id; doubles as the upstream dedup key.
        status: Current delivery status.
        retry_count: Failed submission attempts so far.
        created_at: Unix timestamp when the record was enqueued.
        last_attempt_at: Unix timestamp of the latest submission attempt.
        last_error: Error message from the latest failed attempt.
    """

    payload: dict[str, JSONValue]
    kind: str = "emergency"
    id: str = field(default_factory=lambda: new_id("rec"))
    status: RecordStatus = "queued"
    retry_count: int = 0
    created_at: float = field(default_factory=time.time)
    last_attempt_at: float | None = None
    last_error: str | None = None

    @property
    def is_drainable(self) -> bool:
        return self.status in DRAINABLE_STATUSES


class RecordQueue(ABC):
    """
    Durable FIFO of pending records with per-record retry state.

    Implementations provide the persistence layer (in-memory, SQLite, Redis).
    """

    @abstractmethod
    async def enqueue(
        self,
        payload: dict[str, JSONValue],
        *,
        kind: str = "emergency",
        record_id: str | None = None,
    ) -> str:
        """
        Append one record and return its id.

        Enqueueing an id that is already present is a no-op returning that id.
        """
        ...

    @abstractmethod
    async def dequeue_all(self, *, kind: str | None = None) -> list[PendingRecord]:
        """
        Snapshot drainable records in creation order, oldest first.

        Records marked ``in_flight`` are excluded. Nothing is removed.
        """
        ...

    @abstractmethod
    async def claim(self, record_id: str) -> PendingRecord | None:
        """
        Atomically mark a drainable record ``in_flight``.

        Returns ``None`` when the record is gone or already in flight.
        """
        ...

    @abstractmethod
    async def remove(self, record_id: str) -> bool:
        """Delete a record; returns False when it was already removed."""
        ...

    @abstractmethod
    async def mark_failed(
        self, record_id: str, *, error: str | None = None
    ) -> PendingRecord | None:
        """Increment the retry counter and leave the record queued for the next drain."""
        ...

    @abstractmethod
    async def release(self, record_id: str) -> bool:
        """Return an ``in_flight`` record to ``queued`` without counting an attempt."""
        ...

    @abstractmethod
    async def get(self, record_id: str) -> PendingRecord | None: ...

    @abstractmethod
    async def list_records(
        self,
        *,
        status: RecordStatus | None = None,
        kind: str | None = None,
        limit: int = 1000,
    ) -> list[PendingRecord]:
        """List records in creation order with optional filters."""
        ...

    @abstractmethod
    async def recover_in_flight(self) -> int:
        """Return records stuck ``in_flight`` after a restart to ``queued``."""
        ...

    async def count(self, *, kind: str | None = None) -> int:
        return len(await self.list_records(kind=kind))

    async def close(self) -> None:
        return None
