"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Synchronizer: drains the pending-write queue through the submitter.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Literal

from ..metrics import NoOpWorkerMetrics, WorkerMetrics
from ..network.timeouts import await_with_timeout
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.templates import sync_confirmation
from ..queues.types import PendingRecord, RecordQueue
from ..utils import new_id
from .submit import RecordSubmitter

logger = logging.getLogger("resq.sync")

RecordOutcome = Literal["submitted", "failed", "skipped"]


@dataclass(frozen=True, slots=True)
class DrainSummary:
    """Result of one drain pass."""

    submitted: int = 0
    failed: int = 0
    skipped: int = 0
    submitted_ids: tuple[str, ...] = ()
    failed_ids: tuple[str, ...] = ()


@dataclass(slots=True)
class SyncSession:
    """
    One drain pass over a snapshot of the queue. Never persisted.

    Attributes:
        trigger: What started the drain (sync tag, ``"manual"``, ...).
        kind: Record kind filter, or ``None`` for every kind.
        records: Snapshot taken at the start of the pass, oldest first.
        outcomes: Per-record outcome keyed by record id, in processing order.
    """

    trigger: str
    kind: str | None = None
    id: str = field(default_factory=lambda: new_id("sync"))
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None
    records: list[PendingRecord] = field(default_factory=list)
    outcomes: dict[str, RecordOutcome] = field(default_factory=dict)

    def summary(self) -> DrainSummary:
        submitted = tuple(rid for rid, o in self.outcomes.items() if o == "submitted")
        failed = tuple(rid for rid, o in self.outcomes.items() if o == "failed")
        skipped = sum(1 for o in self.outcomes.values() if o == "skipped")
        return DrainSummary(
            submitted=len(submitted),
            failed=len(failed),
            skipped=skipped,
            submitted_ids=submitted,
            failed_ids=failed,
        )


class Synchronizer:
    """
    Delivers queued records in FIFO order, one at a time.

    Each record is claimed (``in_flight``) before submission so overlapping
    drains never submit it twice. On success the record is removed before
    the confirmation notification is emitted. On failure the retry counter
    is bumped and the record stays queued; nothing is dropped automatically.
    """

    def __init__(
        self,
        queue: RecordQueue,
        submitter: RecordSubmitter,
        *,
        notifications: NotificationDispatcher | None = None,
        metrics: WorkerMetrics | None = None,
        submit_timeout_s: float | None = None,
    ) -> None:
        self._queue = queue
        self._submitter = submitter
        self._notifications = notifications
        self._metrics: WorkerMetrics = metrics or NoOpWorkerMetrics()
        self._submit_timeout_s = submit_timeout_s

    async def drain(self, *, kind: str | None = None, trigger: str = "manual") -> DrainSummary:
        """Run one drain pass; an empty queue yields an empty summary."""
        session = SyncSession(trigger=trigger, kind=kind)
        session.records = await self._queue.dequeue_all(kind=kind)
        if not session.records:
            logger.debug("No pending records to sync (trigger=%s)", trigger)
            session.finished_at = time.time()
            return session.summary()

        logger.info(
            "Sync %s started: %d record(s) (trigger=%s, kind=%s)",
            session.id[-8:],
            len(session.records),
            trigger,
            kind or "*",
        )
        for record in session.records:
            try:
                session.outcomes[record.id] = await self._process(record)
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                logger.exception("Record %s sync failed unexpectedly", record.id)
                session.outcomes[record.id] = "failed"

        session.finished_at = time.time()
        summary = session.summary()
        logger.info(
            "Sync %s finished: submitted=%d failed=%d skipped=%d",
            session.id[-8:],
            summary.submitted,
            summary.failed,
            summary.skipped,
        )
        return summary

    async def _process(self, record: PendingRecord) -> RecordOutcome:
        claimed = await self._queue.claim(record.id)
        if claimed is None:
            return "skipped"

        error: str | None = None
        try:
            accepted = await await_with_timeout(
                self._submitter.submit(claimed), self._submit_timeout_s
            )
            if not accepted:
                error = "rejected by remote"
        except asyncio.CancelledError:
            await asyncio.shield(self._queue.mark_failed(claimed.id, error="cancelled"))
            raise
        except Exception as exc:  # noqa: BLE001
            accepted = False
            error = str(exc) or exc.__class__.__name__

        if not accepted:
            await self._requeue(claimed, error)
            self._metrics.incr("sync_failed_total", tags={"kind": claimed.kind})
            logger.warning("Record %s not synced: %s", claimed.id, error)
            return "failed"

        try:
            removed = await self._queue.remove(claimed.id)
        except Exception as exc:  # noqa: BLE001
            # Accepted upstream but still stored: resubmitted later under the same id.
            logger.exception("Record %s accepted but could not be removed", claimed.id)
            await self._requeue(claimed, f"remove failed: {exc}")
            self._metrics.incr("sync_failed_total", tags={"kind": claimed.kind})
            return "failed"
        if not removed:
            return "skipped"
        claimed.status = "submitted"
        self._metrics.incr("sync_submitted_total", tags={"kind": claimed.kind})
        logger.info("Record %s synced", claimed.id)
        await self._confirm(claimed)
        return "submitted"

    async def _requeue(self, record: PendingRecord, error: str | None) -> None:
        """Leave a claimed record drainable again, whatever the queue throws."""
        try:
            await self._queue.mark_failed(record.id, error=error)
            return
        except Exception:  # noqa: BLE001
            logger.exception("Failed to record attempt for %s", record.id)
        try:
            await self._queue.release(record.id)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Record %s stays in flight until recover_in_flight runs", record.id
            )

    async def _confirm(self, record: PendingRecord) -> None:
        if self._notifications is None:
            return
        request = sync_confirmation(record.id, record.kind)
        if request is not None:
            await self._notifications.dispatch(request)
