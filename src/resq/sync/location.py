"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Responder location pings queued through the pending-write queue.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from ..network.timeouts import await_with_timeout
from ..queues.types import RecordQueue
from ..settings import WorkerSettings
from .synchronizer import DrainSummary, Synchronizer

logger = logging.getLogger("resq.sync.location")

LOCATION_KIND = "location"


@dataclass(frozen=True, slots=True)
class Position:
    """One acquired geographic position."""

    latitude: float
    longitude: float
    accuracy_m: float | None = None
    timestamp: float = field(default_factory=time.time)


class PositionProvider(Protocol):
    """Opaque source of the device's current position."""

    async def current_position(self, *, max_age_s: float, high_accuracy: bool) -> Position: ...


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LocationReporter:
    """
    Acquires a position, queues it as a ``location`` record and drains.

    A new ping supersedes older location records still waiting in the queue.
    """

    def __init__(
        self,
        queue: RecordQueue,
        synchronizer: Synchronizer,
        provider: PositionProvider,
        *,
        settings: WorkerSettings | None = None,
    ) -> None:
        self._queue = queue
        self._synchronizer = synchronizer
        self._provider = provider
        self._settings = settings or WorkerSettings()

    async def report(self, *, trigger: str = "responder-location-sync") -> DrainSummary | None:
        """Returns the drain summary, or ``None`` when no position was acquired."""
        try:
            position = await await_with_timeout(
                self._provider.current_position(
                    max_age_s=self._settings.position_max_age_s,
                    high_accuracy=True,
                ),
                self._settings.position_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Position not acquired within %ss", self._settings.position_timeout_s
            )
            return None
        except Exception:  # noqa: BLE001
            logger.exception("Failed to acquire responder position")
            return None

        superseded = 0
        for record in await self._queue.dequeue_all(kind=LOCATION_KIND):
            if await self._queue.remove(record.id):
                superseded += 1
        if superseded:
            logger.debug("Superseded %d queued location ping(s)", superseded)

        await self._queue.enqueue(
            {
                "lat": position.latitude,
                "lng": position.longitude,
                "timestamp": _iso_now(),
            },
            kind=LOCATION_KIND,
        )
        return await self._synchronizer.drain(kind=LOCATION_KIND, trigger=trigger)
