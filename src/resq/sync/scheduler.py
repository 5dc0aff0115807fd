"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Sync triggers: explicit requests and a best-effort periodic tick.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("resq.sync.scheduler")

SyncHandler = Callable[[str], Awaitable[Any]]


@dataclass
class SyncSchedulerConfig:
    """
    Configuration for the sync scheduler.

    Attributes:
        interval_s: Minimum seconds between periodic ticks. Ticks may fire
            later than this, never earlier.
        periodic_tags: Sync tags run on every periodic tick.
        shutdown_timeout_s: Grace period for running syncs on shutdown.
    """

    interval_s: float = 900.0
    periodic_tags: tuple[str, ...] = ()
    shutdown_timeout_s: float = 30.0


class SyncScheduler:
    """
    Runs sync handlers for explicit triggers and on a periodic tick.

    Handler errors are logged and never stop the scheduler.
    """

    def __init__(self, handler: SyncHandler, *, config: SyncSchedulerConfig | None = None) -> None:
        self._handler = handler
        self._config = config or SyncSchedulerConfig()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._active: set[asyncio.Task[None]] = set()

    @property
    def is_running(self) -> bool:
        """Whether the periodic loop is active."""
        return self._running

    @property
    def active_sync_count(self) -> int:
        return len(self._active)

    async def start(self) -> None:
        if self._running:
            raise RuntimeError("SyncScheduler is already running")
        if self._config.interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "SyncScheduler started (interval=%.1fs, tags=%s)",
            self._config.interval_s,
            ",".join(self._config.periodic_tags) or "-",
        )

    async def shutdown(self) -> None:
        """Stop the periodic loop and wait for running syncs."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

        if self._active:
            _, pending = await asyncio.wait(
                set(self._active), timeout=self._config.shutdown_timeout_s
            )
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        logger.info("SyncScheduler shut down")

    def request(self, tag: str) -> asyncio.Task[None]:
        """Schedule one sync for `tag` without waiting for it."""
        task = asyncio.create_task(self._run(tag))
        self._active.add(task)
        task.add_done_callback(self._active.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every requested sync has finished."""
        while self._active:
            await asyncio.gather(*set(self._active), return_exceptions=True)

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._config.interval_s)
                if not self._running:
                    break
                for tag in self._config.periodic_tags:
                    await self._run(tag)
            except asyncio.CancelledError:
                break

    async def _run(self, tag: str) -> None:
        try:
            await self._handler(tag)
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            logger.exception("Sync '%s' failed", tag)
