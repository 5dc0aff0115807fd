"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Offline worker: event dispatch loop over the shared worker state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..clients import WindowClient
from ..notifications.routing import resolve_action_target
from ..notifications.templates import build_alert_notification
from ..sync.scheduler import SyncScheduler, SyncSchedulerConfig
from ..sync.synchronizer import DrainSummary
from ..types import JSONValue
from .events import (
    CACHE_EMERGENCY_ACTION,
    EMERGENCY_SYNC_TAG,
    LOCATION_SYNC_TAG,
    RECONNECT_SYNC_TAG,
    SKIP_WAITING_TYPE,
    AlertEvent,
    LifecycleEvent,
    MessageEvent,
    NotificationClickEvent,
    RequestEvent,
    SyncTriggerEvent,
    WorkerEvent,
)
from .state import WorkerState

logger = logging.getLogger("resq.worker")


class OfflineWorker:
    """
    Routes typed events to their handlers.

    Events submitted through `submit()` each run in their own task, so a
    slow fetch or a failing sync never holds up other events. `dispatch()`
    handles one event inline.
    """

    def __init__(self, state: WorkerState, *, shutdown_timeout_s: float = 30.0) -> None:
        self._state = state
        self._shutdown_timeout_s = shutdown_timeout_s
        self._inbox: asyncio.Queue[tuple[WorkerEvent, asyncio.Future[Any]]] = asyncio.Queue()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._active_tasks: set[asyncio.Task[None]] = set()
        periodic = (EMERGENCY_SYNC_TAG,)
        if state.location is not None:
            periodic = periodic + (LOCATION_SYNC_TAG,)
        self._scheduler = SyncScheduler(
            self.run_sync,
            config=SyncSchedulerConfig(
                interval_s=state.settings.sync_interval_s,
                periodic_tags=periodic,
                shutdown_timeout_s=shutdown_timeout_s,
            ),
        )

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def scheduler(self) -> SyncScheduler:
        return self._scheduler

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Recover interrupted records, then start the event loop and periodic sync."""
        if self._running:
            raise RuntimeError("OfflineWorker is already running")
        recovered = await self._state.queue.recover_in_flight()
        if recovered:
            logger.info("Recovered %d in-flight record(s) on startup", recovered)
        self._running = True
        self._task = asyncio.create_task(self._loop())
        await self._scheduler.start()
        logger.info("OfflineWorker started")

    async def shutdown(self) -> None:
        """Stop accepting events and wait for in-flight handlers."""
        self._running = False
        await self._scheduler.shutdown()
        if self._task and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

        if self._active_tasks:
            logger.info("Waiting for %d active event(s)...", len(self._active_tasks))
            _, pending = await asyncio.wait(
                set(self._active_tasks), timeout=self._shutdown_timeout_s
            )
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        await self._state.engine.wait_for_pending_writes(timeout_s=self._shutdown_timeout_s)
        logger.info("OfflineWorker shut down")

    def submit(self, event: WorkerEvent) -> asyncio.Future[Any]:
        """Queue one event; the returned future resolves with its handler result."""
        if not self._running:
            raise RuntimeError("OfflineWorker is not running")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait((event, future))
        return future

    async def _loop(self) -> None:
        while self._running:
            try:
                event, future = await self._inbox.get()
            except asyncio.CancelledError:
                break
            task = asyncio.create_task(self._run_event(event, future))
            self._active_tasks.add(task)
            task.add_done_callback(self._active_tasks.discard)

    async def _run_event(self, event: WorkerEvent, future: asyncio.Future[Any]) -> None:
        try:
            result = await self.dispatch(event)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:  # noqa: BLE001
            logger.debug("Event %s failed: %s", type(event).__name__, exc)
            if not future.done():
                future.set_exception(exc)
            return
        if not future.done():
            future.set_result(result)

    async def dispatch(self, event: WorkerEvent) -> Any:
        """Handle one event and return its result."""
        if isinstance(event, RequestEvent):
            return await self._state.engine.handle(event.request)
        if isinstance(event, MessageEvent):
            return await self.handle_message(event)
        if isinstance(event, AlertEvent):
            return await self.handle_alert(event)
        if isinstance(event, SyncTriggerEvent):
            return await self.run_sync(event.tag)
        if isinstance(event, LifecycleEvent):
            if event.phase == "install":
                handle = await self._state.lifecycle.install()
                return handle.tag
            return await self._state.lifecycle.activate()
        if isinstance(event, NotificationClickEvent):
            return await self.handle_notification_click(event)
        raise TypeError(f"Unsupported worker event: {type(event).__name__}")

    async def handle_message(self, event: MessageEvent) -> dict[str, JSONValue]:
        data = event.data
        if data.get("action") == CACHE_EMERGENCY_ACTION:
            emergency = data.get("emergency")
            if not isinstance(emergency, dict):
                return {"success": False, "error": "emergency must be an object"}
            supplied_id = emergency.get("id")
            record_id = await self._state.queue.enqueue(
                emergency,
                kind="emergency",
                record_id=supplied_id if isinstance(supplied_id, str) and supplied_id else None,
            )
            self.trigger_sync(EMERGENCY_SYNC_TAG)
            logger.info("Emergency %s cached for sync", record_id)
            return {
                "success": True,
                "message": "Emergency cached for sync when online",
                "recordId": record_id,
            }
        if data.get("type") == SKIP_WAITING_TYPE:
            activated = await self._state.lifecycle.skip_waiting()
            return {"success": True, "activated": activated}
        logger.warning("Unsupported client message: %s", sorted(data.keys()))
        return {"success": False, "error": "Unsupported message"}

    async def handle_alert(self, event: AlertEvent) -> bool:
        request = build_alert_notification(event.payload)
        return await self._state.notifications.dispatch(request)

    async def handle_notification_click(
        self, event: NotificationClickEvent
    ) -> WindowClient | None:
        await self._state.notifications.close(event.tag)
        target = resolve_action_target(event.action, event.data)
        if target is None:
            return None
        return await self._state.clients.focus_or_open(target, origin=self._state.settings.origin)

    def trigger_sync(self, tag: str) -> asyncio.Task[None]:
        """Start a sync for `tag` in the background."""
        return self._scheduler.request(tag)

    async def run_sync(self, tag: str) -> DrainSummary | None:
        if tag == EMERGENCY_SYNC_TAG:
            return await self._state.synchronizer.drain(kind="emergency", trigger=tag)
        if tag == RECONNECT_SYNC_TAG:
            return await self._state.synchronizer.drain(trigger=tag)
        if tag == LOCATION_SYNC_TAG:
            if self._state.location is None:
                logger.warning("No position provider configured; skipping %s", tag)
                return None
            return await self._state.location.report(trigger=tag)
        logger.warning("Unknown sync tag '%s'", tag)
        return None
