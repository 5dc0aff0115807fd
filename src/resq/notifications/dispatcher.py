"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Best-effort notification delivery.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Protocol

from ..errors import NotificationDeliveryError
from ..metrics import NoOpWorkerMetrics, WorkerMetrics
from .types import NotificationRequest, ShownNotification

logger = logging.getLogger("resq.notifications")


class Notifier(Protocol):
    """Host-side display surface for notifications."""

    async def show(self, request: NotificationRequest) -> None: ...

    async def list_shown(self) -> list[ShownNotification]: ...

    async def close(self, tag: str) -> None: ...


class InMemoryNotifier:
    """
    Notifier keeping displayed notifications keyed by tag.

    Showing a notification whose tag is already displayed replaces it.
    """

    def __init__(self, *, history_limit: int = 100) -> None:
        self._shown: dict[str, ShownNotification] = {}
        self.history: deque[NotificationRequest] = deque(maxlen=history_limit)

    async def show(self, request: NotificationRequest) -> None:
        self._shown.pop(request.tag, None)
        self._shown[request.tag] = ShownNotification(request=request)
        self.history.append(request)

    async def list_shown(self) -> list[ShownNotification]:
        return list(self._shown.values())

    async def close(self, tag: str) -> None:
        self._shown.pop(tag, None)


class NotificationDispatcher:
    """
    Sends notification requests to a notifier without ever raising.

    Delivery failures are logged and counted; they are not retried.
    """

    def __init__(
        self,
        notifier: Notifier,
        *,
        metrics: WorkerMetrics | None = None,
    ) -> None:
        self._notifier = notifier
        self._metrics: WorkerMetrics = metrics or NoOpWorkerMetrics()

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    async def dispatch(self, request: NotificationRequest) -> bool:
        """Show one notification; returns False when delivery failed."""
        try:
            await self._notifier.show(request)
        except Exception as exc:  # noqa: BLE001
            self._metrics.incr("notification_failed_total")
            error = exc if isinstance(exc, NotificationDeliveryError) else NotificationDeliveryError(str(exc))
            logger.warning("Notification '%s' not delivered: %s", request.tag, error)
            return False
        logger.debug("Notification '%s' shown", request.tag)
        return True

    async def close(self, tag: str) -> None:
        try:
            await self._notifier.close(tag)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to close notification '%s'", tag)

    async def expire_older_than(self, max_age_s: float, *, now: float | None = None) -> int:
        """Close displayed notifications older than `max_age_s`."""
        current = time.time() if now is None else now
        try:
            shown = await self._notifier.list_shown()
        except Exception:  # noqa: BLE001
            logger.exception("Failed to list notifications for expiry")
            return 0
        closed = 0
        for item in shown:
            if current - item.shown_at > max_age_s:
                await self.close(item.tag)
                closed += 1
        if closed:
            logger.info("Closed %d expired notification(s)", closed)
        return closed
