"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Worker state, typed events and the event dispatch loop.
"""

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
from .runtime import OfflineWorker
from .state import WorkerState

__all__ = [
    "WorkerState",
    "OfflineWorker",
    "WorkerEvent",
    "RequestEvent",
    "MessageEvent",
    "AlertEvent",
    "SyncTriggerEvent",
    "LifecycleEvent",
    "NotificationClickEvent",
    "EMERGENCY_SYNC_TAG",
    "LOCATION_SYNC_TAG",
    "RECONNECT_SYNC_TAG",
    "CACHE_EMERGENCY_ACTION",
    "SKIP_WAITING_TYPE",
]
