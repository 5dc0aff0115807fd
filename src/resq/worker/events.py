"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed inbound events routed by the worker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from ..types import JSONValue, Request

EMERGENCY_SYNC_TAG = "emergency-sync"
LOCATION_SYNC_TAG = "responder-location-sync"
RECONNECT_SYNC_TAG = "reconnect"

CACHE_EMERGENCY_ACTION = "CACHE_EMERGENCY"
SKIP_WAITING_TYPE = "SKIP_WAITING"


@dataclass(frozen=True, slots=True)
class RequestEvent:
    """An intercepted outbound request."""

    request: Request


@dataclass(frozen=True, slots=True)
class MessageEvent:
    """
    A request/response message from a client.

    Supported shapes:
    - ``{"action": "CACHE_EMERGENCY", "emergency": {...}}`` queues a record.
    - ``{"type": "SKIP_WAITING"}`` forces activation of a waiting generation.
    """

    data: dict[str, JSONValue]
    client_id: str | None = None


@dataclass(frozen=True, slots=True)
class AlertEvent:
    """Inbound alert; `payload["type"]` selects the notification template."""

    payload: dict[str, JSONValue]


@dataclass(frozen=True, slots=True)
class SyncTriggerEvent:
    """Explicit, reconnection or periodic request to run one sync tag."""

    tag: str
    periodic: bool = False


@dataclass(frozen=True, slots=True)
class LifecycleEvent:
    """Install or activate signal for the cache generation lifecycle."""

    phase: Literal["install", "activate"]


@dataclass(frozen=True, slots=True)
class NotificationClickEvent:
    """A click on a notification or one of its actions."""

    tag: str
    action: str | None = None
    data: dict[str, JSONValue] = field(default_factory=dict)


WorkerEvent: TypeAlias = (
    RequestEvent
    | MessageEvent
    | AlertEvent
    | SyncTriggerEvent
    | LifecycleEvent
    | NotificationClickEvent
)
