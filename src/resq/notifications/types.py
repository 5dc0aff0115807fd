"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Notification request and delivery types.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Literal

from ..types import JSONValue

Urgency = Literal["low", "normal", "high"]


@dataclass(frozen=True, slots=True)
class NotificationAction:
    """One action button on a notification."""

    action: str
    title: str


@dataclass(frozen=True, slots=True)
class NotificationRequest:
    """
    Notification the worker asks the host to display.

    Attributes:
        title: Notification title.
        body: Notification body text.
        tag: Stable event key; a new request with the same tag replaces the
            previous notification instead of stacking.
        actions: Action buttons, each routed by `resolve_action_target`.
        require_interaction: Keep visible until the user acts.
        urgency: Delivery urgency hint.
        data: JSON-safe data echoed back on click.
        icon: Optional icon URL.
    """

    title: str
    body: str
    tag: str
    actions: tuple[NotificationAction, ...] = ()
    require_interaction: bool = False
    urgency: Urgency = "normal"
    data: dict[str, JSONValue] = field(default_factory=dict)
    icon: str | None = None


@dataclass(frozen=True, slots=True)
class ShownNotification:
    """A notification currently displayed by a notifier."""

    request: NotificationRequest
    shown_at: float = field(default_factory=time.time)

    @property
    def tag(self) -> str:
        return self.request.tag
