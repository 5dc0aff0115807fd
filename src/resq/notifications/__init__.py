"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Notification requests, delivery, templates and click routing.
"""

from .dispatcher import InMemoryNotifier, NotificationDispatcher, Notifier
from .routing import DISMISS_ACTION, resolve_action_target
from .templates import ALERT_TEMPLATES, build_alert_notification, sync_confirmation
from .types import NotificationAction, NotificationRequest, ShownNotification, Urgency

__all__ = [
    "NotificationAction",
    "NotificationRequest",
    "ShownNotification",
    "Urgency",
    "Notifier",
    "InMemoryNotifier",
    "NotificationDispatcher",
    "ALERT_TEMPLATES",
    "build_alert_notification",
    "sync_confirmation",
    "DISMISS_ACTION",
    "resolve_action_target",
]
