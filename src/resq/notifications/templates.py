"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Notification templates for inbound alerts and sync confirmations.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from .types import NotificationAction, NotificationRequest

DEFAULT_ICON = "/icons/icon-192x192.png"

AlertTemplate = Callable[[Mapping[str, Any]], NotificationRequest]


def _emergency_tag(payload: Mapping[str, Any]) -> str:
    emergency_id = payload.get("emergencyId")
    return f"emergency-{emergency_id}" if emergency_id else "emergency"


def _emergency_assigned(payload: Mapping[str, Any]) -> NotificationRequest:
    return NotificationRequest(
        title="🚨 Emergency Response Assigned",
        body=(
            f"Responder {payload.get('responderName', 'A responder')} is heading to "
            f"your emergency. ETA: {payload.get('eta', '?')} minutes."
        ),
        tag=_emergency_tag(payload),
        actions=(
            NotificationAction("track", "Track Responder"),
            NotificationAction("contact", "Contact Responder"),
        ),
        require_interaction=True,
        urgency="high",
        data={"emergencyId": payload.get("emergencyId"), "type": "emergency_assigned"},
        icon="/icons/responder-icon.png",
    )


def _emergency_cancelled(payload: Mapping[str, Any]) -> NotificationRequest:
    return NotificationRequest(
        title="❌ Emergency Cancelled",
        body=f"Emergency {payload.get('emergencyId', '')} has been cancelled.",
        tag=_emergency_tag(payload),
        data={"emergencyId": payload.get("emergencyId"), "type": "emergency_cancelled"},
        icon="/icons/cancelled-icon.png",
    )


def _responder_arrived(payload: Mapping[str, Any]) -> NotificationRequest:
    return NotificationRequest(
        title="✅ Help Has Arrived",
        body=f"{payload.get('responderName', 'Your responder')} has arrived at your emergency location.",
        tag=_emergency_tag(payload),
        actions=(
            NotificationAction("confirm", "Confirm Arrival"),
            NotificationAction("message", "Send Message"),
        ),
        require_interaction=True,
        urgency="high",
        data={"emergencyId": payload.get("emergencyId"), "type": "responder_arrived"},
        icon="/icons/arrived-icon.png",
    )


def _emergency_resolved(payload: Mapping[str, Any]) -> NotificationRequest:
    return NotificationRequest(
        title="✅ Emergency Resolved",
        body="Your emergency has been successfully resolved. Thank you for using our service.",
        tag=_emergency_tag(payload),
        actions=(
            NotificationAction("feedback", "Leave Feedback"),
            NotificationAction("view", "View Details"),
        ),
        urgency="low",
        data={"emergencyId": payload.get("emergencyId"), "type": "emergency_resolved"},
        icon="/icons/resolved-icon.png",
    )


def _system_alert(payload: Mapping[str, Any]) -> NotificationRequest:
    return NotificationRequest(
        title="📢 System Alert",
        body=str(payload.get("message") or "Important system notification"),
        tag="system-alert",
        data={"type": "system_alert", "alertId": payload.get("alertId")},
        icon="/icons/alert-icon.png",
    )


def default_alert(payload: Mapping[str, Any]) -> NotificationRequest:
    """Template for alerts with a missing or unrecognized `type`."""
    urgent = bool(payload.get("urgent"))
    data = payload.get("data")
    return NotificationRequest(
        title=str(payload.get("title") or "Emergency Alert"),
        body=str(payload.get("body") or "Emergency notification"),
        tag=str(payload.get("tag") or "emergency"),
        actions=(
            NotificationAction("view", "View Details"),
            NotificationAction("dismiss", "Dismiss"),
        ),
        require_interaction=urgent,
        urgency="high" if urgent else "normal",
        data=dict(data) if isinstance(data, Mapping) else {},
        icon=DEFAULT_ICON,
    )


ALERT_TEMPLATES: dict[str, AlertTemplate] = {
    "emergency_assigned": _emergency_assigned,
    "emergency_cancelled": _emergency_cancelled,
    "responder_arrived": _responder_arrived,
    "emergency_resolved": _emergency_resolved,
    "system_alert": _system_alert,
}


def build_alert_notification(payload: Mapping[str, Any]) -> NotificationRequest:
    """Select a template by `payload["type"]`, falling back to the default."""
    alert_type = payload.get("type")
    template = ALERT_TEMPLATES.get(alert_type) if isinstance(alert_type, str) else None
    return (template or default_alert)(payload)


def sync_confirmation(record_id: str, kind: str) -> NotificationRequest | None:
    """Confirmation shown after a queued record was accepted upstream."""
    if kind != "emergency":
        return None
    return NotificationRequest(
        title="Emergency Synced",
        body="Your emergency report has been successfully submitted.",
        tag=f"sync-success-{record_id}",
        data={"recordId": record_id, "type": "sync_success"},
        icon=DEFAULT_ICON,
    )
