"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Notification action to navigation target routing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

DISMISS_ACTION = "dismiss"

_VIEW_SUFFIX: dict[str, str] = {
    "track": "&view=tracking",
    "contact": "&view=contact",
    "confirm": "&action=confirm",
    "message": "&view=chat",
    "feedback": "&view=feedback",
    "view": "",
}


def resolve_action_target(action: str | None, data: Mapping[str, Any] | None) -> str | None:
    """
    Map a clicked action to its navigation target.

    Returns ``None`` for ``dismiss``, which performs no navigation. A click on
    the notification body (no action) or an unknown action opens the
    emergency view when the notification carries an emergency id, else ``/``.
    """
    if action == DISMISS_ACTION:
        return None
    emergency_id = (data or {}).get("emergencyId")
    if action in _VIEW_SUFFIX:
        return f"/?emergency={emergency_id or ''}{_VIEW_SUFFIX[action]}"
    if emergency_id:
        return f"/?emergency={emergency_id}"
    return "/"
