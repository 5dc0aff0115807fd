"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Small shared helpers: ids, JSON, origins and environment parsing.
"""

from __future__ import annotations

import json
import os
import uuid
from typing import Any, cast
from urllib.parse import urlsplit

from .types import JSONValue


def new_id(prefix: str = "rec") -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def json_dumps(obj: JSONValue | dict[str, Any] | list[Any] | Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def json_loads(s: str | bytes) -> JSONValue:
    if isinstance(s, bytes):
        s = s.decode("utf-8")
    return cast(JSONValue, json.loads(s))


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for an absolute URL, or ``""``."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


def env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def env_bool(name: str, *, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def env_list(name: str, *, default: tuple[str, ...]) -> tuple[str, ...]:
    """Parse a comma-separated environment variable into a tuple."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def env_optional_float(name: str, *, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    if raw.strip().lower() in ("none", "off"):
        return None
    return float(raw)
