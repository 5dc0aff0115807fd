"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting record queue backends from environment variables.
"""

from __future__ import annotations

import os
from typing import Any

from ..utils import env_first
from .memory import InMemoryRecordQueue
from .types import RecordQueue


def _redis_url() -> str:
    url = env_first("RESQ_QUEUE_REDIS_URL", "RESQ_REDIS_URL")
    if url:
        return url
    host = env_first("RESQ_QUEUE_REDIS_HOST", "RESQ_REDIS_HOST", default="localhost") or "localhost"
    port = env_first("RESQ_QUEUE_REDIS_PORT", "RESQ_REDIS_PORT", default="6379") or "6379"
    db = env_first("RESQ_QUEUE_REDIS_DB", "RESQ_REDIS_DB", default="0") or "0"
    password = env_first("RESQ_QUEUE_REDIS_PASSWORD", "RESQ_REDIS_PASSWORD", default="") or ""
    if password:
        return f"redis://:{password}@{host}:{port}/{db}"
    return f"redis://{host}:{port}/{db}"


def create_record_queue_from_env(*, redis_client: Any | None = None) -> RecordQueue:
    """
    Create a record queue backend from `RESQ_QUEUE_*` environment variables.

    Backends:
    - `inmemory` (default)
    - `sqlite` (path from `RESQ_QUEUE_SQLITE_PATH` or `RESQ_SQLITE_PATH`)
    - `redis`

    Redis resolution:
    - Uses the provided `redis_client` when supplied.
    - Otherwise builds a client from `RESQ_QUEUE_REDIS_URL` (or `RESQ_REDIS_URL`).
    - If no URL is set, falls back to host/port/db/password variables.
    """
    backend = os.getenv("RESQ_QUEUE_BACKEND", "inmemory").strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryRecordQueue()

    if backend in ("sqlite", "sqlite3"):
        from .sqlite import SQLiteRecordQueue

        path = (
            env_first("RESQ_QUEUE_SQLITE_PATH", "RESQ_SQLITE_PATH", default="resq.sqlite3")
            or "resq.sqlite3"
        )
        return SQLiteRecordQueue(path)

    if backend in ("redis",):
        from .redis_queue import RedisRecordQueue

        prefix = env_first("RESQ_QUEUE_REDIS_PREFIX", default="resq:queue") or "resq:queue"

        client = redis_client
        if client is None:
            try:
                import redis.asyncio as redis
            except ModuleNotFoundError as exc:  # pragma: no cover
                raise RuntimeError(
                    "Redis queue backend requires `redis` to be installed."
                ) from exc
            client = redis.Redis.from_url(_redis_url())

        return RedisRecordQueue(client, prefix=prefix)

    raise ValueError(f"Unknown RESQ_QUEUE_BACKEND: {backend}")
