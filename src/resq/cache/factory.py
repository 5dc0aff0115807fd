"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting cache store backends from environment variables.
"""

from __future__ import annotations

import os

from ..utils import env_first
from .base import CacheStore
from .inmemory import InMemoryCacheStore


def create_cache_store_from_env() -> CacheStore:
    """
    Create a cache store backend from `RESQ_CACHE_*` environment variables.

    Backends:
    - `inmemory` (default)
    - `sqlite` (path from `RESQ_CACHE_SQLITE_PATH` or `RESQ_SQLITE_PATH`)
    """
    backend = os.getenv("RESQ_CACHE_BACKEND", "inmemory").strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryCacheStore()

    if backend in ("sqlite", "sqlite3"):
        from .sqlite import SQLiteCacheStore

        path = (
            env_first("RESQ_CACHE_SQLITE_PATH", "RESQ_SQLITE_PATH", default="resq.sqlite3")
            or "resq.sqlite3"
        )
        return SQLiteCacheStore(path)

    raise ValueError(f"Unknown RESQ_CACHE_BACKEND: {backend}")
