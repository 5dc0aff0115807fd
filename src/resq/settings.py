"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Worker settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .utils import env_bool, env_list, env_optional_float

DEFAULT_PRECACHE_MANIFEST: tuple[str, ...] = (
    "/",
    "/index.html",
    "/css/main.css",
    "/js/main.js",
    "/js/firebase-config.js",
    "/manifest.json",
    "https://cdn.tailwindcss.com",
    "https://unpkg.com/leaflet@1.9.4/dist/leaflet.css",
    "https://unpkg.com/leaflet@1.9.4/dist/leaflet.js",
    "/offline.html",
)

DEFAULT_VOLATILE_HOST_PATTERNS: tuple[str, ...] = (
    "*firebase*",
    "*googleapis*",
    "*africastalking*",
)

DEFAULT_ALLOWED_CACHE_ORIGINS: tuple[str, ...] = (
    "https://cdn.tailwindcss.com",
    "https://unpkg.com",
)


@dataclass(frozen=True, slots=True)
class WorkerSettings:
    """Explicit settings used by the cache, engine, lifecycle and sync layers."""

    cache_prefix: str = "emergency-response"
    cache_version: str = "v1.0"
    origin: str = "http://localhost"
    precache_manifest: tuple[str, ...] = DEFAULT_PRECACHE_MANIFEST
    offline_page: str = "/offline.html"
    volatile_host_patterns: tuple[str, ...] = DEFAULT_VOLATILE_HOST_PATTERNS
    allowed_cache_origins: tuple[str, ...] = DEFAULT_ALLOWED_CACHE_ORIGINS
    cacheable_methods: tuple[str, ...] = ("GET", "HEAD")

    # None leaves fetches unbounded; callers opt into a limit.
    fetch_timeout_s: float | None = None
    skip_waiting_on_install: bool = True

    sync_interval_s: float = 900.0
    position_timeout_s: float | None = 10.0
    position_max_age_s: float = 300.0
    notification_max_age_s: float = 86400.0

    emergency_submit_path: str = "/api/emergencies"
    location_submit_path: str = "/api/responder/location"
    submit_timeout_s: float = 30.0

    @property
    def generation_tag(self) -> str:
        """Tag of the generation this build of the worker provisions."""
        return f"{self.cache_prefix}-{self.cache_version}"

    @staticmethod
    def from_env() -> "WorkerSettings":
        """Load settings from `RESQ_*` environment variables."""
        return WorkerSettings(
            cache_prefix=os.getenv("RESQ_CACHE_PREFIX", "emergency-response"),
            cache_version=os.getenv("RESQ_CACHE_VERSION", "v1.0"),
            origin=os.getenv("RESQ_ORIGIN", "http://localhost"),
            precache_manifest=env_list(
                "RESQ_PRECACHE_MANIFEST", default=DEFAULT_PRECACHE_MANIFEST
            ),
            offline_page=os.getenv("RESQ_OFFLINE_PAGE", "/offline.html"),
            volatile_host_patterns=env_list(
                "RESQ_VOLATILE_HOST_PATTERNS", default=DEFAULT_VOLATILE_HOST_PATTERNS
            ),
            allowed_cache_origins=env_list(
                "RESQ_ALLOWED_CACHE_ORIGINS", default=DEFAULT_ALLOWED_CACHE_ORIGINS
            ),
            cacheable_methods=env_list(
                "RESQ_CACHEABLE_METHODS", default=("GET", "HEAD")
            ),
            fetch_timeout_s=env_optional_float("RESQ_FETCH_TIMEOUT_S", default=None),
            skip_waiting_on_install=env_bool("RESQ_SKIP_WAITING", default=True),
            sync_interval_s=float(os.getenv("RESQ_SYNC_INTERVAL_S", "900")),
            position_timeout_s=env_optional_float(
                "RESQ_POSITION_TIMEOUT_S", default=10.0
            ),
            position_max_age_s=float(os.getenv("RESQ_POSITION_MAX_AGE_S", "300")),
            notification_max_age_s=float(
                os.getenv("RESQ_NOTIFICATION_MAX_AGE_S", "86400")
            ),
            emergency_submit_path=os.getenv(
                "RESQ_EMERGENCY_SUBMIT_PATH", "/api/emergencies"
            ),
            location_submit_path=os.getenv(
                "RESQ_LOCATION_SUBMIT_PATH", "/api/responder/location"
            ),
            submit_timeout_s=float(os.getenv("RESQ_SUBMIT_TIMEOUT_S", "30")),
        )
