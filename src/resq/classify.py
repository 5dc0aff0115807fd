"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Request strategy classification.
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Literal
from urllib.parse import urlsplit

from .settings import WorkerSettings
from .types import RequestIdentity

Strategy = Literal["passthrough", "cache_first", "network_first"]

PASSTHROUGH: Strategy = "passthrough"
CACHE_FIRST: Strategy = "cache_first"
NETWORK_FIRST: Strategy = "network_first"


@dataclass(frozen=True, slots=True)
class StrategyClassifier:
    """
    Pure mapping from request identity to caching strategy.

    - Methods outside `cacheable_methods` are `passthrough`: sent straight to
      the network with no cache read, no cache write and no fallback.
    - Hosts matching any `volatile_host_patterns` glob are `network_first`.
    - Everything else is `cache_first`.
    """

    volatile_host_patterns: tuple[str, ...] = ()
    cacheable_methods: tuple[str, ...] = ("GET", "HEAD")

    @classmethod
    def from_settings(cls, settings: WorkerSettings) -> StrategyClassifier:
        return cls(
            volatile_host_patterns=tuple(
                p.strip().lower() for p in settings.volatile_host_patterns if p.strip()
            ),
            cacheable_methods=tuple(
                m.strip().upper() for m in settings.cacheable_methods if m.strip()
            ),
        )

    def classify(self, identity: RequestIdentity) -> Strategy:
        if identity.method.upper() not in self.cacheable_methods:
            return PASSTHROUGH
        if self.is_volatile(identity.url):
            return NETWORK_FIRST
        return CACHE_FIRST

    def is_volatile(self, url: str) -> bool:
        host = (urlsplit(url).hostname or "").lower()
        if not host:
            return False
        return any(fnmatchcase(host, pattern) for pattern in self.volatile_host_patterns)
