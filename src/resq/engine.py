"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Interception engine: answers each request from cache or network.
"""

from __future__ import annotations

import asyncio
import logging
import time

from .cache.base import CacheStore, GenerationHandle
from .classify import CACHE_FIRST, NETWORK_FIRST, StrategyClassifier
from .errors import FetchError
from .metrics import NoOpWorkerMetrics, WorkerMetrics
from .network.fetcher import Fetcher, fetch_with_timeout
from .settings import WorkerSettings
from .types import Request, RequestIdentity, ResourceEntry, ResponseSnapshot
from .utils import json_dumps, origin_of

logger = logging.getLogger("resq.engine")

OFFLINE_STATUS = 503
OFFLINE_ERROR_BODY = {
    "error": "offline",
    "message": "This feature requires internet connection",
}


def offline_json_response() -> ResponseSnapshot:
    """Structured error returned when a network-first request cannot reach the network."""
    return ResponseSnapshot(
        status=OFFLINE_STATUS,
        headers={"Content-Type": "application/json"},
        body=json_dumps(OFFLINE_ERROR_BODY).encode("utf-8"),
    )


def offline_text_response() -> ResponseSnapshot:
    """Minimal unavailable response for non-navigational cache-first misses."""
    return ResponseSnapshot(
        status=OFFLINE_STATUS,
        headers={"Content-Type": "text/plain; charset=utf-8"},
        body=b"Offline",
    )


class InterceptionEngine:
    """
    Routes intercepted requests through the classifier, cache and network.

    Cache population on a miss runs as a detached task: the response is
    returned without waiting for the write, and write failures are logged
    and counted instead of failing the request.
    """

    def __init__(
        self,
        *,
        store: CacheStore,
        fetcher: Fetcher,
        settings: WorkerSettings | None = None,
        classifier: StrategyClassifier | None = None,
        metrics: WorkerMetrics | None = None,
    ) -> None:
        self._settings = settings or WorkerSettings()
        self._store = store
        self._fetcher = fetcher
        self._classifier = classifier or StrategyClassifier.from_settings(self._settings)
        self._metrics: WorkerMetrics = metrics or NoOpWorkerMetrics()
        self._cache_origins = {
            origin_of(self._settings.origin),
            *(origin_of(o) or o for o in self._settings.allowed_cache_origins),
        }
        self._pending_writes: set[asyncio.Task[None]] = set()

    @property
    def classifier(self) -> StrategyClassifier:
        return self._classifier

    @property
    def pending_write_count(self) -> int:
        """Number of detached cache writes still running."""
        return len(self._pending_writes)

    def identity(self, request: Request) -> RequestIdentity:
        return request.identity(base=self._settings.origin)

    async def handle(self, request: Request) -> ResponseSnapshot:
        """
        Produce a response for one request.

        Raises:
            FetchError: Only for passthrough (non-cacheable method) requests,
                which get no fallback synthesis.
        """
        identity = self.identity(request)
        strategy = self._classifier.classify(identity)
        if strategy == CACHE_FIRST:
            return await self._cache_first(request, identity)
        if strategy == NETWORK_FIRST:
            return await self._network_first(request)
        return await self._fetch(request)

    async def _fetch(self, request: Request) -> ResponseSnapshot:
        return await fetch_with_timeout(
            self._fetcher, request, timeout_s=self._settings.fetch_timeout_s
        )

    async def _network_first(self, request: Request) -> ResponseSnapshot:
        try:
            return await self._fetch(request)
        except FetchError as exc:
            self._metrics.incr("fetch_failed_total", tags={"strategy": NETWORK_FIRST})
            logger.info("Network-first fetch failed for %s: %s", request.url, exc)
            return offline_json_response()

    async def _cache_first(
        self, request: Request, identity: RequestIdentity
    ) -> ResponseSnapshot:
        cached = await self._store.match(identity.key)
        if cached is not None:
            self._metrics.incr("cache_hit_total")
            logger.debug("Serving from cache %s", identity.url)
            return cached.response

        self._metrics.incr("cache_miss_total")
        logger.debug("Fetching from network %s", identity.url)
        try:
            response = await self._fetch(request)
        except FetchError as exc:
            self._metrics.incr("fetch_failed_total", tags={"strategy": CACHE_FIRST})
            logger.info("Cache-first fetch failed for %s: %s", identity.url, exc)
            return await self._offline_fallback(request)

        if self.is_cacheable(identity, response):
            self._spawn_write(identity, response)
        return response

    async def _offline_fallback(self, request: Request) -> ResponseSnapshot:
        if request.is_navigation:
            offline_key = RequestIdentity.of(
                "GET", self._settings.offline_page, base=self._settings.origin
            ).key
            page = await self._store.match(offline_key)
            if page is not None:
                return page.response
            logger.warning("Offline page %s is not cached", self._settings.offline_page)
        return offline_text_response()

    def is_cacheable(self, identity: RequestIdentity, response: ResponseSnapshot) -> bool:
        """
        Whether a network response may be stored.

        Only success-class, non-partial responses whose request and final URL
        both belong to the worker origin or an allowed origin are stored.
        """
        if not response.ok or response.status == 206:
            return False
        if origin_of(identity.url) not in self._cache_origins:
            return False
        if response.url and origin_of(response.url) not in self._cache_origins:
            return False
        return True

    def _spawn_write(self, identity: RequestIdentity, response: ResponseSnapshot) -> None:
        task = asyncio.create_task(self._write_entry(identity, response))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write_entry(self, identity: RequestIdentity, response: ResponseSnapshot) -> None:
        try:
            tag = await self._store.get_active()
            if tag is None:
                logger.debug("No active generation; skipping cache write for %s", identity.url)
                return
            await self._store.put(
                GenerationHandle(tag=tag),
                identity.key,
                ResourceEntry(key=identity.key, response=response, stored_at=time.time()),
            )
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            self._metrics.incr("cache_write_failed_total")
            logger.exception("Cache write failed for %s", identity.url)

    async def wait_for_pending_writes(self, *, timeout_s: float | None = None) -> None:
        """Wait for detached cache writes, e.g. before shutdown."""
        if not self._pending_writes:
            return
        _, pending = await asyncio.wait(set(self._pending_writes), timeout=timeout_s)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
