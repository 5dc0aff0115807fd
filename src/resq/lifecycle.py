"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache generation lifecycle: provisioning, activation and reclamation.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Literal

from .cache.base import CacheStore, GenerationHandle
from .clients import ClientRegistry
from .errors import FetchError, ProvisioningError, WorkerError
from .metrics import NoOpWorkerMetrics, WorkerMetrics
from .network.fetcher import Fetcher, fetch_with_timeout
from .notifications.dispatcher import NotificationDispatcher
from .settings import WorkerSettings
from .types import Request, RequestIdentity, ResourceEntry, ResponseSnapshot

logger = logging.getLogger("resq.lifecycle")

LifecycleState = Literal["idle", "installing", "installed", "activating", "activated"]


class LifecycleManager:
    """
    Owns generation transitions for one worker installation.

    1. Provisioning fetches the whole manifest before anything is written; any
       failure discards the new generation and leaves the active one serving.
    2. Activation swaps the store's active pointer, then claims clients.
    3. Reclamation deletes every non-active generation; repeated runs are no-ops.
    """

    def __init__(
        self,
        *,
        store: CacheStore,
        fetcher: Fetcher,
        settings: WorkerSettings | None = None,
        clients: ClientRegistry | None = None,
        notifications: NotificationDispatcher | None = None,
        metrics: WorkerMetrics | None = None,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._settings = settings or WorkerSettings()
        self._clients = clients or ClientRegistry()
        self._notifications = notifications
        self._metrics: WorkerMetrics = metrics or NoOpWorkerMetrics()
        self._state: LifecycleState = "idle"
        self._waiting: str | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def waiting_tag(self) -> str | None:
        """Tag of an installed generation waiting for activation."""
        return self._waiting

    async def active_tag(self) -> str | None:
        return await self._store.get_active()

    async def install(
        self,
        *,
        tag: str | None = None,
        manifest: tuple[str, ...] | None = None,
    ) -> GenerationHandle:
        """
        Provision a generation and activate it when allowed.

        Activation happens right away when `skip_waiting_on_install` is set or
        no client is controlled by the current generation; otherwise the new
        generation waits for `skip_waiting()`.

        Raises:
            ProvisioningError: The manifest could not be fully populated.
        """
        target = tag or self._settings.generation_tag
        previous_state = self._state
        self._state = "installing"
        logger.info("Installing generation %s", target)
        try:
            handle = await self.provision(target, manifest=manifest)
        except ProvisioningError:
            self._state = previous_state
            logger.error("Installation of generation %s failed", target)
            raise

        self._waiting = target
        self._state = "installed"
        if self._settings.skip_waiting_on_install or not self._clients.has_controlled_clients():
            await self.activate()
        else:
            logger.info("Generation %s installed and waiting", target)
        return handle

    async def provision(
        self,
        tag: str,
        *,
        manifest: tuple[str, ...] | None = None,
    ) -> GenerationHandle:
        """Populate `tag` with every manifest resource, all or nothing."""
        urls = manifest if manifest is not None else self._settings.precache_manifest
        results = await asyncio.gather(
            *(self._fetch_manifest_entry(url) for url in urls),
            return_exceptions=True,
        )

        failed: list[str] = []
        entries: list[ResourceEntry] = []
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Manifest fetch failed for %s: %s", url, result)
                failed.append(url)
                continue
            entries.append(result)
        if failed:
            raise ProvisioningError(tag, failed)

        existed = tag in await self._store.list_generations()
        handle = await self._store.open_generation(tag)
        try:
            for entry in entries:
                await self._store.put(handle, entry.key, entry)
        except Exception as exc:
            if not existed:
                await self._store.delete(tag)
            raise ProvisioningError(
                tag, [], f"Provisioning of generation '{tag}' failed while storing: {exc}"
            ) from exc
        logger.info("Cached %d manifest resource(s) into %s", len(entries), tag)
        return handle

    async def _fetch_manifest_entry(self, url: str) -> ResourceEntry:
        request = Request(method="GET", url=url)
        identity = RequestIdentity.of("GET", url, base=self._settings.origin)
        response: ResponseSnapshot = await fetch_with_timeout(
            self._fetcher, request, timeout_s=self._settings.fetch_timeout_s
        )
        if not response.ok:
            raise FetchError(f"Manifest resource '{url}' returned HTTP {response.status}")
        return ResourceEntry(key=identity.key, response=response, stored_at=time.time())

    async def activate(self) -> str:
        """
        Make the waiting generation active, reclaim stale ones, claim clients.

        Raises:
            WorkerError: No installed generation is waiting.
        """
        async with self._lock:
            tag = self._waiting
            if tag is None:
                raise WorkerError("No installed generation is waiting for activation")
            self._state = "activating"
            await self._store.set_active(tag)
            self._waiting = None
            self._state = "activated"
        self._metrics.incr("generation_activated_total")
        logger.info("Activated generation %s", tag)

        await self.reclaim()
        await self._clients.claim(tag)
        if self._notifications is not None:
            await self._notifications.expire_older_than(self._settings.notification_max_age_s)
        return tag

    async def skip_waiting(self) -> str | None:
        """Force activation of a waiting generation; no-op when none is waiting."""
        if self._waiting is None:
            return None
        return await self.activate()

    async def reclaim(self) -> list[str]:
        """Delete every generation other than the active one."""
        active = await self._store.get_active()
        if active is None:
            return []
        deleted: list[str] = []
        for tag in sorted(await self._store.list_generations()):
            if tag == active:
                continue
            if await self._store.delete(tag):
                logger.info("Deleted stale generation %s", tag)
                deleted.append(tag)
        return deleted
