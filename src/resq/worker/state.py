"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Process-wide worker state, passed explicitly to every handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..cache.base import CacheStore
from ..cache.factory import create_cache_store_from_env
from ..cache.inmemory import InMemoryCacheStore
from ..clients import ClientRegistry
from ..engine import InterceptionEngine
from ..lifecycle import LifecycleManager
from ..metrics import NoOpWorkerMetrics, WorkerMetrics
from ..network.fetcher import Fetcher, UrllibFetcher
from ..notifications.dispatcher import InMemoryNotifier, NotificationDispatcher, Notifier
from ..queues.factory import create_record_queue_from_env
from ..queues.memory import InMemoryRecordQueue
from ..queues.types import RecordQueue
from ..settings import WorkerSettings
from ..sync.location import LocationReporter, PositionProvider
from ..sync.submit import HttpRecordSubmitter, RecordSubmitter
from ..sync.synchronizer import Synchronizer


@dataclass(slots=True)
class WorkerState:
    """
    Everything one worker installation owns.

    The cache store and record queue are the only shared mutable resources;
    the remaining members are collaborators wired around them.
    """

    settings: WorkerSettings
    store: CacheStore
    queue: RecordQueue
    clients: ClientRegistry
    notifications: NotificationDispatcher
    engine: InterceptionEngine
    lifecycle: LifecycleManager
    synchronizer: Synchronizer
    metrics: WorkerMetrics
    location: LocationReporter | None = None

    @classmethod
    def create(
        cls,
        *,
        settings: WorkerSettings | None = None,
        store: CacheStore | None = None,
        queue: RecordQueue | None = None,
        fetcher: Fetcher | None = None,
        submitter: RecordSubmitter | None = None,
        notifier: Notifier | None = None,
        position_provider: PositionProvider | None = None,
        clients: ClientRegistry | None = None,
        metrics: WorkerMetrics | None = None,
    ) -> WorkerState:
        """Wire a worker state, defaulting every collaborator not supplied."""
        resolved = settings or WorkerSettings()
        worker_metrics: WorkerMetrics = metrics or NoOpWorkerMetrics()
        cache_store = store or InMemoryCacheStore()
        record_queue = queue or InMemoryRecordQueue()
        network = fetcher or UrllibFetcher(base_url=resolved.origin)
        client_registry = clients or ClientRegistry()
        dispatcher = NotificationDispatcher(notifier or InMemoryNotifier(), metrics=worker_metrics)
        synchronizer = Synchronizer(
            record_queue,
            submitter or HttpRecordSubmitter.from_settings(resolved),
            notifications=dispatcher,
            metrics=worker_metrics,
        )
        location = None
        if position_provider is not None:
            location = LocationReporter(
                record_queue, synchronizer, position_provider, settings=resolved
            )
        return cls(
            settings=resolved,
            store=cache_store,
            queue=record_queue,
            clients=client_registry,
            notifications=dispatcher,
            engine=InterceptionEngine(
                store=cache_store,
                fetcher=network,
                settings=resolved,
                metrics=worker_metrics,
            ),
            lifecycle=LifecycleManager(
                store=cache_store,
                fetcher=network,
                settings=resolved,
                clients=client_registry,
                notifications=dispatcher,
                metrics=worker_metrics,
            ),
            synchronizer=synchronizer,
            metrics=worker_metrics,
            location=location,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> WorkerState:
        """Create state with settings and storage backends chosen from `RESQ_*` variables."""
        overrides.setdefault("settings", WorkerSettings.from_env())
        overrides.setdefault("store", create_cache_store_from_env())
        overrides.setdefault("queue", create_record_queue_from_env())
        return cls.create(**overrides)

    async def close(self) -> None:
        await self.engine.wait_for_pending_writes()
        await self.store.close()
        await self.queue.close()
