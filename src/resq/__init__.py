"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

resq: offline-resilience layer between a client application and its services.

It intercepts outbound requests and answers them from a versioned cache or the
network, keeps cache generations fresh across upgrades, and buffers locally
created records until the remote system accepts them.

Quick start::

    from resq import OfflineWorker, WorkerState

    state = WorkerState.from_env()
    worker = OfflineWorker(state)
    await state.lifecycle.install()
    await worker.start()
"""

from .cache import CacheStore, GenerationHandle, InMemoryCacheStore, SQLiteCacheStore
from .classify import CACHE_FIRST, NETWORK_FIRST, PASSTHROUGH, Strategy, StrategyClassifier
from .clients import ClientRegistry, WindowClient
from .engine import OFFLINE_STATUS, InterceptionEngine
from .errors import (
    CacheStoreError,
    FetchError,
    FetchTimeoutError,
    GenerationNotFoundError,
    NotificationDeliveryError,
    ProvisioningError,
    ResqError,
    SubmissionError,
    WorkerError,
)
from .lifecycle import LifecycleManager
from .metrics import NoOpWorkerMetrics, PrometheusWorkerMetrics, WorkerMetrics
from .queues import InMemoryRecordQueue, PendingRecord, RecordQueue, SQLiteRecordQueue
from .settings import WorkerSettings
from .sync import DrainSummary, HttpRecordSubmitter, Synchronizer
from .types import Request, RequestIdentity, ResourceEntry, ResponseSnapshot
from .worker import OfflineWorker, WorkerState

__all__ = [
    "WorkerSettings",
    "Request",
    "RequestIdentity",
    "ResponseSnapshot",
    "ResourceEntry",
    "Strategy",
    "StrategyClassifier",
    "PASSTHROUGH",
    "CACHE_FIRST",
    "NETWORK_FIRST",
    "CacheStore",
    "GenerationHandle",
    "InMemoryCacheStore",
    "SQLiteCacheStore",
    "InterceptionEngine",
    "OFFLINE_STATUS",
    "LifecycleManager",
    "ClientRegistry",
    "WindowClient",
    "PendingRecord",
    "RecordQueue",
    "InMemoryRecordQueue",
    "SQLiteRecordQueue",
    "Synchronizer",
    "DrainSummary",
    "HttpRecordSubmitter",
    "OfflineWorker",
    "WorkerState",
    "WorkerMetrics",
    "NoOpWorkerMetrics",
    "PrometheusWorkerMetrics",
    "ResqError",
    "ProvisioningError",
    "FetchError",
    "FetchTimeoutError",
    "SubmissionError",
    "NotificationDeliveryError",
    "CacheStoreError",
    "GenerationNotFoundError",
    "WorkerError",
]
