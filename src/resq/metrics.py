"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics interface and adapters for worker observability.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol


class WorkerMetrics(Protocol):
    """Minimal metrics interface for worker instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpWorkerMetrics:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


class PrometheusWorkerMetrics(WorkerMetrics):
    """
    Prometheus-backed worker metrics adapter.

    Requires `prometheus_client` package.
    """

    def __init__(self, *, namespace: str = "resq", registry=None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusWorkerMetrics requires `prometheus_client` to be installed."
            ) from exc

        self._Counter = Counter
        self._namespace = namespace
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, object] = {}

    def incr(self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
        label_names = tuple(sorted((tags or {}).keys()))
        key = f"{name}|{','.join(label_names)}"
        counter = self._counters.get(key)
        if counter is None:
            counter = self._Counter(
                name=name,
                documentation=f"resq worker metric {name}",
                namespace=self._namespace,
                labelnames=label_names,
                registry=self._registry,
            )
            self._counters[key] = counter

        if label_names:
            label_values = [str((tags or {})[label]) for label in label_names]
            counter.labels(*label_values).inc(value)  # type: ignore[attr-defined]
        else:
            counter.inc(value)  # type: ignore[attr-defined]


class RecordingWorkerMetrics:
    """In-process counter map, handy for inspection and tests."""

    def __init__(self) -> None:
        self.counters: dict[str, int] = {}

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = tags
        self.counters[name] = self.counters.get(name, 0) + value
