"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Write-behind synchronization of queued records.
"""

from .location import LOCATION_KIND, LocationReporter, Position, PositionProvider
from .scheduler import SyncScheduler, SyncSchedulerConfig
from .submit import IDEMPOTENCY_HEADER, HttpRecordSubmitter, RecordSubmitter
from .synchronizer import DrainSummary, Synchronizer, SyncSession

__all__ = [
    "DrainSummary",
    "SyncSession",
    "Synchronizer",
    "RecordSubmitter",
    "HttpRecordSubmitter",
    "IDEMPOTENCY_HEADER",
    "SyncScheduler",
    "SyncSchedulerConfig",
    "LOCATION_KIND",
    "Position",
    "PositionProvider",
    "LocationReporter",
]
