"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Submission collaborator that delivers queued records upstream.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from collections.abc import Mapping
from typing import Protocol
from urllib.parse import urljoin

from ..errors import SubmissionError
from ..queues.types import PendingRecord
from ..settings import WorkerSettings

logger = logging.getLogger("resq.sync.submit")

IDEMPOTENCY_HEADER = "Idempotency-Key"


class RecordSubmitter(Protocol):
    """
    Delivers one record to the remote system.

    Returns True when the remote accepted the record, False when it rejected
    it. Raising is also treated as a failure. Implementations should pass
    `record.id` upstream as a dedup key.
    """

    async def submit(self, record: PendingRecord) -> bool: ...


class HttpRecordSubmitter:
    """JSON-over-HTTP submitter with one route per record kind."""

    def __init__(
        self,
        *,
        base_url: str,
        routes: Mapping[str, tuple[str, str]],
        timeout_s: float = 30.0,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._routes = dict(routes)
        self._timeout_s = timeout_s
        self._headers = dict(headers or {})

    @classmethod
    def from_settings(cls, settings: WorkerSettings) -> HttpRecordSubmitter:
        return cls(
            base_url=settings.origin,
            routes={
                "emergency": ("POST", settings.emergency_submit_path),
                "location": ("PUT", settings.location_submit_path),
            },
            timeout_s=settings.submit_timeout_s,
        )

    async def submit(self, record: PendingRecord) -> bool:
        route = self._routes.get(record.kind)
        if route is None:
            raise SubmissionError(f"No submission route for record kind '{record.kind}'")
        method, path = route
        payload = json.dumps(record.payload).encode("utf-8")
        status = await asyncio.to_thread(
            self.http_send, method, urljoin(self._base_url, path), payload, record.id
        )
        accepted = 200 <= status < 300
        if not accepted:
            logger.info("Record %s rejected with HTTP %d", record.id, status)
        return accepted

    def http_send(self, method: str, url: str, payload: bytes, record_id: str) -> int:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            IDEMPOTENCY_HEADER: record_id,
            **self._headers,
        }
        req = urllib.request.Request(url, data=payload, method=method, headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout_s) as resp:  # noqa: S310
                return int(resp.status)
        except urllib.error.HTTPError as e:
            return int(e.code)
        except urllib.error.URLError as e:
            raise SubmissionError(f"Network error submitting to '{url}': {e.reason}") from e
        except OSError as e:
            raise SubmissionError(f"Failed submitting to '{url}': {e}") from e
