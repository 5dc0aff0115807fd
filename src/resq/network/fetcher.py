"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Network fetch collaborator used by the interception engine and provisioning.
"""

from __future__ import annotations

import asyncio
import logging
import urllib.error
import urllib.request
from typing import Protocol

from ..errors import FetchError, FetchTimeoutError
from ..types import Request, ResponseSnapshot
from .timeouts import await_with_timeout

logger = logging.getLogger("resq.network.fetcher")


class Fetcher(Protocol):
    """
    Protocol implemented by network fetchers.

    HTTP error statuses are responses, not failures. Only the absence of any
    response (unreachable host, reset connection, timeout) raises `FetchError`.
    """

    async def fetch(self, request: Request) -> ResponseSnapshot: ...


class UrllibFetcher:
    """Fetcher built on `urllib.request`, run off the event loop."""

    def __init__(self, *, base_url: str | None = None, timeout_s: float | None = None) -> None:
        self._base_url = base_url
        self._timeout_s = timeout_s

    async def fetch(self, request: Request) -> ResponseSnapshot:
        url = request.identity(base=self._base_url).url
        return await asyncio.to_thread(self.http_request, request, url)

    def http_request(self, request: Request, url: str) -> ResponseSnapshot:
        req = urllib.request.Request(
            url,
            data=request.body,
            method=request.method.upper(),
            headers=dict(request.headers),
        )
        kwargs = {} if self._timeout_s is None else {"timeout": self._timeout_s}
        try:
            with urllib.request.urlopen(req, **kwargs) as resp:  # noqa: S310
                return ResponseSnapshot(
                    status=resp.status,
                    headers={str(k): str(v) for k, v in resp.headers.items()},
                    body=resp.read(),
                    url=resp.geturl(),
                )
        except urllib.error.HTTPError as e:
            body = b""
            try:
                body = e.read()
            except Exception:  # noqa: BLE001
                body = b""
            return ResponseSnapshot(
                status=e.code,
                headers={str(k): str(v) for k, v in (e.headers or {}).items()},
                body=body,
                url=e.geturl() or url,
            )
        except urllib.error.URLError as e:
            raise FetchError(f"Network error fetching '{url}': {e.reason}") from e
        except TimeoutError as e:
            raise FetchTimeoutError(f"Timed out fetching '{url}'") from e
        except (OSError, ValueError) as e:
            raise FetchError(f"Failed fetching '{url}': {e}") from e


async def fetch_with_timeout(
    fetcher: Fetcher,
    request: Request,
    *,
    timeout_s: float | None,
) -> ResponseSnapshot:
    """Run one fetch bounded by `timeout_s`, normalizing failures to `FetchError`."""
    try:
        return await await_with_timeout(fetcher.fetch(request), timeout_s)
    except FetchError:
        raise
    except asyncio.TimeoutError as e:
        raise FetchTimeoutError(
            f"Fetch of '{request.url}' exceeded {timeout_s}s"
        ) from e
    except (ConnectionError, OSError) as e:
        raise FetchError(f"Failed fetching '{request.url}': {e}") from e
