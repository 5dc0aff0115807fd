from __future__ import annotations

import asyncio
import io
import urllib.error
from email.message import Message

import pytest

from resq.errors import FetchError, FetchTimeoutError
from resq.network import UrllibFetcher, fetch_with_timeout
from resq.types import Request


def run_async(coro):
    return asyncio.run(coro)


class _FakeResponse:
    status = 200

    def __init__(self, url: str, body: bytes) -> None:
        self._url = url
        self._body = body
        self.headers = {"Content-Type": "text/html"}

    def read(self) -> bytes:
        return self._body

    def geturl(self) -> str:
        return self._url

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def test_fetcher_resolves_relative_urls_against_base(monkeypatch):
    seen = []

    def fake_urlopen(req, **kwargs):
        seen.append((req.full_url, req.get_method(), kwargs))
        return _FakeResponse(req.full_url, b"<html>")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    fetcher = UrllibFetcher(base_url="http://localhost:8080")

    response = run_async(fetcher.fetch(Request("get", "/index.html")))

    assert seen == [("http://localhost:8080/index.html", "GET", {})]
    assert response.status == 200
    assert response.body == b"<html>"
    assert response.header("content-type") == "text/html"
    assert response.url == "http://localhost:8080/index.html"


def test_http_error_status_is_a_response_not_a_failure(monkeypatch):
    def fake_urlopen(req, **kwargs):
        headers = Message()
        headers["Content-Type"] = "text/plain"
        raise urllib.error.HTTPError(req.full_url, 404, "Not Found", headers, io.BytesIO(b"nope"))

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    response = run_async(UrllibFetcher().fetch(Request("GET", "http://localhost/missing")))

    assert response.status == 404
    assert response.body == b"nope"
    assert not response.ok


def test_unreachable_host_raises_fetch_error(monkeypatch):
    def fake_urlopen(req, **kwargs):
        raise urllib.error.URLError("Name or service not known")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(FetchError, match="Name or service not known"):
        run_async(UrllibFetcher().fetch(Request("GET", "http://offline.invalid/")))


def test_fetch_with_timeout_normalizes_failures():
    class SlowFetcher:
        async def fetch(self, request):
            await asyncio.sleep(5)

    class ResetFetcher:
        async def fetch(self, request):
            raise ConnectionResetError("reset")

    request = Request("GET", "http://localhost/")
    with pytest.raises(FetchTimeoutError):
        run_async(fetch_with_timeout(SlowFetcher(), request, timeout_s=0.01))
    with pytest.raises(FetchError, match="reset"):
        run_async(fetch_with_timeout(ResetFetcher(), request, timeout_s=None))
