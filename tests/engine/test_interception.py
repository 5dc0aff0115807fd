from __future__ import annotations

import asyncio
import json

import pytest

from resq.cache import GenerationHandle, InMemoryCacheStore
from resq.classify import CACHE_FIRST, NETWORK_FIRST, PASSTHROUGH
from resq.engine import InterceptionEngine
from resq.errors import FetchError
from resq.metrics import RecordingWorkerMetrics
from resq.settings import WorkerSettings
from resq.types import Request, ResourceEntry, ResponseSnapshot

ORIGIN = "http://localhost"


def run_async(coro):
    return asyncio.run(coro)


class FakeFetcher:
    def __init__(self, routes=None, *, offline: bool = False) -> None:
        self.routes = dict(routes or {})
        self.offline = offline
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, request: Request) -> ResponseSnapshot:
        url = request.identity(base=ORIGIN).url
        self.calls.append((request.method.upper(), url))
        if self.offline:
            raise FetchError("network unreachable")
        result = self.routes.get(url)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return ResponseSnapshot(status=404, url=url)
        return result


class BrokenPutStore(InMemoryCacheStore):
    async def put(self, handle, key, entry) -> None:
        raise OSError("disk full")


def _ok(url: str, body: bytes) -> ResponseSnapshot:
    return ResponseSnapshot(status=200, headers={"Content-Type": "text/plain"}, body=body, url=url)


async def _active_store(entries: dict[str, bytes] | None = None, tag: str = "app-v1"):
    store = InMemoryCacheStore()
    handle = await store.open_generation(tag)
    for url, body in (entries or {}).items():
        key = f"GET {url}"
        await store.put(handle, key, ResourceEntry(key=key, response=_ok(url, body)))
    await store.set_active(tag)
    return store


def test_classifier_routes_methods_and_volatile_hosts():
    engine = InterceptionEngine(store=InMemoryCacheStore(), fetcher=FakeFetcher())
    classify = engine.classifier.classify

    assert classify(Request("GET", "/css/main.css").identity(base=ORIGIN)) == CACHE_FIRST
    assert classify(Request("head", "/index.html").identity(base=ORIGIN)) == CACHE_FIRST
    assert classify(Request("POST", "/api/emergencies").identity(base=ORIGIN)) == PASSTHROUGH
    assert (
        classify(Request("GET", "https://demo.firebaseio.com/x.json").identity())
        == NETWORK_FIRST
    )
    assert (
        classify(Request("GET", "https://api.africastalking.com/sms").identity())
        == NETWORK_FIRST
    )
    # Only the host is matched.
    assert classify(Request("GET", "/docs/firebase-setup.html").identity(base=ORIGIN)) == CACHE_FIRST


def test_cache_first_hit_never_touches_network():
    async def scenario() -> None:
        store = await _active_store({f"{ORIGIN}/css/main.css": b"body{}"})
        fetcher = FakeFetcher(offline=True)
        metrics = RecordingWorkerMetrics()
        engine = InterceptionEngine(store=store, fetcher=fetcher, metrics=metrics)

        response = await engine.handle(Request("GET", "/css/main.css"))

        assert response.status == 200
        assert response.body == b"body{}"
        assert fetcher.calls == []
        assert metrics.counters["cache_hit_total"] == 1

    run_async(scenario())


def test_cache_first_miss_populates_active_generation_in_background():
    async def scenario() -> None:
        store = await _active_store()
        url = f"{ORIGIN}/js/main.js"
        fetcher = FakeFetcher({url: _ok(url, b"console.log(1)")})
        engine = InterceptionEngine(store=store, fetcher=fetcher)

        response = await engine.handle(Request("GET", "/js/main.js#top"))
        assert response.body == b"console.log(1)"

        await engine.wait_for_pending_writes()
        assert engine.pending_write_count == 0
        cached = await store.match(f"GET {url}")
        assert cached is not None
        assert cached.response.body == b"console.log(1)"

        fetcher.offline = True
        again = await engine.handle(Request("GET", "/js/main.js"))
        assert again.body == b"console.log(1)"
        assert len(fetcher.calls) == 1

    run_async(scenario())


def test_cache_first_miss_without_active_generation_is_not_stored():
    async def scenario() -> None:
        store = InMemoryCacheStore()
        url = f"{ORIGIN}/js/main.js"
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher({url: _ok(url, b"x")}))

        response = await engine.handle(Request("GET", url))
        await engine.wait_for_pending_writes()

        assert response.status == 200
        assert await store.list_generations() == set()

    run_async(scenario())


@pytest.mark.parametrize(
    "url,response",
    [
        (f"{ORIGIN}/missing.css", ResponseSnapshot(status=404, url=f"{ORIGIN}/missing.css")),
        (f"{ORIGIN}/video.mp4", ResponseSnapshot(status=206, body=b"part", url=f"{ORIGIN}/video.mp4")),
        ("https://evil.example/x.js", ResponseSnapshot(status=200, body=b"x", url="https://evil.example/x.js")),
        (f"{ORIGIN}/redirect.js", ResponseSnapshot(status=200, body=b"x", url="https://evil.example/x.js")),
    ],
)
def test_uncacheable_responses_are_returned_but_not_stored(url, response):
    async def scenario() -> None:
        store = await _active_store()
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher({url: response}))

        result = await engine.handle(Request("GET", url))
        await engine.wait_for_pending_writes()

        assert result.status == response.status
        assert await store.match(f"GET {url}") is None

    run_async(scenario())


def test_allowed_third_party_origin_is_cached():
    async def scenario() -> None:
        store = await _active_store()
        url = "https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher({url: _ok(url, b"L")}))

        await engine.handle(Request("GET", url))
        await engine.wait_for_pending_writes()

        assert await store.match(f"GET {url}") is not None

    run_async(scenario())


def test_network_first_offline_returns_structured_error_and_never_stale_data():
    async def scenario() -> None:
        url = "https://demo.firebaseio.com/emergencies.json"
        store = await _active_store({url: b"stale"})
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher(offline=True))

        response = await engine.handle(Request("GET", url))

        assert response.status == 503
        assert response.header("content-type") == "application/json"
        assert json.loads(response.body) == {
            "error": "offline",
            "message": "This feature requires internet connection",
        }

    run_async(scenario())


def test_network_first_success_is_not_cached():
    async def scenario() -> None:
        url = "https://demo.firebaseio.com/emergencies.json"
        store = await _active_store()
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher({url: _ok(url, b"{}")}))

        response = await engine.handle(Request("GET", url))
        await engine.wait_for_pending_writes()

        assert response.status == 200
        assert await store.match(f"GET {url}") is None

    run_async(scenario())


def test_offline_navigation_falls_back_to_offline_page():
    async def scenario() -> None:
        store = await _active_store({f"{ORIGIN}/offline.html": b"<h1>Offline</h1>"})
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher(offline=True))

        page = await engine.handle(Request("GET", "/dashboard", destination="document"))
        assert page.status == 200
        assert page.body == b"<h1>Offline</h1>"

        asset = await engine.handle(Request("GET", "/img/map.png", destination="image"))
        assert asset.status == 503
        assert asset.text() == "Offline"

    run_async(scenario())


def test_offline_navigation_without_cached_offline_page_gets_503():
    async def scenario() -> None:
        store = await _active_store()
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher(offline=True))

        page = await engine.handle(Request("GET", "/dashboard", destination="document"))

        assert page.status == 503

    run_async(scenario())


def test_passthrough_request_propagates_network_failure():
    async def scenario() -> None:
        store = await _active_store()
        fetcher = FakeFetcher(offline=True)
        engine = InterceptionEngine(store=store, fetcher=fetcher)

        with pytest.raises(FetchError):
            await engine.handle(Request("POST", "/api/emergencies", body=b"{}"))
        assert fetcher.calls == [("POST", f"{ORIGIN}/api/emergencies")]

    run_async(scenario())


def test_passthrough_success_is_not_cached():
    async def scenario() -> None:
        url = f"{ORIGIN}/api/emergencies"
        store = await _active_store()
        engine = InterceptionEngine(store=store, fetcher=FakeFetcher({url: _ok(url, b"{}")}))

        response = await engine.handle(Request("POST", url))
        await engine.wait_for_pending_writes()

        assert response.status == 200
        assert await store.keys(GenerationHandle("app-v1")) == []

    run_async(scenario())


def test_failed_cache_write_does_not_fail_the_request():
    async def scenario() -> None:
        store = BrokenPutStore()
        await store.open_generation("app-v1")
        await store.set_active("app-v1")
        url = f"{ORIGIN}/css/main.css"
        metrics = RecordingWorkerMetrics()
        engine = InterceptionEngine(
            store=store,
            fetcher=FakeFetcher({url: _ok(url, b"body{}")}),
            metrics=metrics,
        )

        response = await engine.handle(Request("GET", "/css/main.css"))
        await engine.wait_for_pending_writes()

        assert response.body == b"body{}"
        assert metrics.counters["cache_write_failed_total"] == 1

    run_async(scenario())


def test_fetch_timeout_is_treated_as_offline():
    class SlowFetcher:
        async def fetch(self, request):
            await asyncio.sleep(5)

    async def scenario() -> None:
        store = await _active_store()
        engine = InterceptionEngine(
            store=store,
            fetcher=SlowFetcher(),
            settings=WorkerSettings(fetch_timeout_s=0.01),
        )

        response = await engine.handle(Request("GET", "https://demo.firebaseio.com/x.json"))

        assert response.status == 503

    run_async(scenario())
