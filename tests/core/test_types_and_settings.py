from __future__ import annotations

import pytest

from resq.classify import CACHE_FIRST, NETWORK_FIRST, PASSTHROUGH, StrategyClassifier
from resq.metrics import PrometheusWorkerMetrics
from resq.settings import DEFAULT_PRECACHE_MANIFEST, WorkerSettings
from resq.types import Request, RequestIdentity, ResponseSnapshot


def test_request_identity_is_canonical():
    identity = RequestIdentity.of("get", "/css/main.css#section", base="http://localhost/")

    assert identity.method == "GET"
    assert identity.url == "http://localhost/css/main.css"
    assert identity.key == "GET http://localhost/css/main.css"
    assert Request("GET", "https://unpkg.com/x.js").identity(base="http://localhost").url == (
        "https://unpkg.com/x.js"
    )


def test_headers_do_not_change_identity():
    plain = Request("GET", "/a")
    with_headers = Request("GET", "/a", headers={"Accept": "text/html"})

    assert plain.identity(base="http://localhost") == with_headers.identity(base="http://localhost")
    assert Request("GET", "/", destination="document").is_navigation
    assert not plain.is_navigation


def test_response_snapshot_dict_round_trip_keeps_binary_body():
    snapshot = ResponseSnapshot(status=200, headers={"X": "1"}, body=b"\x00\xff", url="u")

    assert ResponseSnapshot.from_dict(snapshot.to_dict()) == snapshot


@pytest.mark.parametrize(
    "method,url,strategy",
    [
        ("GET", "http://localhost/index.html", CACHE_FIRST),
        ("HEAD", "http://localhost/index.html", CACHE_FIRST),
        ("POST", "http://localhost/api/emergencies", PASSTHROUGH),
        ("PUT", "https://demo.firebaseio.com/x.json", PASSTHROUGH),
        ("GET", "https://firestore.googleapis.com/v1/doc", NETWORK_FIRST),
        ("GET", "https://CONTENT.AFRICASTALKING.COM/x", NETWORK_FIRST),
        ("GET", "http://localhost/firebase-config.js", CACHE_FIRST),
    ],
)
def test_default_classifier(method, url, strategy):
    classifier = StrategyClassifier.from_settings(WorkerSettings())

    assert classifier.classify(RequestIdentity.of(method, url)) == strategy


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("RESQ_CACHE_PREFIX", "field-app")
    monkeypatch.setenv("RESQ_CACHE_VERSION", "v2.3")
    monkeypatch.setenv("RESQ_ORIGIN", "https://resq.example")
    monkeypatch.setenv("RESQ_VOLATILE_HOST_PATTERNS", "*.api.example, realtime.*")
    monkeypatch.setenv("RESQ_FETCH_TIMEOUT_S", "4.5")
    monkeypatch.setenv("RESQ_SKIP_WAITING", "false")
    monkeypatch.setenv("RESQ_SYNC_INTERVAL_S", "60")
    monkeypatch.delenv("RESQ_PRECACHE_MANIFEST", raising=False)

    settings = WorkerSettings.from_env()

    assert settings.generation_tag == "field-app-v2.3"
    assert settings.origin == "https://resq.example"
    assert settings.volatile_host_patterns == ("*.api.example", "realtime.*")
    assert settings.fetch_timeout_s == 4.5
    assert settings.skip_waiting_on_install is False
    assert settings.sync_interval_s == 60.0
    assert settings.precache_manifest == DEFAULT_PRECACHE_MANIFEST


def test_default_settings():
    settings = WorkerSettings()

    assert settings.generation_tag == "emergency-response-v1.0"
    assert settings.fetch_timeout_s is None
    assert "/offline.html" in settings.precache_manifest


def test_prometheus_metrics_adapter_counts_with_labels():
    prometheus_client = pytest.importorskip("prometheus_client")
    registry = prometheus_client.CollectorRegistry()
    metrics = PrometheusWorkerMetrics(namespace="resq_test", registry=registry)

    metrics.incr("cache_hit_total")
    metrics.incr("cache_hit_total", 2)
    metrics.incr("sync_failed_total", tags={"kind": "emergency"})

    assert registry.get_sample_value("resq_test_cache_hit_total") == 3.0
    assert (
        registry.get_sample_value("resq_test_sync_failed_total", {"kind": "emergency"}) == 1.0
    )
