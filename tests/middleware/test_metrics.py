"""Prometheus metrics.

Counters live in the global registry and cannot be reset, so every
assertion is on a before/after delta.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import issue_code, redeem


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "authorization_codes_issued_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_flow_counters(client: TestClient) -> None:
    codes_before = _get_sample("authorization_codes_issued_total")
    id_tokens_before = _get_sample("token_exchanges_total", {"outcome": "id_token"})
    not_found_before = _get_sample("oauth_errors_total", {"kind": "not_found"})

    code = issue_code(client, scope="openid")
    redeem(client, code)
    redeem(client, code)

    assert _get_sample("authorization_codes_issued_total") - codes_before == 1
    assert (
        _get_sample("token_exchanges_total", {"outcome": "id_token"}) - id_tokens_before
        == 1
    )
    not_found = _get_sample("oauth_errors_total", {"kind": "not_found"})
    assert not_found - not_found_before == 1
