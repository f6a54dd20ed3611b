from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_without_backing_services(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "checks": {"database": "not_configured", "redis": "not_configured"},
    }


def test_ready_returns_200(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200
