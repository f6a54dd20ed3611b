from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from meetly.api.dependencies import fake_invoices
from meetly.models.linked_account import LinkedAccount
from meetly.models.user import User
from meetly.providers.google_auth import CALENDAR_SCOPE
from meetly.repos.store import in_memory_store
from tests.conftest import auth, package_block


@pytest.fixture
def package_id(client: TestClient, creator: User) -> str:
    resp = client.post(
        "/v1/events",
        json={"content": {"blocks": [package_block(name="Course", price=75000)]}},
        headers=auth(creator),
    )
    return resp.json()["event"]["package"]["id"]


def test_scopes(client: TestClient, creator: User) -> None:
    resp = client.get("/v1/packages/scopes", headers=auth(creator))
    assert resp.json() == {"has_calendar_scope": False, "has_drive_scope": False}

    account = LinkedAccount.new(
        user_id=creator.id, provider="google", access_token="t", scope=CALENDAR_SCOPE
    )
    asyncio.run(in_memory_store().linked_accounts.add(account))
    resp = client.get("/v1/packages/scopes", headers=auth(creator))
    assert resp.json() == {"has_calendar_scope": True, "has_drive_scope": False}


def test_get_package(client: TestClient, package_id: str) -> None:
    resp = client.get(f"/v1/packages/{package_id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["package"]["name"] == "Course"
    assert body["creator"]["email"] == "creator@example.com"
    assert body["event"]["package"] is None


def test_get_unknown_package(client: TestClient) -> None:
    resp = client.get(f"/v1/packages/{uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["code"] == "PACKAGE_NOT_FOUND"


def test_purchase_as_signed_in_user(client: TestClient, package_id: str, buyer: User) -> None:
    resp = client.post(f"/v1/packages/{package_id}/purchase", headers=auth(buyer))
    assert resp.status_code == 201
    body = resp.json()
    assert body["invoice_url"].startswith("https://checkout.example.com/")

    (request,) = fake_invoices.requests
    assert request.external_id == f"meetly-{body['purchase_id']}"
    assert request.amount == 75000

    purchases = client.get("/v1/purchases", headers=auth(buyer)).json()
    assert [p["id"] for p in purchases] == [body["purchase_id"]]
    assert purchases[0]["status"] == "pending"
    assert purchases[0]["package"]["name"] == "Course"


def test_purchase_requires_auth(client: TestClient, package_id: str) -> None:
    assert client.post(f"/v1/packages/{package_id}/purchase").status_code == 401


def test_guest_enroll(client: TestClient, package_id: str) -> None:
    resp = client.post(
        f"/v1/packages/{package_id}/enroll",
        json={"name": "Guest", "email": "guest@example.com"},
    )
    assert resp.status_code == 201
    assert resp.headers["x-ratelimit-limit"] == "5"

    guest = asyncio.run(in_memory_store().users.get_by_email("guest@example.com"))
    assert guest is not None and not guest.email_verified


def test_guest_enroll_requires_name(client: TestClient, package_id: str) -> None:
    resp = client.post(f"/v1/packages/{package_id}/enroll", json={"email": "g@example.com"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "INVALID_ENROLLMENT"


def test_guest_enroll_rate_limited(client: TestClient, package_id: str) -> None:
    statuses = [
        client.post(
            f"/v1/packages/{package_id}/enroll",
            json={"name": "G", "email": f"g{i}@example.com"},
        ).status_code
        for i in range(7)
    ]
    assert statuses[:5] == [201] * 5
    assert statuses[5:] == [429, 429]


def test_invoice_failure_is_502(client: TestClient, package_id: str, buyer: User) -> None:
    fake_invoices.failing = True
    resp = client.post(f"/v1/packages/{package_id}/purchase", headers=auth(buyer))
    assert resp.status_code == 502


def test_revenue_after_settlement(client: TestClient, creator: User, package_id: str, buyer: User) -> None:
    purchase = client.post(f"/v1/packages/{package_id}/purchase", headers=auth(buyer)).json()
    assert client.get("/v1/revenue", headers=auth(creator)).json() == {
        "total": 0,
        "currency": "IDR",
    }

    client.post(
        "/api/xendit",
        json={"status": "PAID", "external_id": f"meetly-{purchase['purchase_id']}"},
    )

    assert client.get("/v1/revenue", headers=auth(creator)).json()["total"] == 75000
    resp = client.post(f"/v1/packages/{package_id}/purchase", headers=auth(buyer))
    assert resp.status_code == 409
    assert resp.json()["code"] == "ALREADY_PURCHASED"

    detail = client.get(f"/v1/purchases/{purchase['purchase_id']}", headers=auth(buyer)).json()
    assert detail["status"] == "paid"
    assert detail["paid_at"] is not None


def test_other_buyers_purchase_is_404(client: TestClient, package_id: str, buyer: User, creator: User) -> None:
    purchase = client.post(f"/v1/packages/{package_id}/purchase", headers=auth(buyer)).json()
    resp = client.get(f"/v1/purchases/{purchase['purchase_id']}", headers=auth(creator))
    assert resp.status_code == 404
