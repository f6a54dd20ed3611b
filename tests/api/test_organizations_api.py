from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from meetly.models.user import User
from tests.conftest import add_user, auth


@pytest.fixture
def org(client: TestClient, creator: User) -> dict:
    resp = client.post(
        "/v1/organizations",
        json={"name": "  Guild  ", "logo_url": "https://img.example.com/guild.png"},
        headers=auth(creator),
    )
    assert resp.status_code == 201
    return resp.json()


def test_create_makes_caller_owner(client: TestClient, creator: User, org: dict) -> None:
    assert org["name"] == "Guild"
    assert org["owner_id"] == str(creator.id)

    (owned,) = client.get("/v1/organizations/owned", headers=auth(creator)).json()
    assert owned["organization"]["id"] == org["id"]
    (member,) = owned["members"]
    assert (member["role"], member["status"]) == ("owner", "approved")

    memberships = client.get("/v1/organizations/memberships", headers=auth(creator)).json()
    assert [m["organization"]["id"] for m in memberships] == [org["id"]]


def test_invite_accept_flow(client: TestClient, org: dict, creator: User, buyer: User) -> None:
    resp = client.post(
        f"/v1/organizations/{org['id']}/invites",
        json={"email": "Buyer@Example.com", "role": "admin"},
        headers=auth(creator),
    )
    assert resp.status_code == 201
    invite = resp.json()
    assert (invite["email"], invite["status"], invite["user_id"]) == (
        "buyer@example.com",
        "pending",
        None,
    )

    (pending,) = client.get("/v1/organizations/invites", headers=auth(buyer)).json()
    assert pending["membership"]["id"] == invite["id"]
    assert pending["organization"]["name"] == "Guild"

    resp = client.post(
        f"/v1/organizations/invites/{invite['id']}/respond",
        json={"approve": True},
        headers=auth(buyer),
    )
    assert resp.json()["status"] == "approved"
    assert resp.json()["user_id"] == str(buyer.id)

    assert client.get("/v1/organizations/invites", headers=auth(buyer)).json() == []
    memberships = client.get("/v1/organizations/memberships", headers=auth(buyer)).json()
    assert [m["membership"]["role"] for m in memberships] == ["admin"]

    # An approved member may publish under the organization.
    resp = client.post(
        "/v1/events",
        json={
            "content": {"blocks": [{"id": "h", "type": "header", "data": {"text": "Meetup"}}]},
            "organization_id": org["id"],
        },
        headers=auth(buyer),
    )
    assert resp.status_code == 201
    assert resp.json()["event"]["organization_id"] == org["id"]


def test_decline_invite(client: TestClient, org: dict, creator: User, buyer: User) -> None:
    invite = client.post(
        f"/v1/organizations/{org['id']}/invites",
        json={"email": "buyer@example.com"},
        headers=auth(creator),
    ).json()
    assert invite["role"] == "member"

    resp = client.post(
        f"/v1/organizations/invites/{invite['id']}/respond",
        json={"approve": False},
        headers=auth(buyer),
    )
    assert resp.json()["status"] == "rejected"
    assert client.get("/v1/organizations/memberships", headers=auth(buyer)).json() == []


def test_only_owner_invites(client: TestClient, org: dict, buyer: User) -> None:
    resp = client.post(
        f"/v1/organizations/{org['id']}/invites",
        json={"email": "friend@example.com"},
        headers=auth(buyer),
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "NOT_OWNER"


def test_invite_rejects_unknown_role(client: TestClient, org: dict, creator: User) -> None:
    resp = client.post(
        f"/v1/organizations/{org['id']}/invites",
        json={"email": "friend@example.com", "role": "owner"},
        headers=auth(creator),
    )
    assert resp.status_code == 422


def test_invite_rejects_bad_email(client: TestClient, org: dict, creator: User) -> None:
    resp = client.post(
        f"/v1/organizations/{org['id']}/invites",
        json={"email": "not-an-email"},
        headers=auth(creator),
    )
    assert resp.status_code == 422


def test_responding_to_someone_elses_invite(client: TestClient, org: dict, creator: User) -> None:
    invite = client.post(
        f"/v1/organizations/{org['id']}/invites",
        json={"email": "friend@example.com"},
        headers=auth(creator),
    ).json()
    stranger = add_user("stranger@example.com", "Stranger")

    resp = client.post(
        f"/v1/organizations/invites/{invite['id']}/respond",
        json={"approve": True},
        headers=auth(stranger),
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "INVITE_FORBIDDEN"


def test_respond_to_unknown_invite(client: TestClient, buyer: User) -> None:
    resp = client.post(
        f"/v1/organizations/invites/{uuid4()}/respond",
        json={"approve": True},
        headers=auth(buyer),
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "INVITE_NOT_FOUND"


def test_endpoints_require_auth(client: TestClient) -> None:
    assert client.get("/v1/organizations/owned").status_code == 401
    assert client.post("/v1/organizations", json={"name": "x"}).status_code == 401
