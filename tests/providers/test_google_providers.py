"""Google Calendar/Drive clients against httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from uuid import uuid4

import httpx
import pytest

from meetly.models.linked_account import LinkedAccount
from meetly.providers.base import DelegationError, ProviderError
from meetly.providers.calendar import EVENTS_URL, GoogleCalendarClient
from meetly.providers.drive import FILES_URL, GoogleDriveClient
from meetly.providers.google_auth import (
    CALENDAR_SCOPE,
    DRIVE_SCOPE,
    TOKEN_URL,
    GoogleCredentials,
    granted_scopes,
)

USER_ID = uuid4()


class Recorder:
    """Transport handler that replays queued responses and keeps requests."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _link(store, scope=f"openid {CALENDAR_SCOPE} {DRIVE_SCOPE}", refresh_token="refresh-1"):
    account = LinkedAccount.new(
        user_id=USER_ID,
        provider="google",
        access_token="access-1",
        refresh_token=refresh_token,
        scope=scope,
    )
    asyncio.run(store.linked_accounts.add(account))
    return account


def _credentials(store, settings, recorder):
    http = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    settings = replace(settings, google_client_id="cid", google_client_secret="secret")
    return GoogleCredentials(store.linked_accounts, http, settings)


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


# ---- calendar ----


def test_schedule_meeting_requests_meet_conference(store, settings) -> None:
    _link(store)
    recorder = Recorder(
        httpx.Response(
            200,
            json={
                "id": "evt-1",
                "hangoutLink": "https://meet.google.com/abc",
                "start": {"dateTime": "2025-06-01T03:00:00Z"},
            },
        )
    )
    client = GoogleCalendarClient(_credentials(store, settings, recorder))

    scheduled = asyncio.run(
        client.schedule_meeting(USER_ID, "2025-06-01T03:00:00.000Z", "Asia/Jakarta", "Course - Session")
    )

    assert scheduled.meeting_id == "evt-1"
    assert scheduled.join_link == "https://meet.google.com/abc"
    (request,) = recorder.requests
    assert request.method == "POST"
    assert str(request.url).startswith(EVENTS_URL)
    assert request.url.params["conferenceDataVersion"] == "1"
    assert request.headers["authorization"] == "Bearer access-1"
    body = _body(request)
    assert body["summary"] == "Course - Session"
    assert body["start"] == {"dateTime": "2025-06-01T03:00:00.000Z", "timeZone": "Asia/Jakarta"}
    assert body["end"]["dateTime"] == "2025-06-01T04:00:00.000Z"
    assert "requestId" in body["conferenceData"]["createRequest"]


def test_add_invitee_appends_to_existing_attendees(store, settings) -> None:
    _link(store)
    recorder = Recorder(
        httpx.Response(200, json={"attendees": [{"email": "first@x.io"}]}),
        httpx.Response(200, json={}),
    )
    client = GoogleCalendarClient(_credentials(store, settings, recorder))

    asyncio.run(client.add_invitee(USER_ID, "evt-1", "second@x.io"))

    get, patch = recorder.requests
    assert get.method == "GET"
    assert patch.method == "PATCH"
    assert patch.url.params["sendUpdates"] == "all"
    emails = [a["email"] for a in _body(patch)["attendees"]]
    assert emails == ["first@x.io", "second@x.io"]


def test_cancel_meeting_deletes(store, settings) -> None:
    _link(store)
    recorder = Recorder(httpx.Response(204))
    client = GoogleCalendarClient(_credentials(store, settings, recorder))
    asyncio.run(client.cancel_meeting(USER_ID, "evt-9"))
    (request,) = recorder.requests
    assert request.method == "DELETE"
    assert request.url.path.endswith("/events/evt-9")


def test_expired_token_is_refreshed_once(store, settings) -> None:
    account = _link(store)
    recorder = Recorder(
        httpx.Response(401),
        httpx.Response(200, json={"access_token": "access-2"}),
        httpx.Response(200, json={}),
    )
    client = GoogleCalendarClient(_credentials(store, settings, recorder))

    asyncio.run(
        client.reschedule_meeting(USER_ID, "evt-1", "2025-06-01T03:00:00.000Z", "UTC", "T")
    )

    first, refresh, retry = recorder.requests
    assert str(refresh.url) == TOKEN_URL
    assert b"grant_type=refresh_token" in refresh.content
    assert b"refresh_token=refresh-1" in refresh.content
    assert retry.headers["authorization"] == "Bearer access-2"

    stored = asyncio.run(store.linked_accounts.get_for_user(USER_ID, "google"))
    assert stored.id == account.id
    assert stored.access_token == "access-2"
    assert stored.refresh_token == "refresh-1"


def test_rejected_refresh_is_a_delegation_error(store, settings) -> None:
    _link(store)
    recorder = Recorder(httpx.Response(401), httpx.Response(400, json={"error": "invalid_grant"}))
    client = GoogleCalendarClient(_credentials(store, settings, recorder))
    with pytest.raises(DelegationError):
        asyncio.run(client.cancel_meeting(USER_ID, "evt-1"))


def test_upstream_error_carries_status(store, settings) -> None:
    _link(store)
    recorder = Recorder(httpx.Response(404))
    client = GoogleCalendarClient(_credentials(store, settings, recorder))
    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(client.cancel_meeting(USER_ID, "gone"))
    assert exc_info.value.status_code == 404
    assert exc_info.value.not_found


def test_transport_failure_is_a_provider_error(store, settings) -> None:
    _link(store)

    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = GoogleCalendarClient(_credentials(store, settings, boom))
    with pytest.raises(ProviderError):
        asyncio.run(client.cancel_meeting(USER_ID, "evt-1"))


def test_no_linked_account_is_a_delegation_error(store, settings) -> None:
    recorder = Recorder()
    client = GoogleCalendarClient(_credentials(store, settings, recorder))
    with pytest.raises(DelegationError):
        asyncio.run(client.cancel_meeting(USER_ID, "evt-1"))
    assert recorder.requests == []


def test_missing_scope_is_checked_before_calling(store, settings) -> None:
    _link(store, scope=f"openid {DRIVE_SCOPE}")
    recorder = Recorder()
    client = GoogleCalendarClient(_credentials(store, settings, recorder))
    with pytest.raises(DelegationError, match="scope"):
        asyncio.run(client.cancel_meeting(USER_ID, "evt-1"))
    assert recorder.requests == []


# ---- drive ----


def test_find_existing_folder(store, settings) -> None:
    _link(store)
    recorder = Recorder(httpx.Response(200, json={"files": [{"id": "f-1", "name": "Course"}]}))
    client = GoogleDriveClient(_credentials(store, settings, recorder))

    folder = asyncio.run(client.find_or_create_folder(USER_ID, "Course"))

    assert folder.folder_id == "f-1"
    (request,) = recorder.requests
    assert "name='Course'" in request.url.params["q"]


def test_create_folder_when_missing(store, settings) -> None:
    _link(store)
    recorder = Recorder(
        httpx.Response(200, json={"files": []}),
        httpx.Response(200, json={"id": "f-2", "name": "Bob's files"}),
    )
    client = GoogleDriveClient(_credentials(store, settings, recorder))

    folder = asyncio.run(client.find_or_create_folder(USER_ID, "Bob's files"))

    assert folder.folder_id == "f-2"
    search, create = recorder.requests
    assert "name='Bob\\'s files'" in search.url.params["q"]
    assert create.method == "POST"
    assert _body(create)["mimeType"] == "application/vnd.google-apps.folder"


def test_share_folder_grants_reader(store, settings) -> None:
    _link(store)
    recorder = Recorder(httpx.Response(200, json={"id": "perm-1"}))
    client = GoogleDriveClient(_credentials(store, settings, recorder))

    asyncio.run(client.share_folder(USER_ID, "f-1", "buyer@x.io"))

    (request,) = recorder.requests
    assert str(request.url).startswith(f"{FILES_URL}/f-1/permissions")
    assert _body(request) == {"type": "user", "role": "reader", "emailAddress": "buyer@x.io"}


# ---- scopes ----


def test_granted_scopes(store) -> None:
    none = asyncio.run(granted_scopes(store.linked_accounts, USER_ID))
    assert (none.has_calendar_scope, none.has_drive_scope) == (False, False)

    _link(store, scope=f"openid {CALENDAR_SCOPE}")
    some = asyncio.run(granted_scopes(store.linked_accounts, USER_ID))
    assert (some.has_calendar_scope, some.has_drive_scope) == (True, False)
