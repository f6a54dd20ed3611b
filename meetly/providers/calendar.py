"""Meeting provider: Google Calendar events with a Meet conference attached.

GoogleCalendarClient talks to the Calendar v3 REST API directly over
httpx.  InMemoryCalendarProvider keeps meetings in a dict; it backs the
test suite and local dev when no Google client is configured.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from meetly.providers.base import DelegationError, ProviderError, ScheduledMeeting
from meetly.providers.google_auth import CALENDAR_SCOPE, GoogleCredentials


EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"

_PROVIDER = "calendar"


def _window(start: str, duration_minutes: int) -> tuple[str, str]:
    try:
        begin = datetime.fromisoformat(start.strip())
    except ValueError:
        raise ProviderError(_PROVIDER, f"invalid start {start!r}") from None
    if begin.tzinfo is None:
        begin = begin.replace(tzinfo=UTC)
    begin = begin.astimezone(UTC)
    end = begin + timedelta(minutes=duration_minutes)
    return _iso(begin), _iso(end)


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


class GoogleCalendarClient:
    """Satisfies MeetingProvider against the creator's primary calendar."""

    def __init__(self, credentials: GoogleCredentials) -> None:
        self._creds = credentials

    async def _call(self, user_id: UUID, method: str, url: str, **kwargs: Any):
        return await self._creds.request(
            user_id, CALENDAR_SCOPE, method, url, provider=_PROVIDER, **kwargs
        )

    async def schedule_meeting(
        self,
        user_id: UUID,
        start: str,
        timezone: str,
        title: str,
        duration_minutes: int = 60,
    ) -> ScheduledMeeting:
        begin, end = _window(start, duration_minutes)
        resp = await self._call(
            user_id,
            "POST",
            EVENTS_URL,
            params={"conferenceDataVersion": 1},
            json={
                "summary": title,
                "start": {"dateTime": begin, "timeZone": timezone},
                "end": {"dateTime": end, "timeZone": timezone},
                "conferenceData": {
                    "createRequest": {"requestId": str(uuid.uuid4())},
                },
            },
        )
        body = resp.json()
        meeting_id = body.get("id")
        if not meeting_id:
            raise ProviderError(_PROVIDER, "insert returned no event id")
        return ScheduledMeeting(
            meeting_id=meeting_id,
            join_link=body.get("hangoutLink") or "",
            start=(body.get("start") or {}).get("dateTime") or begin,
        )

    async def reschedule_meeting(
        self,
        user_id: UUID,
        meeting_id: str,
        start: str,
        timezone: str,
        title: str,
        duration_minutes: int = 60,
    ) -> None:
        begin, end = _window(start, duration_minutes)
        # sendUpdates=all makes Google email attendees about the new time.
        await self._call(
            user_id,
            "PATCH",
            f"{EVENTS_URL}/{meeting_id}",
            params={"sendUpdates": "all"},
            json={
                "summary": title,
                "start": {"dateTime": begin, "timeZone": timezone},
                "end": {"dateTime": end, "timeZone": timezone},
            },
        )

    async def cancel_meeting(self, user_id: UUID, meeting_id: str) -> None:
        await self._call(
            user_id,
            "DELETE",
            f"{EVENTS_URL}/{meeting_id}",
            params={"sendUpdates": "all"},
        )

    async def add_invitee(self, user_id: UUID, meeting_id: str, email: str) -> None:
        # Read-modify-write; a concurrent add between the two calls is lost.
        resp = await self._call(user_id, "GET", f"{EVENTS_URL}/{meeting_id}")
        attendees = list(resp.json().get("attendees") or [])
        attendees.append({"email": email, "responseStatus": "needsAction"})
        await self._call(
            user_id,
            "PATCH",
            f"{EVENTS_URL}/{meeting_id}",
            params={"sendUpdates": "all"},
            json={"attendees": attendees},
        )


class InMemoryCalendarProvider:
    """Dict-backed MeetingProvider.

    ``fail(operation, target)`` makes matching calls raise ProviderError;
    the target is the start for schedule_meeting, the email for
    add_invitee, and the meeting id otherwise.  ``unlink(user_id)`` makes
    every call for that user raise DelegationError.
    """

    def __init__(self) -> None:
        self.meetings: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failing: set[tuple[str, str | None]] = set()
        self._unlinked: set[UUID] = set()
        self._seq = 0

    def fail(self, operation: str, target: str | None = None) -> None:
        self._failing.add((operation, target))

    def unlink(self, user_id: UUID) -> None:
        self._unlinked.add(user_id)

    def reset(self) -> None:
        self.meetings.clear()
        self.calls.clear()
        self._failing.clear()
        self._unlinked.clear()
        self._seq = 0

    def _check(self, operation: str, user_id: UUID, target: str) -> None:
        self.calls.append((operation, target))
        if user_id in self._unlinked:
            raise DelegationError(_PROVIDER, "no Google account linked")
        if (operation, None) in self._failing or (operation, target) in self._failing:
            raise ProviderError(_PROVIDER, f"{operation} failed for {target}")

    def _get(self, meeting_id: str) -> dict[str, Any]:
        meeting = self.meetings.get(meeting_id)
        if meeting is None:
            raise ProviderError(_PROVIDER, f"{meeting_id} not found", status_code=404)
        return meeting

    async def schedule_meeting(
        self,
        user_id: UUID,
        start: str,
        timezone: str,
        title: str,
        duration_minutes: int = 60,
    ) -> ScheduledMeeting:
        self._check("schedule_meeting", user_id, start)
        self._seq += 1
        meeting_id = f"meet-{self._seq}"
        self.meetings[meeting_id] = {
            "owner": user_id,
            "start": start,
            "timezone": timezone,
            "title": title,
            "duration_minutes": duration_minutes,
            "attendees": [],
        }
        return ScheduledMeeting(
            meeting_id=meeting_id,
            join_link=f"https://meet.example.com/{meeting_id}",
            start=start,
        )

    async def reschedule_meeting(
        self,
        user_id: UUID,
        meeting_id: str,
        start: str,
        timezone: str,
        title: str,
        duration_minutes: int = 60,
    ) -> None:
        self._check("reschedule_meeting", user_id, meeting_id)
        meeting = self._get(meeting_id)
        meeting.update(
            start=start, timezone=timezone, title=title, duration_minutes=duration_minutes
        )

    async def cancel_meeting(self, user_id: UUID, meeting_id: str) -> None:
        self._check("cancel_meeting", user_id, meeting_id)
        self._get(meeting_id)
        del self.meetings[meeting_id]

    async def add_invitee(self, user_id: UUID, meeting_id: str, email: str) -> None:
        self._check("add_invitee", user_id, email)
        self._get(meeting_id)["attendees"].append(email)
