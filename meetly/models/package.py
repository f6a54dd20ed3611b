from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class MeetingRecord:
    """One meeting successfully provisioned on the calendar provider."""

    meeting_id: str
    join_link: str
    start: str  # ISO-8601 instant as returned by the provider
    timezone: str
    slot_key: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "meetingId": self.meeting_id,
            "hangoutLink": self.join_link,
            "startDateTime": self.start,
            "timezone": self.timezone,
            "slotKey": self.slot_key,
        }

    @staticmethod
    def from_dict(raw: dict[str, Any], *, position: int) -> MeetingRecord:
        # Rows written before slot keys existed fall back to their position.
        return MeetingRecord(
            meeting_id=str(raw["meetingId"]),
            join_link=str(raw.get("hangoutLink") or ""),
            start=str(raw.get("startDateTime") or ""),
            timezone=str(raw.get("timezone") or "UTC"),
            slot_key=str(raw.get("slotKey") or f"slot-{position}"),
        )


@dataclass(frozen=True, slots=True)
class Package:
    id: UUID
    event_id: UUID
    user_id: UUID  # the creator; provider calls run under this identity
    name: str
    price: int  # minor units, >= 0
    currency: str
    meetings: tuple[MeetingRecord, ...] = ()
    drive_folder_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def new(
        *,
        event_id: UUID,
        user_id: UUID,
        name: str,
        price: int,
        currency: str,
        meetings: tuple[MeetingRecord, ...] = (),
        drive_folder_id: str | None = None,
    ) -> Package:
        if price < 0:
            raise ValueError("price must be non-negative")
        return Package(
            id=uuid4(),
            event_id=event_id,
            user_id=user_id,
            name=name,
            price=price,
            currency=currency,
            meetings=meetings,
            drive_folder_id=drive_folder_id,
        )
