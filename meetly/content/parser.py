"""Extract display metadata and the package definition from event content.

Pure functions only: nothing here talks to storage or providers, and
malformed block data degrades to defaults instead of raising, so a bad
package form can never fail the save that carries it.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from meetly.content.blocks import Block, HeaderBlock, ImageBlock, PackageBlock

UNTITLED = "Untitled"
DEFAULT_TIMEZONE = "UTC"

# Fixed offsets for the timezones the editor offers.  No DST handling:
# none of these observe it.
TIMEZONE_OFFSET_HOURS: dict[str, int] = {
    "Asia/Jakarta": 7,
    "Asia/Singapore": 8,
    "UTC": 0,
}

_QUALIFIED_INSTANT = re.compile(r"(Z|[+-]\d{2}:?\d{2})$")
_WALL_CLOCK = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{1,2}):(\d{2})(?::(\d{2}))?"
)


@dataclass(frozen=True, slots=True)
class MeetingRequest:
    start: str  # as written in the block; see to_start_instant
    timezone: str | None  # None when the block omits it
    invitees: tuple[str, ...] = ()
    slot_key: str | None = None


@dataclass(frozen=True, slots=True)
class FolderRequest:
    path: str
    invitees: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PackageSpec:
    name: str
    price: int
    meetings: tuple[MeetingRequest, ...] = ()
    folder: FolderRequest | None = None


@dataclass(frozen=True, slots=True)
class ParsedContent:
    title: str | None  # None when no header carries text
    image_url: str | None
    package: PackageSpec | None

    @property
    def display_title(self) -> str:
        return self.title or UNTITLED


def parse_content(
    blocks: Iterable[Block],
    *,
    max_meetings: int = 3,
    max_invitees: int = 3,
) -> ParsedContent:
    blocks = tuple(blocks)

    title: str | None = None
    image_url: str | None = None
    for block in blocks:
        if isinstance(block, HeaderBlock) and title is None:
            text = block.text.strip()
            if text:
                title = text
        elif isinstance(block, ImageBlock) and image_url is None and block.url:
            image_url = block.url

    package_blocks = [b for b in blocks if isinstance(b, PackageBlock)]
    package = None
    if len(package_blocks) == 1:
        package = parse_package(
            package_blocks[0].data,
            max_meetings=max_meetings,
            max_invitees=max_invitees,
        )

    return ParsedContent(title=title, image_url=image_url, package=package)


def parse_package(
    data: Mapping[str, Any],
    *,
    max_meetings: int = 3,
    max_invitees: int = 3,
) -> PackageSpec | None:
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        return None

    price = _parse_price(data.get("price"))
    if price is None:
        return None

    meetings: list[MeetingRequest] = []
    if data.get("includeMeet") is not False:
        raw_meetings = data.get("meetings")
        if isinstance(raw_meetings, list):
            for raw in raw_meetings:
                meeting = _parse_meeting(raw, max_invitees=max_invitees)
                if meeting is not None:
                    meetings.append(meeting)

    folder = None
    if data.get("includeDrive") is not False:
        folder = _parse_folder(data.get("driveFolder"), max_invitees=max_invitees)

    return PackageSpec(
        name=name.strip(),
        price=price,
        meetings=tuple(meetings[:max_meetings]),
        folder=folder,
    )


def _parse_price(raw: Any) -> int | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    if not math.isfinite(raw) or raw < 0:
        return None
    # Half away from zero, matching the editor's rounding (not banker's).
    return int(math.floor(raw + 0.5))


def _parse_emails(raw: Mapping[str, Any], *, limit: int) -> tuple[str, ...]:
    candidates = raw.get("speakerEmails")
    if not isinstance(candidates, list):
        # Older blocks carry a single speakerEmail.
        single = raw.get("speakerEmail")
        candidates = [single] if isinstance(single, str) else []

    emails = []
    for email in candidates:
        if isinstance(email, str) and email.strip():
            emails.append(email.strip())
    return tuple(emails[:limit])


def _parse_meeting(raw: Any, *, max_invitees: int) -> MeetingRequest | None:
    if not isinstance(raw, Mapping):
        return None
    start = raw.get("startDate")
    if not isinstance(start, str) or not start.strip():
        return None

    timezone = raw.get("timezone")
    if not isinstance(timezone, str) or not timezone.strip():
        timezone = None

    slot_key = raw.get("slotKey")
    return MeetingRequest(
        start=start.strip(),
        timezone=timezone.strip() if timezone else None,
        invitees=_parse_emails(raw, limit=max_invitees),
        slot_key=str(slot_key) if isinstance(slot_key, (str, int)) and str(slot_key) else None,
    )


def _parse_folder(raw: Any, *, max_invitees: int) -> FolderRequest | None:
    if not isinstance(raw, Mapping):
        return None
    path = raw.get("path")
    if not isinstance(path, str) or not path.strip():
        return None
    return FolderRequest(
        path=path.strip(),
        invitees=_parse_emails(raw, limit=max_invitees),
    )


def to_start_instant(start: str, timezone: str) -> str:
    """Resolve a meeting start to an absolute ISO instant.

    Strings that already carry ``Z`` or a numeric offset are returned
    as-is.  Local wall-clock strings (``YYYY-MM-DDTHH:mm[:ss]``) are read in
    ``timezone`` using TIMEZONE_OFFSET_HOURS; unknown zones count as UTC.

    >>> to_start_instant("2025-06-01T10:00:00", "Asia/Jakarta")
    '2025-06-01T03:00:00.000Z'
    """
    s = start.strip()
    if _QUALIFIED_INSTANT.search(s):
        return s

    match = _WALL_CLOCK.match(s)
    if match is None:
        return s

    year, month, day, hour, minute, second = match.groups()
    try:
        local = datetime(
            int(year), int(month), int(day), 0, int(minute), int(second or "0"),
            tzinfo=UTC,
        )
    except ValueError:
        return s

    offset = TIMEZONE_OFFSET_HOURS.get(timezone, 0)
    # Hour is applied as a delta so out-of-range hours roll over like the
    # editor's Date.UTC does.
    instant = local + timedelta(hours=int(hour) - offset)
    return instant.strftime("%Y-%m-%dT%H:%M:%S.") + f"{instant.microsecond // 1000:03d}Z"
