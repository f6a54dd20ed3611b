from __future__ import annotations

from meetly.content.blocks import (
    HeaderBlock,
    ImageBlock,
    PackageBlock,
    UnknownBlock,
    blocks_to_dicts,
    parse_blocks,
)
from meetly.content.parser import UNTITLED, parse_content, parse_package, to_start_instant
from tests.conftest import header_block, meeting, package_block


def _parse(*raw: dict, **kw):
    return parse_content(parse_blocks(list(raw)), **kw)


# ---- blocks ----


def test_parse_blocks_recognizes_known_types() -> None:
    blocks = parse_blocks(
        [
            header_block("Hello"),
            {"type": "image", "data": {"file": {"url": "https://img/x.png"}}},
            package_block(),
            {"type": "paragraph", "data": {"text": "body"}},
        ]
    )
    assert isinstance(blocks[0], HeaderBlock) and blocks[0].text == "Hello"
    assert isinstance(blocks[1], ImageBlock) and blocks[1].url == "https://img/x.png"
    assert isinstance(blocks[2], PackageBlock)
    assert isinstance(blocks[3], UnknownBlock) and blocks[3].type == "paragraph"


def test_unknown_blocks_round_trip_untouched() -> None:
    raw = [{"id": "p1", "type": "quote", "data": {"text": "hi", "caption": "me"}}]
    assert blocks_to_dicts(parse_blocks(raw)) == raw


def test_parse_blocks_tolerates_garbage() -> None:
    assert parse_blocks(None) == ()
    assert parse_blocks("not a list") == ()
    (block,) = parse_blocks([42])
    assert isinstance(block, UnknownBlock)


# ---- title and image ----


def test_first_non_empty_header_is_the_title() -> None:
    parsed = _parse(header_block("  "), header_block("Workshop"), header_block("Later"))
    assert parsed.title == "Workshop"


def test_only_blank_headers_display_as_untitled() -> None:
    parsed = _parse(header_block(""), header_block("   "))
    assert parsed.title is None
    assert parsed.display_title == UNTITLED


def test_missing_title_displays_as_untitled() -> None:
    parsed = _parse({"type": "paragraph", "data": {}})
    assert parsed.title is None
    assert parsed.display_title == UNTITLED


def test_first_image_url_is_used() -> None:
    parsed = _parse(
        {"type": "image", "data": {}},
        {"type": "image", "data": {"file": {"url": "https://img/a.png"}}},
        {"type": "image", "data": {"file": {"url": "https://img/b.png"}}},
    )
    assert parsed.image_url == "https://img/a.png"


# ---- package ----


def test_package_with_meeting_in_jakarta() -> None:
    parsed = _parse(
        package_block(
            price=100000,
            meetings=[meeting("2025-06-01T10:00", "Asia/Jakarta", "s@example.com")],
        )
    )
    spec = parsed.package
    assert spec is not None
    assert spec.name == "Mentoring"
    assert spec.price == 100000
    (request,) = spec.meetings
    assert request.invitees == ("s@example.com",)
    assert to_start_instant(request.start, request.timezone) == "2025-06-01T03:00:00.000Z"


def test_no_package_block_means_no_spec() -> None:
    assert _parse(header_block("Hi")).package is None


def test_two_package_blocks_mean_no_spec() -> None:
    assert _parse(package_block(), package_block(name="Other")).package is None


def test_package_requires_name_and_price() -> None:
    assert parse_package({"price": 10}) is None
    assert parse_package({"name": "  ", "price": 10}) is None
    assert parse_package({"name": "X"}) is None
    assert parse_package({"name": "X", "price": "10"}) is None
    assert parse_package({"name": "X", "price": -1}) is None
    assert parse_package({"name": "X", "price": True}) is None


def test_price_rounds_half_up_and_zero_is_valid() -> None:
    assert parse_package({"name": "X", "price": 10.5}).price == 11
    assert parse_package({"name": "X", "price": 10.4}).price == 10
    assert parse_package({"name": "X", "price": 0}).price == 0


def test_meetings_capped_and_invalid_ones_skipped() -> None:
    spec = parse_package(
        {
            "name": "X",
            "price": 1,
            "meetings": [
                {"timezone": "UTC"},
                meeting("2025-01-01T09:00"),
                meeting("2025-01-02T09:00"),
                meeting("2025-01-03T09:00"),
                meeting("2025-01-04T09:00"),
            ],
        },
        max_meetings=3,
    )
    assert [m.start for m in spec.meetings] == [
        "2025-01-01T09:00",
        "2025-01-02T09:00",
        "2025-01-03T09:00",
    ]


def test_invitees_capped_per_meeting() -> None:
    spec = parse_package(
        {
            "name": "X",
            "price": 1,
            "meetings": [meeting("2025-01-01T09:00", "UTC", "a@x.io", "b@x.io", "c@x.io", "d@x.io")],
        },
        max_invitees=3,
    )
    assert spec.meetings[0].invitees == ("a@x.io", "b@x.io", "c@x.io")


def test_legacy_single_speaker_email() -> None:
    spec = parse_package(
        {
            "name": "X",
            "price": 1,
            "meetings": [{"startDate": "2025-01-01T09:00", "speakerEmail": "old@x.io"}],
        }
    )
    assert spec.meetings[0].invitees == ("old@x.io",)
    assert spec.meetings[0].timezone is None


def test_include_flags_turn_off_meetings_and_folder() -> None:
    spec = parse_package(
        {
            "name": "X",
            "price": 1,
            "includeMeet": False,
            "includeDrive": False,
            "meetings": [meeting("2025-01-01T09:00")],
            "driveFolder": {"path": "Course"},
        }
    )
    assert spec.meetings == ()
    assert spec.folder is None


def test_folder_with_invitees() -> None:
    spec = parse_package(
        {"name": "X", "price": 1, "driveFolder": {"path": " Course ", "speakerEmails": ["t@x.io"]}}
    )
    assert spec.folder.path == "Course"
    assert spec.folder.invitees == ("t@x.io",)


def test_slot_key_is_carried() -> None:
    spec = parse_package(
        {"name": "X", "price": 1, "meetings": [meeting("2025-01-01T09:00", slotKey="intro")]}
    )
    assert spec.meetings[0].slot_key == "intro"


# ---- start instants ----


def test_start_instant_keeps_qualified_values() -> None:
    assert to_start_instant("2025-06-01T10:00:00Z", "Asia/Jakarta") == "2025-06-01T10:00:00Z"
    assert to_start_instant("2025-06-01T10:00:00+07:00", "UTC") == "2025-06-01T10:00:00+07:00"


def test_start_instant_rolls_back_across_midnight() -> None:
    assert to_start_instant("2025-06-01T05:30", "Asia/Singapore") == "2025-05-31T21:30:00.000Z"


def test_start_instant_unknown_zone_counts_as_utc() -> None:
    assert to_start_instant("2025-06-01T10:00", "Mars/Base") == "2025-06-01T10:00:00.000Z"


def test_start_instant_leaves_unparseable_values() -> None:
    assert to_start_instant("next tuesday", "UTC") == "next tuesday"
