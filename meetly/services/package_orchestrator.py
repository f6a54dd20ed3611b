"""Event save workflows and the package provisioning they trigger.

Saving an event persists it first, then walks the package block (if any)
and asks the providers for meetings and a folder.  Provider calls are
best effort: each one goes through ``attempt`` and a failure only loses
that one resource.  The package row is written with whatever was
obtained, so a save never fails because Google did.

Meetings are reconciled by slot key.  A request's key is its ``slotKey``
or ``slot-<index>`` when the editor sent none, so content without keys
reconciles positionally: the i-th requested meeting reschedules the i-th
stored one, extra requests are scheduled, extra stored meetings are
cancelled.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from uuid import UUID

from meetly.content.blocks import Block
from meetly.content.parser import (
    DEFAULT_TIMEZONE,
    FolderRequest,
    MeetingRequest,
    PackageSpec,
    parse_content,
    to_start_instant,
)
from meetly.core.config import Settings
from meetly.models.event import Event
from meetly.models.organization import Organization
from meetly.models.package import MeetingRecord, Package
from meetly.models.principal import Principal
from meetly.models.user import User
from meetly.providers.base import (
    FolderProvider,
    MeetingProvider,
    ProvisioningReport,
    attempt,
)
from meetly.repos.store import Store
from meetly.services.errors import (
    EventNotFoundError,
    LimitExceededError,
    NotAMemberError,
)
from meetly.services.organization_service import find_approved_membership

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowContext:
    """Everything a save needs, passed explicitly."""

    principal: Principal
    store: Store
    meetings: MeetingProvider
    folders: FolderProvider
    settings: Settings


@dataclass(frozen=True)
class SaveResult:
    event: Event
    package: Package | None
    report: ProvisioningReport = field(default_factory=ProvisioningReport)


@dataclass(frozen=True, slots=True)
class EventSummary:
    event: Event
    package: Package | None


@dataclass(frozen=True, slots=True)
class EventView:
    event: Event
    creator: User | None
    organization: Organization | None
    package: Package | None


def _session_title(spec: PackageSpec) -> str:
    return f"{spec.name} - Session"


def _slot_key(request: MeetingRequest, index: int) -> str:
    return request.slot_key or f"slot-{index}"


# ---------------------------------------------------------------------------
# Provisioning steps
# ---------------------------------------------------------------------------


async def _add_invitees(
    ctx: WorkflowContext,
    meeting_id: str,
    invitees: Sequence[str],
    report: ProvisioningReport,
) -> None:
    for email in invitees:
        await attempt(
            report,
            "add_invitee",
            email,
            ctx.meetings.add_invitee(ctx.principal.user_id, meeting_id, email),
        )


async def _schedule(
    ctx: WorkflowContext,
    spec: PackageSpec,
    request: MeetingRequest,
    slot_key: str,
    report: ProvisioningReport,
) -> MeetingRecord | None:
    timezone = request.timezone or DEFAULT_TIMEZONE
    start = to_start_instant(request.start, timezone)
    outcome = await attempt(
        report,
        "schedule_meeting",
        start,
        ctx.meetings.schedule_meeting(
            ctx.principal.user_id,
            start,
            timezone,
            _session_title(spec),
            ctx.settings.meeting_duration_minutes,
        ),
    )
    if not outcome.ok:
        return None

    scheduled = outcome.value
    await _add_invitees(ctx, scheduled.meeting_id, request.invitees, report)
    return MeetingRecord(
        meeting_id=scheduled.meeting_id,
        join_link=scheduled.join_link,
        start=scheduled.start,
        timezone=timezone,
        slot_key=slot_key,
    )


async def _reschedule(
    ctx: WorkflowContext,
    spec: PackageSpec,
    request: MeetingRequest,
    existing: MeetingRecord,
    report: ProvisioningReport,
) -> MeetingRecord:
    # A request without a zone keeps the one the meeting was created in.
    timezone = request.timezone or existing.timezone
    start = to_start_instant(request.start, timezone)
    outcome = await attempt(
        report,
        "reschedule_meeting",
        existing.meeting_id,
        ctx.meetings.reschedule_meeting(
            ctx.principal.user_id,
            existing.meeting_id,
            start,
            timezone,
            _session_title(spec),
            ctx.settings.meeting_duration_minutes,
        ),
    )
    if not outcome.ok:
        # The calendar still has the old time; so does our record.
        return existing

    await _add_invitees(ctx, existing.meeting_id, request.invitees, report)
    return replace(existing, start=start, timezone=timezone)


async def _share_folder(
    ctx: WorkflowContext,
    folder_id: str,
    invitees: Sequence[str],
    report: ProvisioningReport,
) -> None:
    for email in invitees:
        await attempt(
            report,
            "share_folder",
            email,
            ctx.folders.share_folder(ctx.principal.user_id, folder_id, email, "reader"),
        )


async def _provision_folder(
    ctx: WorkflowContext, request: FolderRequest, report: ProvisioningReport
) -> str | None:
    outcome = await attempt(
        report,
        "find_or_create_folder",
        request.path,
        ctx.folders.find_or_create_folder(ctx.principal.user_id, request.path),
    )
    if not outcome.ok:
        return None
    folder_id = outcome.value.folder_id
    await _share_folder(ctx, folder_id, request.invitees, report)
    return folder_id


async def _create_package(
    ctx: WorkflowContext,
    event: Event,
    spec: PackageSpec,
    report: ProvisioningReport,
) -> Package:
    meetings = []
    for i, request in enumerate(spec.meetings):
        record = await _schedule(ctx, spec, request, _slot_key(request, i), report)
        if record is not None:
            meetings.append(record)

    folder_id = None
    if spec.folder is not None:
        folder_id = await _provision_folder(ctx, spec.folder, report)

    package = Package.new(
        event_id=event.id,
        user_id=ctx.principal.user_id,
        name=spec.name,
        price=spec.price,
        currency=ctx.settings.currency,
        meetings=tuple(meetings),
        drive_folder_id=folder_id,
    )
    await ctx.store.packages.add(package)
    return package


async def _reconcile_meetings(
    ctx: WorkflowContext,
    spec: PackageSpec,
    existing: Sequence[MeetingRecord],
    report: ProvisioningReport,
) -> tuple[MeetingRecord, ...]:
    by_key = {record.slot_key: record for record in existing}
    matched: set[str] = set()
    result: list[MeetingRecord] = []

    for i, request in enumerate(spec.meetings):
        key = _slot_key(request, i)
        if key in matched:
            # Duplicate key in one save; the repeat gets a slot of its own.
            key = f"{key}-{i}"
        record = by_key.get(key)
        if record is not None:
            matched.add(key)
            result.append(await _reschedule(ctx, spec, request, record, report))
        else:
            new = await _schedule(ctx, spec, request, key, report)
            if new is not None:
                matched.add(key)
                result.append(new)

    for record in existing:
        if record.slot_key in matched:
            continue
        # Dropped from the stored list even if the provider refuses.
        await attempt(
            report,
            "cancel_meeting",
            record.meeting_id,
            ctx.meetings.cancel_meeting(ctx.principal.user_id, record.meeting_id),
        )

    return tuple(result)


async def _update_package(
    ctx: WorkflowContext,
    package: Package,
    spec: PackageSpec,
    report: ProvisioningReport,
) -> Package:
    meetings = await _reconcile_meetings(ctx, spec, package.meetings, report)

    folder_id = package.drive_folder_id
    if spec.folder is not None:
        if folder_id is None:
            folder_id = await _provision_folder(ctx, spec.folder, report)
        else:
            # Path changes on an existing folder are not applied.
            await _share_folder(ctx, folder_id, spec.folder.invitees, report)

    updated = replace(
        package,
        name=spec.name,
        price=spec.price,
        meetings=meetings,
        drive_folder_id=folder_id,
    )
    await ctx.store.packages.update(updated)
    return updated


def _log_summary(
    operation: str, event: Event, package: Package | None, report: ProvisioningReport
) -> None:
    logger.info(
        "%s event=%s package=%s provisioning=%s",
        operation,
        event.id,
        package.id if package else None,
        report.summary(),
        extra={
            "operation": operation,
            "event_id": str(event.id),
            "package_id": str(package.id) if package else None,
            "outcome": "ok" if report.ok else "partial",
        },
    )


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


async def create_event(
    ctx: WorkflowContext,
    content: Sequence[Block],
    organization_id: UUID | None = None,
) -> SaveResult:
    principal = ctx.principal
    limit = ctx.settings.max_events_per_user
    if await ctx.store.events.count_by_user(principal.user_id) >= limit:
        raise LimitExceededError(limit)

    if organization_id is not None:
        membership = await find_approved_membership(
            ctx.store, organization_id, principal.user_id, principal.email
        )
        if membership is None:
            logger.warning(
                "Event create denied: user=%s not a member of organization=%s",
                principal.user_id,
                organization_id,
            )
            raise NotAMemberError()

    parsed = parse_content(
        content,
        max_meetings=ctx.settings.max_meetings_per_package,
        max_invitees=ctx.settings.max_invitees,
    )
    event = Event.new(
        user_id=principal.user_id,
        title=parsed.display_title,
        content=tuple(content),
        image_url=parsed.image_url,
        organization_id=organization_id,
    )
    await ctx.store.events.add(event)

    report = ProvisioningReport()
    package = None
    if parsed.package is not None:
        package = await _create_package(ctx, event, parsed.package, report)

    _log_summary("create_event", event, package, report)
    return SaveResult(event=event, package=package, report=report)


async def update_event(
    ctx: WorkflowContext, event_id: UUID, content: Sequence[Block]
) -> SaveResult:
    store = ctx.store
    event = await store.events.get_owned(event_id, ctx.principal.user_id)
    if event is None:
        raise EventNotFoundError()

    parsed = parse_content(
        content,
        max_meetings=ctx.settings.max_meetings_per_package,
        max_invitees=ctx.settings.max_invitees,
    )
    event = replace(
        event,
        title=parsed.title or event.title,
        image_url=event.image_url or parsed.image_url,
        content=tuple(content),
    )
    await store.events.update(event)

    report = ProvisioningReport()
    package = await store.packages.get_by_event(event.id)
    # Without a package block the package is left alone: buyers keep access.
    if parsed.package is None:
        _log_summary("update_event", event, package, report)
        return SaveResult(event=event, package=package, report=report)

    if package is None:
        package = await _create_package(ctx, event, parsed.package, report)
    else:
        package = await _update_package(ctx, package, parsed.package, report)

    _log_summary("update_event", event, package, report)
    return SaveResult(event=event, package=package, report=report)


async def list_my_events(store: Store, user_id: UUID) -> list[EventSummary]:
    return [
        EventSummary(event=e, package=await store.packages.get_by_event(e.id))
        for e in await store.events.list_by_user(user_id)
    ]


async def get_event(store: Store, event_id: UUID) -> EventView:
    event = await store.events.get(event_id)
    if event is None:
        raise EventNotFoundError()
    organization = None
    if event.organization_id is not None:
        organization = await store.organizations.get(event.organization_id)
    return EventView(
        event=event,
        creator=await store.users.get_by_id(event.user_id),
        organization=organization,
        package=await store.packages.get_by_event(event.id),
    )


async def delete_event(store: Store, principal: Principal, event_id: UUID) -> None:
    """Delete an owned event.  Its package and purchases stay."""
    if not await store.events.delete_owned(event_id, principal.user_id):
        raise EventNotFoundError()
    logger.info("Event deleted id=%s user=%s", event_id, principal.user_id)
