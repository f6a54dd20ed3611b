"""Response models shared by several routers, with their converters."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from meetly.content.blocks import blocks_to_dicts
from meetly.models.event import Event
from meetly.models.organization import Organization
from meetly.models.package import Package
from meetly.models.user import User
from meetly.providers.base import ProvisioningReport


class MeetingOut(BaseModel):
    meeting_id: str
    join_link: str
    start: str
    timezone: str
    slot_key: str


class PackageOut(BaseModel):
    id: str
    event_id: str
    name: str
    price: int
    currency: str
    meetings: list[MeetingOut]
    drive_folder_id: str | None


class EventOut(BaseModel):
    id: str
    title: str
    image_url: str | None
    organization_id: str | None
    content: dict[str, Any]
    created_at: str
    package: PackageOut | None = None


class UserBriefOut(BaseModel):
    id: str
    name: str
    email: str
    image: str | None = None
    slug: str | None = None


class OrganizationBriefOut(BaseModel):
    id: str
    name: str
    logo_url: str | None = None


class FailureOut(BaseModel):
    operation: str
    target: str
    detail: str


class ProvisioningOut(BaseModel):
    ok: bool
    summary: str
    failures: list[FailureOut]


def package_out(package: Package) -> PackageOut:
    return PackageOut(
        id=str(package.id),
        event_id=str(package.event_id),
        name=package.name,
        price=package.price,
        currency=package.currency,
        meetings=[
            MeetingOut(
                meeting_id=m.meeting_id,
                join_link=m.join_link,
                start=m.start,
                timezone=m.timezone,
                slot_key=m.slot_key,
            )
            for m in package.meetings
        ],
        drive_folder_id=package.drive_folder_id,
    )


def event_out(event: Event, package: Package | None = None) -> EventOut:
    return EventOut(
        id=str(event.id),
        title=event.title,
        image_url=event.image_url,
        organization_id=str(event.organization_id) if event.organization_id else None,
        content={"blocks": blocks_to_dicts(event.content)},
        created_at=event.created_at.isoformat(),
        package=package_out(package) if package else None,
    )


def user_brief_out(user: User) -> UserBriefOut:
    return UserBriefOut(
        id=str(user.id),
        name=user.name,
        email=user.email,
        image=user.image,
        slug=user.slug,
    )


def organization_brief_out(organization: Organization) -> OrganizationBriefOut:
    return OrganizationBriefOut(
        id=str(organization.id),
        name=organization.name,
        logo_url=organization.logo_url,
    )


def provisioning_out(report: ProvisioningReport) -> ProvisioningOut:
    return ProvisioningOut(
        ok=report.ok,
        summary=report.summary(),
        failures=[
            FailureOut(operation=o.operation, target=o.target, detail=o.detail)
            for o in report.failures
        ],
    )
