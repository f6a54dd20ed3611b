"""Organization endpoints.

Owners invite people by email; an invite shows up for whoever signs in
with that address, and responding to it claims the membership.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from meetly.api.dependencies import get_store, require_user
from meetly.models.organization import Organization, OrganizationMembership
from meetly.models.principal import Principal
from meetly.repos.store import Store
from meetly.services import organization_service
from meetly.services.organization_service import INVITABLE_ROLES, MembershipView

router = APIRouter(prefix="/v1/organizations", tags=["organizations"])


# --- Pydantic schemas ---


class OrganizationCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    logo_url: str | None = None


class OrganizationOut(BaseModel):
    id: str
    name: str
    owner_id: str
    logo_url: str | None


class MemberOut(BaseModel):
    id: str
    email: str
    role: str
    status: str
    user_id: str | None


class OwnedOrganizationOut(BaseModel):
    organization: OrganizationOut
    members: list[MemberOut]


class MembershipOut(BaseModel):
    membership: MemberOut
    organization: OrganizationOut


class InviteIn(BaseModel):
    email: EmailStr
    role: str | None = None


class RespondIn(BaseModel):
    approve: bool


def _org_out(org: Organization) -> OrganizationOut:
    return OrganizationOut(
        id=str(org.id), name=org.name, owner_id=str(org.owner_id), logo_url=org.logo_url
    )


def _member_out(m: OrganizationMembership) -> MemberOut:
    return MemberOut(
        id=str(m.id),
        email=m.email,
        role=m.role,
        status=m.status,
        user_id=str(m.user_id) if m.user_id else None,
    )


def _membership_out(view: MembershipView) -> MembershipOut:
    return MembershipOut(
        membership=_member_out(view.membership),
        organization=_org_out(view.organization),
    )


# --- Endpoints ---


@router.post("", response_model=OrganizationOut, status_code=status.HTTP_201_CREATED)
async def create_organization(
    body: OrganizationCreateIn,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> OrganizationOut:
    """Create an organization.  The creator becomes its approved owner."""
    org = await organization_service.create_organization(
        store, principal, body.name, body.logo_url
    )
    return _org_out(org)


@router.get("/owned", response_model=list[OwnedOrganizationOut])
async def list_owned(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[OwnedOrganizationOut]:
    owned = await organization_service.list_owned(store, principal)
    return [
        OwnedOrganizationOut(
            organization=_org_out(o.organization),
            members=[_member_out(m) for m in o.members],
        )
        for o in owned
    ]


@router.get("/memberships", response_model=list[MembershipOut])
async def list_memberships(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[MembershipOut]:
    """Organizations the caller may publish events under."""
    views = await organization_service.list_approved(store, principal)
    return [_membership_out(v) for v in views]


@router.get("/invites", response_model=list[MembershipOut])
async def list_invites(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[MembershipOut]:
    """Pending invites addressed to the caller."""
    views = await organization_service.list_pending_invites(store, principal)
    return [_membership_out(v) for v in views]


@router.post(
    "/{organization_id}/invites",
    response_model=MemberOut,
    status_code=status.HTTP_201_CREATED,
)
async def invite_member(
    organization_id: UUID,
    body: InviteIn,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> MemberOut:
    """Invite someone by email.  Owner only."""
    if body.role is not None and body.role not in INVITABLE_ROLES:
        raise HTTPException(status_code=422, detail="invalid role")
    membership = await organization_service.invite_member(
        store, principal, organization_id, body.email, body.role
    )
    return _member_out(membership)


@router.post("/invites/{membership_id}/respond", response_model=MemberOut)
async def respond_to_invite(
    membership_id: UUID,
    body: RespondIn,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> MemberOut:
    """Accept or decline an invite addressed to the caller."""
    membership = await organization_service.respond_to_invite(
        store, principal, membership_id, body.approve
    )
    return _member_out(membership)
