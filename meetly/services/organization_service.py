"""Organizations: creation, invitations and membership lookups.

An invite is addressed to an email.  Until the invitee responds the
membership has no user id and is matched by email; responding claims it
by recording the responder's user id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from meetly.models.organization import Organization, OrganizationMembership
from meetly.models.principal import Principal
from meetly.repos.store import Store
from meetly.services.errors import (
    InviteForbiddenError,
    InviteNotFoundError,
    NotOwnerError,
)

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

INVITABLE_ROLES = frozenset({"member", "admin"})


@dataclass(frozen=True, slots=True)
class OwnedOrganization:
    organization: Organization
    members: list[OrganizationMembership]


@dataclass(frozen=True, slots=True)
class MembershipView:
    membership: OrganizationMembership
    organization: Organization


async def create_organization(
    store: Store, principal: Principal, name: str, logo_url: str | None = None
) -> Organization:
    org = Organization.new(
        name=name.strip(),
        owner_id=principal.user_id,
        logo_url=logo_url.strip() if logo_url else None,
    )
    await store.organizations.add(org)
    await store.memberships.add(
        OrganizationMembership.new(
            organization_id=org.id,
            email=principal.email,
            role="owner",
            status=APPROVED,
            user_id=principal.user_id,
        )
    )
    logger.info("Organization created id=%s owner=%s", org.id, principal.user_id)
    return org


async def list_owned(store: Store, principal: Principal) -> list[OwnedOrganization]:
    return [
        OwnedOrganization(
            organization=org,
            members=await store.memberships.list_by_organization(org.id),
        )
        for org in await store.organizations.list_by_owner(principal.user_id)
    ]


async def _with_organizations(
    store: Store, memberships: list[OrganizationMembership]
) -> list[MembershipView]:
    views = []
    for m in memberships:
        org = await store.organizations.get(m.organization_id)
        if org is not None:
            views.append(MembershipView(membership=m, organization=org))
    return views


async def list_approved(store: Store, principal: Principal) -> list[MembershipView]:
    memberships = await store.memberships.list_for_user(
        principal.user_id, principal.email, APPROVED
    )
    return await _with_organizations(store, memberships)


async def list_pending_invites(store: Store, principal: Principal) -> list[MembershipView]:
    memberships = await store.memberships.list_for_user(
        principal.user_id, principal.email, PENDING
    )
    return await _with_organizations(store, memberships)


async def invite_member(
    store: Store,
    principal: Principal,
    organization_id: UUID,
    email: str,
    role: str | None = None,
) -> OrganizationMembership:
    """Invite ``email``; re-inviting an existing member resets it to pending."""
    org = await store.organizations.get(organization_id)
    if org is None or org.owner_id != principal.user_id:
        raise NotOwnerError()

    email = email.strip().lower()
    existing = await store.memberships.find_by_email(organization_id, email)
    if existing is not None:
        updated = replace(existing, status=PENDING, role=role or existing.role)
        await store.memberships.update(updated)
        return updated

    membership = OrganizationMembership.new(
        organization_id=organization_id,
        email=email,
        role=role or "member",
        status=PENDING,
    )
    await store.memberships.add(membership)
    logger.info("Invite sent organization=%s email=%s", organization_id, email)
    return membership


async def respond_to_invite(
    store: Store, principal: Principal, membership_id: UUID, approve: bool
) -> OrganizationMembership:
    membership = await store.memberships.get(membership_id)
    if membership is None:
        raise InviteNotFoundError()
    if not membership.addressed_to(principal.user_id, principal.email):
        raise InviteForbiddenError()

    updated = replace(
        membership,
        status=APPROVED if approve else REJECTED,
        user_id=membership.user_id or principal.user_id,
    )
    await store.memberships.update(updated)
    return updated


async def find_approved_membership(
    store: Store, organization_id: UUID, user_id: UUID, email: str
) -> OrganizationMembership | None:
    for m in await store.memberships.list_for_user(user_id, email, APPROVED):
        if m.organization_id == organization_id:
            return m
    return None
