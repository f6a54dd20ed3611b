from __future__ import annotations

from typing import Protocol
from uuid import UUID

from meetly.models.organization import OrganizationMembership


class MembershipRepo(Protocol):
    async def get(self, membership_id: UUID) -> OrganizationMembership | None: ...
    async def add(self, membership: OrganizationMembership) -> None: ...
    async def update(self, membership: OrganizationMembership) -> None: ...
    async def find_by_email(
        self, organization_id: UUID, email: str
    ) -> OrganizationMembership | None: ...
    async def list_for_user(
        self, user_id: UUID, email: str, status: str
    ) -> list[OrganizationMembership]: ...
    async def list_by_organization(
        self, organization_id: UUID
    ) -> list[OrganizationMembership]: ...


class InMemoryMembershipRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, OrganizationMembership] = {}

    async def get(self, membership_id: UUID) -> OrganizationMembership | None:
        return self._by_id.get(membership_id)

    async def add(self, membership: OrganizationMembership) -> None:
        self._by_id[membership.id] = membership

    async def update(self, membership: OrganizationMembership) -> None:
        if membership.id not in self._by_id:
            raise KeyError("membership not found")
        self._by_id[membership.id] = membership

    async def find_by_email(
        self, organization_id: UUID, email: str
    ) -> OrganizationMembership | None:
        email = email.strip().lower()
        return next(
            (
                m
                for m in self._by_id.values()
                if m.organization_id == organization_id and m.email == email
            ),
            None,
        )

    async def list_for_user(
        self, user_id: UUID, email: str, status: str
    ) -> list[OrganizationMembership]:
        # Matches claimed memberships by user id, unclaimed ones by email.
        found = [
            m
            for m in reversed(self._by_id.values())
            if m.status == status and m.addressed_to(user_id, email)
        ]
        return sorted(found, key=lambda m: m.created_at, reverse=True)

    async def list_by_organization(
        self, organization_id: UUID
    ) -> list[OrganizationMembership]:
        return [m for m in self._by_id.values() if m.organization_id == organization_id]
