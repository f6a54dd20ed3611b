from __future__ import annotations

from typing import Protocol
from uuid import UUID

from meetly.models.organization import Organization


class OrganizationRepo(Protocol):
    async def get(self, organization_id: UUID) -> Organization | None: ...
    async def add(self, organization: Organization) -> None: ...
    async def list_by_owner(self, owner_id: UUID) -> list[Organization]: ...


class InMemoryOrganizationRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Organization] = {}

    async def get(self, organization_id: UUID) -> Organization | None:
        return self._by_id.get(organization_id)

    async def add(self, organization: Organization) -> None:
        self._by_id[organization.id] = organization

    async def list_by_owner(self, owner_id: UUID) -> list[Organization]:
        found = [o for o in reversed(self._by_id.values()) if o.owner_id == owner_id]
        return sorted(found, key=lambda o: o.created_at, reverse=True)
