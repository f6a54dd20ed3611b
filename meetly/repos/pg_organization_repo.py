"""PostgreSQL implementation of OrganizationRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.db.tables import OrganizationRow
from meetly.models.organization import Organization


class PgOrganizationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, organization_id: UUID) -> Organization | None:
        row = await self._session.get(OrganizationRow, organization_id)
        return _row_to_organization(row) if row is not None else None

    async def add(self, organization: Organization) -> None:
        self._session.add(
            OrganizationRow(
                id=organization.id,
                name=organization.name,
                logo_url=organization.logo_url,
                owner_id=organization.owner_id,
                created_at=organization.created_at,
            )
        )
        await self._session.flush()

    async def list_by_owner(self, owner_id: UUID) -> list[Organization]:
        stmt = (
            select(OrganizationRow)
            .where(OrganizationRow.owner_id == owner_id)
            .order_by(OrganizationRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_organization(r) for r in rows]


def _row_to_organization(row: OrganizationRow) -> Organization:
    return Organization(
        id=row.id,
        name=row.name,
        owner_id=row.owner_id,
        logo_url=row.logo_url,
        created_at=row.created_at,
    )
