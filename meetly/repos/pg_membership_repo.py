"""PostgreSQL implementation of MembershipRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.db.tables import OrganizationMembershipRow as Row
from meetly.models.organization import OrganizationMembership


class PgMembershipRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, membership_id: UUID) -> OrganizationMembership | None:
        row = await self._session.get(Row, membership_id)
        return _row_to_membership(row) if row is not None else None

    async def add(self, membership: OrganizationMembership) -> None:
        self._session.add(
            Row(
                id=membership.id,
                organization_id=membership.organization_id,
                user_id=membership.user_id,
                email=membership.email,
                role=membership.role,
                status=membership.status,
                created_at=membership.created_at,
            )
        )
        await self._session.flush()

    async def update(self, membership: OrganizationMembership) -> None:
        stmt = (
            update(Row)
            .where(Row.id == membership.id)
            .values(
                user_id=membership.user_id,
                role=membership.role,
                status=membership.status,
            )
        )
        await self._session.execute(stmt)

    async def find_by_email(
        self, organization_id: UUID, email: str
    ) -> OrganizationMembership | None:
        stmt = select(Row).where(
            Row.organization_id == organization_id,
            Row.email == email.strip().lower(),
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_membership(row) if row is not None else None

    async def list_for_user(
        self, user_id: UUID, email: str, status: str
    ) -> list[OrganizationMembership]:
        stmt = (
            select(Row)
            .where(
                Row.status == status,
                or_(
                    Row.user_id == user_id,
                    and_(Row.user_id.is_(None), Row.email == email.strip().lower()),
                ),
            )
            .order_by(Row.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]

    async def list_by_organization(
        self, organization_id: UUID
    ) -> list[OrganizationMembership]:
        stmt = select(Row).where(Row.organization_id == organization_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]


def _row_to_membership(row: Row) -> OrganizationMembership:
    return OrganizationMembership(
        id=row.id,
        organization_id=row.organization_id,
        email=row.email,
        role=row.role,
        status=row.status,
        user_id=row.user_id,
        created_at=row.created_at,
    )
