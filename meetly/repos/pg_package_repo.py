"""PostgreSQL implementation of PackageRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.db.tables import PackageRow
from meetly.models.package import MeetingRecord, Package


class PgPackageRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, package_id: UUID) -> Package | None:
        row = await self._session.get(PackageRow, package_id)
        return _row_to_package(row) if row is not None else None

    async def get_by_event(self, event_id: UUID) -> Package | None:
        stmt = select(PackageRow).where(PackageRow.event_id == event_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_package(row) if row is not None else None

    async def add(self, package: Package) -> None:
        # The unique event_id index rejects a second package per event.
        self._session.add(
            PackageRow(
                id=package.id,
                event_id=package.event_id,
                user_id=package.user_id,
                name=package.name,
                price=package.price,
                currency=package.currency,
                meetings=[m.to_dict() for m in package.meetings],
                drive_folder_id=package.drive_folder_id,
                created_at=package.created_at,
            )
        )
        await self._session.flush()

    async def update(self, package: Package) -> None:
        stmt = (
            update(PackageRow)
            .where(PackageRow.id == package.id)
            .values(
                name=package.name,
                price=package.price,
                meetings=[m.to_dict() for m in package.meetings],
                drive_folder_id=package.drive_folder_id,
            )
        )
        await self._session.execute(stmt)


def _row_to_package(row: PackageRow) -> Package:
    return Package(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        name=row.name,
        price=row.price,
        currency=row.currency,
        meetings=tuple(
            MeetingRecord.from_dict(m, position=i)
            for i, m in enumerate(row.meetings or [])
            if isinstance(m, dict) and m.get("meetingId")
        ),
        drive_folder_id=row.drive_folder_id,
        created_at=row.created_at,
    )
