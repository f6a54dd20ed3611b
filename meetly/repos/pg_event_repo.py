"""PostgreSQL implementation of EventRepo.

Content is stored as ``{"blocks": [...]}``, the editor's output shape.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.content.blocks import blocks_to_dicts, parse_blocks
from meetly.db.tables import EventRow
from meetly.models.event import Event


class PgEventRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, event_id: UUID) -> Event | None:
        row = await self._session.get(EventRow, event_id)
        return _row_to_event(row) if row is not None else None

    async def get_owned(self, event_id: UUID, user_id: UUID) -> Event | None:
        stmt = select(EventRow).where(EventRow.id == event_id, EventRow.user_id == user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_event(row) if row is not None else None

    async def count_by_user(self, user_id: UUID) -> int:
        stmt = select(func.count()).select_from(EventRow).where(EventRow.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def list_by_user(self, user_id: UUID) -> list[Event]:
        stmt = (
            select(EventRow)
            .where(EventRow.user_id == user_id)
            .order_by(EventRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_event(r) for r in rows]

    async def add(self, event: Event) -> None:
        self._session.add(
            EventRow(
                id=event.id,
                user_id=event.user_id,
                organization_id=event.organization_id,
                title=event.title,
                image_url=event.image_url,
                content={"blocks": blocks_to_dicts(event.content)},
                created_at=event.created_at,
            )
        )
        await self._session.flush()

    async def update(self, event: Event) -> None:
        stmt = (
            update(EventRow)
            .where(EventRow.id == event.id)
            .values(
                title=event.title,
                image_url=event.image_url,
                content={"blocks": blocks_to_dicts(event.content)},
            )
        )
        await self._session.execute(stmt)

    async def delete_owned(self, event_id: UUID, user_id: UUID) -> bool:
        stmt = delete(EventRow).where(EventRow.id == event_id, EventRow.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0


def _row_to_event(row: EventRow) -> Event:
    content = row.content if isinstance(row.content, dict) else {}
    return Event(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        content=parse_blocks(content.get("blocks")),
        image_url=row.image_url,
        organization_id=row.organization_id,
        created_at=row.created_at,
    )
