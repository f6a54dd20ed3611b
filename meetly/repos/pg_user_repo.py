"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.db.tables import UserRow
from meetly.models.user import User


class PgUserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _one(self, stmt) -> User | None:
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_user(row) if row is not None else None

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self._one(select(UserRow).where(UserRow.id == user_id))

    async def get_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        return await self._one(select(UserRow).where(UserRow.email == email))

    async def get_by_slug(self, slug: str) -> User | None:
        return await self._one(select(UserRow).where(UserRow.slug == slug))

    async def add(self, user: User) -> None:
        self._session.add(
            UserRow(
                id=user.id,
                email=user.email,
                name=user.name,
                slug=user.slug,
                image=user.image,
                email_verified=user.email_verified,
            )
        )
        await self._session.flush()

    async def update_slug(self, user_id: UUID, slug: str | None) -> User | None:
        stmt = update(UserRow).where(UserRow.id == user_id).values(slug=slug)
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_id(user_id)


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name or "",
        slug=row.slug,
        image=row.image,
        email_verified=row.email_verified,
    )
