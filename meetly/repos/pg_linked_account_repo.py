"""PostgreSQL implementation of LinkedAccountRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.db.tables import LinkedAccountRow
from meetly.models.linked_account import LinkedAccount


class PgLinkedAccountRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_user(self, user_id: UUID, provider: str) -> LinkedAccount | None:
        stmt = select(LinkedAccountRow).where(
            LinkedAccountRow.user_id == user_id,
            LinkedAccountRow.provider == provider,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return LinkedAccount(
            id=row.id,
            user_id=row.user_id,
            provider=row.provider,
            access_token=row.access_token,
            refresh_token=row.refresh_token,
            scope=row.scope or "",
        )

    async def add(self, account: LinkedAccount) -> None:
        self._session.add(
            LinkedAccountRow(
                id=account.id,
                user_id=account.user_id,
                provider=account.provider,
                access_token=account.access_token,
                refresh_token=account.refresh_token,
                scope=account.scope,
            )
        )
        await self._session.flush()

    async def update_tokens(
        self, account_id: UUID, access_token: str, refresh_token: str | None = None
    ) -> None:
        values: dict[str, str] = {"access_token": access_token}
        if refresh_token:
            values["refresh_token"] = refresh_token
        stmt = (
            update(LinkedAccountRow)
            .where(LinkedAccountRow.id == account_id)
            .values(**values)
        )
        await self._session.execute(stmt)
