from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from meetly.models.linked_account import LinkedAccount


class LinkedAccountRepo(Protocol):
    async def get_for_user(self, user_id: UUID, provider: str) -> LinkedAccount | None: ...
    async def add(self, account: LinkedAccount) -> None: ...
    async def update_tokens(
        self, account_id: UUID, access_token: str, refresh_token: str | None = None
    ) -> None: ...


class InMemoryLinkedAccountRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, LinkedAccount] = {}

    async def get_for_user(self, user_id: UUID, provider: str) -> LinkedAccount | None:
        return next(
            (
                a
                for a in self._by_id.values()
                if a.user_id == user_id and a.provider == provider
            ),
            None,
        )

    async def add(self, account: LinkedAccount) -> None:
        self._by_id[account.id] = account

    async def update_tokens(
        self, account_id: UUID, access_token: str, refresh_token: str | None = None
    ) -> None:
        a = self._by_id.get(account_id)
        if a is None:
            raise KeyError("linked account not found")
        # A refresh response only carries a new refresh token when rotated.
        self._by_id[account_id] = replace(
            a,
            access_token=access_token,
            refresh_token=refresh_token or a.refresh_token,
        )
