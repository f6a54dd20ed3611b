from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from meetly.models.user import User


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def get_by_slug(self, slug: str) -> User | None: ...
    async def add(self, user: User) -> None: ...
    async def update_slug(self, user_id: UUID, slug: str | None) -> User | None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, User] = {}

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        return next((u for u in self._by_id.values() if u.email == email), None)

    async def get_by_slug(self, slug: str) -> User | None:
        return next((u for u in self._by_id.values() if u.slug == slug), None)

    async def add(self, user: User) -> None:
        if any(u.email == user.email for u in self._by_id.values()):
            raise ValueError("email already exists")
        self._by_id[user.id] = user

    async def update_slug(self, user_id: UUID, slug: str | None) -> User | None:
        u = self._by_id.get(user_id)
        if u is None:
            return None
        updated = replace(u, slug=slug)
        self._by_id[user_id] = updated
        return updated
