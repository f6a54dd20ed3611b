from __future__ import annotations

from typing import Protocol
from uuid import UUID

from meetly.models.event import Event


class EventRepo(Protocol):
    async def get(self, event_id: UUID) -> Event | None: ...
    async def get_owned(self, event_id: UUID, user_id: UUID) -> Event | None: ...
    async def count_by_user(self, user_id: UUID) -> int: ...
    async def list_by_user(self, user_id: UUID) -> list[Event]: ...
    async def add(self, event: Event) -> None: ...
    async def update(self, event: Event) -> None: ...
    async def delete_owned(self, event_id: UUID, user_id: UUID) -> bool: ...


class InMemoryEventRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Event] = {}

    async def get(self, event_id: UUID) -> Event | None:
        return self._by_id.get(event_id)

    async def get_owned(self, event_id: UUID, user_id: UUID) -> Event | None:
        e = self._by_id.get(event_id)
        if e is None or e.user_id != user_id:
            return None
        return e

    async def count_by_user(self, user_id: UUID) -> int:
        return sum(1 for e in self._by_id.values() if e.user_id == user_id)

    async def list_by_user(self, user_id: UUID) -> list[Event]:
        events = [e for e in reversed(self._by_id.values()) if e.user_id == user_id]
        return sorted(events, key=lambda e: e.created_at, reverse=True)

    async def add(self, event: Event) -> None:
        if event.id in self._by_id:
            raise ValueError("event already exists")
        self._by_id[event.id] = event

    async def update(self, event: Event) -> None:
        if event.id not in self._by_id:
            raise KeyError("event not found")
        self._by_id[event.id] = event

    async def delete_owned(self, event_id: UUID, user_id: UUID) -> bool:
        e = self._by_id.get(event_id)
        if e is None or e.user_id != user_id:
            return False
        del self._by_id[event_id]
        return True
