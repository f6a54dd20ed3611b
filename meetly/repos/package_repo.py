from __future__ import annotations

from typing import Protocol
from uuid import UUID

from meetly.models.package import Package


class PackageRepo(Protocol):
    async def get(self, package_id: UUID) -> Package | None: ...
    async def get_by_event(self, event_id: UUID) -> Package | None: ...
    async def add(self, package: Package) -> None: ...
    async def update(self, package: Package) -> None: ...


class InMemoryPackageRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Package] = {}

    async def get(self, package_id: UUID) -> Package | None:
        return self._by_id.get(package_id)

    async def get_by_event(self, event_id: UUID) -> Package | None:
        return next((p for p in self._by_id.values() if p.event_id == event_id), None)

    async def add(self, package: Package) -> None:
        # One package per event; the DB enforces the same with a unique key.
        if any(p.event_id == package.event_id for p in self._by_id.values()):
            raise ValueError("event already has a package")
        self._by_id[package.id] = package

    async def update(self, package: Package) -> None:
        if package.id not in self._by_id:
            raise KeyError("package not found")
        self._by_id[package.id] = package
