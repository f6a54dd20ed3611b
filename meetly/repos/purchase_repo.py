from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from meetly.models.purchase import PAID, PackagePurchase


class PurchaseRepo(Protocol):
    async def get(self, purchase_id: UUID) -> PackagePurchase | None: ...
    async def add(self, purchase: PackagePurchase) -> None: ...
    async def find_paid(self, package_id: UUID, buyer_id: UUID) -> PackagePurchase | None: ...
    async def set_invoice_id(self, purchase_id: UUID, invoice_id: str | None) -> None: ...
    async def mark_paid(self, purchase_id: UUID, paid_at: datetime) -> bool: ...
    async def count_paid(self, package_id: UUID) -> int: ...
    async def list_by_package(self, package_id: UUID) -> list[PackagePurchase]: ...
    async def list_by_buyer(self, buyer_id: UUID) -> list[PackagePurchase]: ...


class InMemoryPurchaseRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, PackagePurchase] = {}

    async def get(self, purchase_id: UUID) -> PackagePurchase | None:
        return self._by_id.get(purchase_id)

    async def add(self, purchase: PackagePurchase) -> None:
        self._by_id[purchase.id] = purchase

    async def find_paid(self, package_id: UUID, buyer_id: UUID) -> PackagePurchase | None:
        return next(
            (
                p
                for p in self._by_id.values()
                if p.package_id == package_id and p.buyer_id == buyer_id and p.is_paid
            ),
            None,
        )

    async def set_invoice_id(self, purchase_id: UUID, invoice_id: str | None) -> None:
        p = self._by_id.get(purchase_id)
        if p is None:
            raise KeyError("purchase not found")
        self._by_id[purchase_id] = replace(p, invoice_id=invoice_id)

    async def mark_paid(self, purchase_id: UUID, paid_at: datetime) -> bool:
        # Unconditional: re-delivery rewrites the same terminal status.
        p = self._by_id.get(purchase_id)
        if p is None:
            return False
        self._by_id[purchase_id] = replace(p, status=PAID, paid_at=paid_at)
        return True

    async def count_paid(self, package_id: UUID) -> int:
        return sum(
            1 for p in self._by_id.values() if p.package_id == package_id and p.is_paid
        )

    async def list_by_package(self, package_id: UUID) -> list[PackagePurchase]:
        found = [p for p in reversed(self._by_id.values()) if p.package_id == package_id]
        return sorted(found, key=lambda p: p.created_at, reverse=True)

    async def list_by_buyer(self, buyer_id: UUID) -> list[PackagePurchase]:
        found = [p for p in reversed(self._by_id.values()) if p.buyer_id == buyer_id]
        return sorted(found, key=lambda p: p.created_at, reverse=True)
