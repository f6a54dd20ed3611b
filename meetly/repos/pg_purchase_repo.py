"""PostgreSQL implementation of PurchaseRepo."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.db.tables import PackagePurchaseRow
from meetly.models.purchase import PAID, PackagePurchase


class PgPurchaseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, purchase_id: UUID) -> PackagePurchase | None:
        row = await self._session.get(PackagePurchaseRow, purchase_id)
        return _row_to_purchase(row) if row is not None else None

    async def add(self, purchase: PackagePurchase) -> None:
        self._session.add(
            PackagePurchaseRow(
                id=purchase.id,
                package_id=purchase.package_id,
                buyer_id=purchase.buyer_id,
                status=purchase.status,
                paid_at=purchase.paid_at,
                invoice_id=purchase.invoice_id,
                created_at=purchase.created_at,
            )
        )
        await self._session.flush()

    async def find_paid(self, package_id: UUID, buyer_id: UUID) -> PackagePurchase | None:
        stmt = (
            select(PackagePurchaseRow)
            .where(
                PackagePurchaseRow.package_id == package_id,
                PackagePurchaseRow.buyer_id == buyer_id,
                PackagePurchaseRow.status == PAID,
            )
            .limit(1)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_purchase(row) if row is not None else None

    async def set_invoice_id(self, purchase_id: UUID, invoice_id: str | None) -> None:
        stmt = (
            update(PackagePurchaseRow)
            .where(PackagePurchaseRow.id == purchase_id)
            .values(invoice_id=invoice_id)
        )
        await self._session.execute(stmt)

    async def mark_paid(self, purchase_id: UUID, paid_at: datetime) -> bool:
        stmt = (
            update(PackagePurchaseRow)
            .where(PackagePurchaseRow.id == purchase_id)
            .values(status=PAID, paid_at=paid_at)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def count_paid(self, package_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(PackagePurchaseRow)
            .where(
                PackagePurchaseRow.package_id == package_id,
                PackagePurchaseRow.status == PAID,
            )
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def _list(self, *criteria) -> list[PackagePurchase]:
        stmt = (
            select(PackagePurchaseRow)
            .where(*criteria)
            .order_by(PackagePurchaseRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_purchase(r) for r in rows]

    async def list_by_package(self, package_id: UUID) -> list[PackagePurchase]:
        return await self._list(PackagePurchaseRow.package_id == package_id)

    async def list_by_buyer(self, buyer_id: UUID) -> list[PackagePurchase]:
        return await self._list(PackagePurchaseRow.buyer_id == buyer_id)


def _row_to_purchase(row: PackagePurchaseRow) -> PackagePurchase:
    return PackagePurchase(
        id=row.id,
        package_id=row.package_id,
        buyer_id=row.buyer_id,
        status=row.status,
        paid_at=row.paid_at,
        invoice_id=row.invoice_id,
        created_at=row.created_at,
    )
