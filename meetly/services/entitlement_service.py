"""Read-side queries over purchases: revenue, enrollments, buyer history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from meetly.core.config import SETTINGS
from meetly.models.event import Event
from meetly.models.package import Package
from meetly.models.purchase import PackagePurchase
from meetly.models.user import User
from meetly.repos.store import Store
from meetly.services.errors import PackageNotFoundError, PurchaseNotFoundError


@dataclass(frozen=True, slots=True)
class Revenue:
    total: int
    currency: str


@dataclass(frozen=True, slots=True)
class Enrollment:
    id: UUID
    status: str
    paid_at: datetime | None
    created_at: datetime
    buyer: User | None


@dataclass(frozen=True, slots=True)
class EventEnrollments:
    package_name: str
    currency: str
    revenue: int
    paid_count: int
    enrollments: list[Enrollment] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PurchaseView:
    purchase: PackagePurchase
    package: Package | None
    event: Event | None


@dataclass(frozen=True, slots=True)
class PackageView:
    package: Package
    event: Event | None
    creator: User | None


async def total_revenue(
    store: Store, user_id: UUID, *, default_currency: str = SETTINGS.currency
) -> Revenue:
    """Paid purchases × price, summed over the creator's events."""
    total = 0
    currency = default_currency
    for event in await store.events.list_by_user(user_id):
        package = await store.packages.get_by_event(event.id)
        if package is None:
            continue
        total += await store.purchases.count_paid(package.id) * package.price
        if package.currency:
            currency = package.currency
    return Revenue(total=total, currency=currency)


async def enrollments_for_event(
    store: Store,
    user_id: UUID,
    event_id: UUID,
    *,
    default_currency: str = SETTINGS.currency,
) -> EventEnrollments:
    empty = EventEnrollments(
        package_name="", currency=default_currency, revenue=0, paid_count=0
    )
    event = await store.events.get_owned(event_id, user_id)
    if event is None:
        return empty
    package = await store.packages.get_by_event(event.id)
    if package is None:
        return empty

    purchases = await store.purchases.list_by_package(package.id)
    paid_count = sum(1 for p in purchases if p.is_paid)
    enrollments = [
        Enrollment(
            id=p.id,
            status=p.status,
            paid_at=p.paid_at,
            created_at=p.created_at,
            buyer=await store.users.get_by_id(p.buyer_id),
        )
        for p in purchases
    ]
    return EventEnrollments(
        package_name=package.name,
        currency=package.currency,
        revenue=paid_count * package.price,
        paid_count=paid_count,
        enrollments=enrollments,
    )


async def _view(store: Store, purchase: PackagePurchase) -> PurchaseView:
    package = await store.packages.get(purchase.package_id)
    event = await store.events.get(package.event_id) if package else None
    return PurchaseView(purchase=purchase, package=package, event=event)


async def purchases_for_buyer(store: Store, buyer_id: UUID) -> list[PurchaseView]:
    return [await _view(store, p) for p in await store.purchases.list_by_buyer(buyer_id)]


async def purchase_for_buyer(
    store: Store, buyer_id: UUID, purchase_id: UUID
) -> PurchaseView:
    purchase = await store.purchases.get(purchase_id)
    if purchase is None or purchase.buyer_id != buyer_id:
        raise PurchaseNotFoundError()
    return await _view(store, purchase)


async def get_package(store: Store, package_id: UUID) -> PackageView:
    package = await store.packages.get(package_id)
    if package is None:
        raise PackageNotFoundError()
    return PackageView(
        package=package,
        event=await store.events.get(package.event_id),
        creator=await store.users.get_by_id(package.user_id),
    )
