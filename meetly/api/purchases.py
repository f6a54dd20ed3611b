"""Buyer purchases and creator revenue."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from meetly.api.dependencies import get_settings, get_store, require_user
from meetly.api.schemas import PackageOut, package_out
from meetly.core.config import Settings
from meetly.models.principal import Principal
from meetly.repos.store import Store
from meetly.services import entitlement_service
from meetly.services.entitlement_service import PurchaseView

router = APIRouter(prefix="/v1", tags=["purchases"])


class PurchaseOut(BaseModel):
    id: str
    status: str
    paid_at: str | None
    created_at: str
    package: PackageOut | None
    event_id: str | None
    event_title: str | None


class RevenueOut(BaseModel):
    total: int
    currency: str


def _purchase_out(view: PurchaseView) -> PurchaseOut:
    purchase = view.purchase
    return PurchaseOut(
        id=str(purchase.id),
        status=purchase.status,
        paid_at=purchase.paid_at.isoformat() if purchase.paid_at else None,
        created_at=purchase.created_at.isoformat(),
        package=package_out(view.package) if view.package else None,
        event_id=str(view.event.id) if view.event else None,
        event_title=view.event.title if view.event else None,
    )


@router.get("/purchases", response_model=list[PurchaseOut])
async def list_purchases(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[PurchaseOut]:
    """The caller's purchases, newest first."""
    views = await entitlement_service.purchases_for_buyer(store, principal.user_id)
    return [_purchase_out(v) for v in views]


@router.get("/purchases/{purchase_id}", response_model=PurchaseOut)
async def get_purchase(
    purchase_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> PurchaseOut:
    view = await entitlement_service.purchase_for_buyer(
        store, principal.user_id, purchase_id
    )
    return _purchase_out(view)


@router.get("/revenue", response_model=RevenueOut)
async def get_revenue(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RevenueOut:
    """Paid revenue across all of the caller's packages."""
    revenue = await entitlement_service.total_revenue(
        store, principal.user_id, default_currency=settings.currency
    )
    return RevenueOut(total=revenue.total, currency=revenue.currency)
