"""Package endpoints: public view, provider scopes, and enrollment."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr

from meetly.api.dependencies import (
    Integrations,
    get_integrations,
    get_settings,
    get_store,
    optional_user,
    require_user,
)
from meetly.api.ratelimit import require_rate_limit
from meetly.api.schemas import (
    EventOut,
    PackageOut,
    UserBriefOut,
    event_out,
    package_out,
    user_brief_out,
)
from meetly.core.config import Settings
from meetly.models.principal import Principal
from meetly.payments.invoices import InvoiceError
from meetly.providers.google_auth import granted_scopes
from meetly.repos.store import Store
from meetly.services import enrollment_service, entitlement_service
from meetly.services.enrollment_service import EnrollmentResult
from meetly.services.rate_limiter import ENROLL_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/packages", tags=["packages"])


# --- Pydantic schemas ---


class ScopesOut(BaseModel):
    has_calendar_scope: bool
    has_drive_scope: bool


class PackageViewOut(BaseModel):
    package: PackageOut
    event: EventOut | None
    creator: UserBriefOut | None


class GuestEnrollIn(BaseModel):
    name: str | None = None
    email: EmailStr | None = None


class EnrollmentOut(BaseModel):
    purchase_id: str
    invoice_url: str | None


def _enrollment_out(result: EnrollmentResult) -> EnrollmentOut:
    return EnrollmentOut(
        purchase_id=str(result.purchase_id), invoice_url=result.invoice_url
    )


def _invoice_failed(package_id: UUID, exc: InvoiceError) -> JSONResponse:
    # Returned rather than raised: the pending purchase row is kept.
    logger.error("Invoice creation failed package=%s: %s", package_id, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Payment provider unavailable"},
    )


# --- Endpoints ---


@router.get("/scopes", response_model=ScopesOut)
async def get_scopes(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> ScopesOut:
    """Whether the caller has delegated calendar and drive access."""
    scopes = await granted_scopes(store.linked_accounts, principal.user_id)
    return ScopesOut(
        has_calendar_scope=scopes.has_calendar_scope,
        has_drive_scope=scopes.has_drive_scope,
    )


@router.get("/{package_id}", response_model=PackageViewOut)
async def get_package(
    package_id: UUID,
    store: Annotated[Store, Depends(get_store)],
) -> PackageViewOut:
    """Public package view with its event and creator."""
    view = await entitlement_service.get_package(store, package_id)
    return PackageViewOut(
        package=package_out(view.package),
        event=event_out(view.event) if view.event else None,
        creator=user_brief_out(view.creator) if view.creator else None,
    )


@router.post(
    "/{package_id}/purchase",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def purchase_package(
    package_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    integrations: Annotated[Integrations, Depends(get_integrations)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Open a purchase for the signed-in caller and return the invoice URL."""
    try:
        result = await enrollment_service.enroll(
            store,
            integrations.invoices,
            settings,
            package_id=package_id,
            buyer_id=principal.user_id,
            payer_email=principal.email,
        )
    except InvoiceError as e:
        return _invoice_failed(package_id, e)
    return _enrollment_out(result)


@router.post(
    "/{package_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit(ENROLL_LIMIT, scope="enroll"))],
)
async def enroll(
    package_id: UUID,
    body: GuestEnrollIn,
    principal: Annotated[Principal | None, Depends(optional_user)],
    store: Annotated[Store, Depends(get_store)],
    integrations: Annotated[Integrations, Depends(get_integrations)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Enroll without an account (name and email) or as the signed-in user."""
    try:
        result = await enrollment_service.enroll_guest(
            store,
            integrations.invoices,
            settings,
            package_id=package_id,
            principal=principal,
            name=body.name,
            email=body.email,
        )
    except InvoiceError as e:
        return _invoice_failed(package_id, e)
    return _enrollment_out(result)
