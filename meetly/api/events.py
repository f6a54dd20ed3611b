"""Event endpoints.

Creating or updating an event runs the package workflow: the response
carries the saved event, its package (if any), and a provisioning
summary listing every provider call that failed.  Those failures never
turn into an error status; the save itself succeeded.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from meetly.api.dependencies import (
    get_settings,
    get_store,
    get_workflow_context,
    require_user,
)
from meetly.api.schemas import (
    EventOut,
    OrganizationBriefOut,
    ProvisioningOut,
    UserBriefOut,
    event_out,
    organization_brief_out,
    provisioning_out,
    user_brief_out,
)
from meetly.content.blocks import parse_blocks
from meetly.core.config import Settings
from meetly.models.principal import Principal
from meetly.repos.store import Store
from meetly.services import entitlement_service, package_orchestrator
from meetly.services.package_orchestrator import SaveResult, WorkflowContext

router = APIRouter(prefix="/v1/events", tags=["events"])


# --- Pydantic schemas ---


class EventIn(BaseModel):
    content: dict[str, Any]
    organization_id: UUID | None = None


class EventUpdateIn(BaseModel):
    content: dict[str, Any]


class SaveOut(BaseModel):
    event: EventOut
    provisioning: ProvisioningOut


class EventViewOut(BaseModel):
    event: EventOut
    creator: UserBriefOut | None
    organization: OrganizationBriefOut | None


class BuyerOut(BaseModel):
    id: str
    name: str
    email: str


class EnrollmentOut(BaseModel):
    id: str
    status: str
    paid_at: str | None
    created_at: str
    buyer: BuyerOut | None


class EventEnrollmentsOut(BaseModel):
    package_name: str
    currency: str
    revenue: int
    paid_count: int
    enrollments: list[EnrollmentOut]


def _save_out(result: SaveResult) -> SaveOut:
    return SaveOut(
        event=event_out(result.event, result.package),
        provisioning=provisioning_out(result.report),
    )


# --- Endpoints ---


@router.get("/mine", response_model=list[EventOut])
async def list_my_events(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[EventOut]:
    """The caller's events, newest first, each with its package."""
    summaries = await package_orchestrator.list_my_events(store, principal.user_id)
    return [event_out(s.event, s.package) for s in summaries]


@router.post("", response_model=SaveOut, status_code=status.HTTP_201_CREATED)
async def create_event(
    body: EventIn,
    ctx: Annotated[WorkflowContext, Depends(get_workflow_context)],
) -> SaveOut:
    """Create an event and provision its package, if the content has one."""
    result = await package_orchestrator.create_event(
        ctx, parse_blocks(body.content.get("blocks")), body.organization_id
    )
    return _save_out(result)


@router.get("/{event_id}", response_model=EventViewOut)
async def get_event(
    event_id: UUID,
    store: Annotated[Store, Depends(get_store)],
) -> EventViewOut:
    """Public event page: event, package, creator and organization."""
    view = await package_orchestrator.get_event(store, event_id)
    return EventViewOut(
        event=event_out(view.event, view.package),
        creator=user_brief_out(view.creator) if view.creator else None,
        organization=(
            organization_brief_out(view.organization) if view.organization else None
        ),
    )


@router.put("/{event_id}", response_model=SaveOut)
async def update_event(
    event_id: UUID,
    body: EventUpdateIn,
    ctx: Annotated[WorkflowContext, Depends(get_workflow_context)],
) -> SaveOut:
    """Save new content and reconcile the package with it."""
    result = await package_orchestrator.update_event(
        ctx, event_id, parse_blocks(body.content.get("blocks"))
    )
    return _save_out(result)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> None:
    """Delete an event the caller owns."""
    await package_orchestrator.delete_event(store, principal, event_id)


@router.get("/{event_id}/enrollments", response_model=EventEnrollmentsOut)
async def list_enrollments(
    event_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> EventEnrollmentsOut:
    """Who bought this event's package.  Empty unless the caller owns it."""
    summary = await entitlement_service.enrollments_for_event(
        store, principal.user_id, event_id, default_currency=settings.currency
    )
    return EventEnrollmentsOut(
        package_name=summary.package_name,
        currency=summary.currency,
        revenue=summary.revenue,
        paid_count=summary.paid_count,
        enrollments=[
            EnrollmentOut(
                id=str(e.id),
                status=e.status,
                paid_at=e.paid_at.isoformat() if e.paid_at else None,
                created_at=e.created_at.isoformat(),
                buyer=(
                    BuyerOut(id=str(e.buyer.id), name=e.buyer.name, email=e.buyer.email)
                    if e.buyer
                    else None
                ),
            )
            for e in summary.enrollments
        ],
    )
