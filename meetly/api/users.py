"""Profiles: the caller's own account and public pages by slug."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from meetly.api.dependencies import get_store, require_user
from meetly.api.schemas import EventOut, UserBriefOut, event_out, user_brief_out
from meetly.models.principal import Principal
from meetly.repos.store import Store
from meetly.services import profile_service

router = APIRouter(prefix="/v1/users", tags=["users"])


class ProfileUpdateIn(BaseModel):
    slug: str


class ProfileOut(BaseModel):
    user: UserBriefOut
    events: list[EventOut]


@router.get("/me", response_model=UserBriefOut)
async def get_me(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> UserBriefOut:
    user = await profile_service.get_me(store, principal.user_id)
    return user_brief_out(user)


@router.patch("/me", response_model=UserBriefOut)
async def update_me(
    body: ProfileUpdateIn,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> UserBriefOut:
    """Set the public profile slug.  An empty string clears it."""
    user = await profile_service.update_slug(store, principal.user_id, body.slug)
    return user_brief_out(user)


@router.get("/{slug}", response_model=ProfileOut)
async def get_profile(
    slug: str,
    store: Annotated[Store, Depends(get_store)],
) -> ProfileOut:
    """Public profile: the user and their events, newest first."""
    profile = await profile_service.get_by_slug(store, slug)
    return ProfileOut(
        user=user_brief_out(profile.user),
        events=[event_out(s.event, s.package) for s in profile.events],
    )
