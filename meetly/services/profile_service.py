"""Public creator profiles addressed by slug."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from uuid import UUID

from meetly.models.user import User
from meetly.repos.store import Store
from meetly.services.errors import (
    ProfileNotFoundError,
    ProfileValidationError,
    SlugTakenError,
)
from meetly.services.package_orchestrator import EventSummary, list_my_events

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_MIN_LENGTH = 2
SLUG_MAX_LENGTH = 30


@dataclass(frozen=True, slots=True)
class Profile:
    user: User
    events: list[EventSummary]


def validate_slug(slug: str) -> str | None:
    """Return the slug to store, or None for an empty string (clears it)."""
    if slug == "":
        return None
    if not SLUG_MIN_LENGTH <= len(slug) <= SLUG_MAX_LENGTH:
        raise ProfileValidationError(
            f"Slug must be {SLUG_MIN_LENGTH}-{SLUG_MAX_LENGTH} characters"
        )
    if not SLUG_PATTERN.match(slug):
        raise ProfileValidationError(
            "Slug can only contain lowercase letters, numbers, and hyphens"
        )
    return slug


async def get_by_slug(store: Store, slug: str) -> Profile:
    user = await store.users.get_by_slug(slug)
    if user is None:
        raise ProfileNotFoundError()
    return Profile(user=user, events=await list_my_events(store, user.id))


async def get_me(store: Store, user_id: UUID) -> User:
    user = await store.users.get_by_id(user_id)
    if user is None:
        raise ProfileNotFoundError()
    return user


async def update_slug(store: Store, user_id: UUID, slug: str) -> User:
    value = validate_slug(slug)
    if value is not None:
        holder = await store.users.get_by_slug(value)
        if holder is not None and holder.id != user_id:
            raise SlugTakenError()

    user = await store.users.update_slug(user_id, value)
    if user is None:
        raise ProfileNotFoundError()
    logger.info("Profile slug updated user=%s slug=%s", user_id, value)
    return user
