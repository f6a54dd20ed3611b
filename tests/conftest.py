from __future__ import annotations

import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import meetly` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from meetly.api import dependencies  # noqa: E402
from meetly.api.ratelimit import rate_limiter  # noqa: E402
from meetly.core.config import SETTINGS, Settings  # noqa: E402
from meetly.main import app  # noqa: E402
from meetly.models.principal import Principal  # noqa: E402
from meetly.models.user import User  # noqa: E402
from meetly.providers.calendar import InMemoryCalendarProvider  # noqa: E402
from meetly.providers.drive import InMemoryDriveProvider  # noqa: E402
from meetly.repos.store import (  # noqa: E402
    Store,
    in_memory_store,
    new_in_memory_store,
    reset_in_memory_store,
)
from meetly.services import token_service  # noqa: E402
from meetly.services.package_orchestrator import WorkflowContext  # noqa: E402


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Fresh in-memory repos for every test."""
    reset_in_memory_store()


@pytest.fixture(autouse=True)
def reset_fake_providers() -> None:
    """Clear fake calendar, drive and invoice state between tests."""
    dependencies.fake_meetings.reset()
    dependencies.fake_folders.reset()
    dependencies.fake_invoices.reset()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit buckets between tests so limits don't bleed."""
    if hasattr(rate_limiter, "_buckets"):
        rate_limiter._buckets.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------


def add_user(email: str = "creator@example.com", name: str = "Creator", **kw: Any) -> User:
    """Create and persist a user in the app's in-memory store."""
    user = User.new(email=email, name=name, **kw)
    asyncio.run(in_memory_store().users.add(user))
    return user


def mint_token(user: User, roles: list[str] | None = None) -> str:
    """Create a valid ES256 JWT for ``user``."""
    return token_service.create_access_token(
        sub=str(user.id), email=user.email, name=user.name, roles=roles
    )


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user)}"}


@pytest.fixture
def creator() -> User:
    return add_user("creator@example.com", "Creator")


@pytest.fixture
def buyer() -> User:
    return add_user("buyer@example.com", "Buyer")


# ---------------------------------------------------------------------------
# Service helpers
# ---------------------------------------------------------------------------


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, email=user.email, name=user.name)


def package_block(
    name: str = "Mentoring",
    price: Any = 100000,
    meetings: list[dict[str, Any]] | None = None,
    folder: dict[str, Any] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """A raw editor package block."""
    data: dict[str, Any] = {"name": name, "price": price, **extra}
    if meetings is not None:
        data["meetings"] = meetings
    if folder is not None:
        data["driveFolder"] = folder
    return {"id": "pkg", "type": "package", "data": data}


def header_block(text: str) -> dict[str, Any]:
    return {"id": "h1", "type": "header", "data": {"text": text, "level": 1}}


def meeting(start: str, timezone: str = "UTC", *emails: str, **extra: Any) -> dict[str, Any]:
    return {"startDate": start, "timezone": timezone, "speakerEmails": list(emails), **extra}


@pytest.fixture
def settings() -> Settings:
    return replace(SETTINGS, app_base_url="https://meetly.test")


@pytest.fixture
def store() -> Store:
    return new_in_memory_store()


@pytest.fixture
def calendar() -> InMemoryCalendarProvider:
    return InMemoryCalendarProvider()


@pytest.fixture
def drive() -> InMemoryDriveProvider:
    return InMemoryDriveProvider()


@pytest.fixture
def owner(store: Store) -> User:
    user = User.new(email="owner@example.com", name="Owner")
    asyncio.run(store.users.add(user))
    return user


@pytest.fixture
def ctx(
    store: Store,
    calendar: InMemoryCalendarProvider,
    drive: InMemoryDriveProvider,
    settings: Settings,
    owner: User,
) -> WorkflowContext:
    return WorkflowContext(
        principal=principal_for(owner),
        store=store,
        meetings=calendar,
        folders=drive,
        settings=settings,
    )
