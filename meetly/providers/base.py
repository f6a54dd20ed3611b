"""Capability interfaces for the calendar and storage providers.

The workflows depend only on these Protocols.  Each operation runs as a
specific application user (the creator), who must have delegated the
relevant OAuth scope beforehand.

Every failure surfaces as a ProvisioningError subclass.  The workflows
never let one escape: each call goes through ``attempt``, which turns it
into a ProvisioningOutcome and moves on to the next sibling operation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from meetly.core.metrics import PROVISIONING_OPERATIONS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ProvisioningError(Exception):
    """Base class for calendar/storage provider failures."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class DelegationError(ProvisioningError):
    """The user has not linked an account or not granted the needed scope."""


class ProviderError(ProvisioningError):
    """Network, rate-limit, not-found or other upstream failure."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(provider, message)
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.status_code in (404, 410)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScheduledMeeting:
    meeting_id: str
    join_link: str
    start: str


@dataclass(frozen=True, slots=True)
class Folder:
    folder_id: str
    folder_name: str


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------


@runtime_checkable
class MeetingProvider(Protocol):
    async def schedule_meeting(
        self,
        user_id: UUID,
        start: str,
        timezone: str,
        title: str,
        duration_minutes: int = 60,
    ) -> ScheduledMeeting: ...

    async def reschedule_meeting(
        self,
        user_id: UUID,
        meeting_id: str,
        start: str,
        timezone: str,
        title: str,
        duration_minutes: int = 60,
    ) -> None: ...

    async def cancel_meeting(self, user_id: UUID, meeting_id: str) -> None: ...

    async def add_invitee(self, user_id: UUID, meeting_id: str, email: str) -> None: ...


@runtime_checkable
class FolderProvider(Protocol):
    async def find_or_create_folder(self, user_id: UUID, name: str) -> Folder: ...

    async def share_folder(
        self, user_id: UUID, folder_id: str, email: str, role: str = "reader"
    ) -> None: ...


# ---------------------------------------------------------------------------
# Outcome collection
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProvisioningOutcome:
    operation: str
    target: str
    ok: bool
    detail: str = ""
    value: Any = field(default=None, compare=False, repr=False)


@dataclass
class ProvisioningReport:
    """Per-workflow list of provider call outcomes."""

    outcomes: list[ProvisioningOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[ProvisioningOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def count(self, operation: str, *, ok: bool | None = None) -> int:
        return sum(
            1
            for o in self.outcomes
            if o.operation == operation and (ok is None or o.ok == ok)
        )

    def summary(self) -> str:
        return f"{len(self.outcomes) - len(self.failures)}/{len(self.outcomes)} ok"


async def attempt(
    report: ProvisioningReport,
    operation: str,
    target: str,
    call: Awaitable[Any],
) -> ProvisioningOutcome:
    """Await one provider call and record its outcome.  Never raises.

    The call's return value is on ``outcome.value`` when ``outcome.ok``.
    """
    try:
        result = await call
    except ProvisioningError as e:
        logger.warning(
            "%s failed for %s: %s",
            operation,
            target,
            e,
            extra={"operation": operation, "outcome": "failed"},
        )
        outcome = ProvisioningOutcome(operation, target, ok=False, detail=str(e))
    except Exception as e:
        logger.exception(
            "%s raised unexpectedly for %s",
            operation,
            target,
            extra={"operation": operation, "outcome": "failed"},
        )
        outcome = ProvisioningOutcome(operation, target, ok=False, detail=repr(e))
    else:
        outcome = ProvisioningOutcome(operation, target, ok=True, value=result)

    report.outcomes.append(outcome)
    PROVISIONING_OPERATIONS.labels(
        operation=operation, outcome="ok" if outcome.ok else "failed"
    ).inc()
    return outcome
