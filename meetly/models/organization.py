from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Organization:
    id: UUID
    name: str
    owner_id: UUID
    logo_url: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def new(*, name: str, owner_id: UUID, logo_url: str | None = None) -> Organization:
        return Organization(id=uuid4(), name=name, owner_id=owner_id, logo_url=logo_url)


@dataclass(frozen=True, slots=True)
class OrganizationMembership:
    """Invitation/approval record.

    An invite is addressed to an email; user_id stays None until the
    invitee responds, at which point the membership is claimed.
    """

    id: UUID
    organization_id: UUID
    email: str
    role: str = "member"  # owner|admin|member
    status: str = "pending"  # pending|approved|rejected
    user_id: UUID | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def new(
        *,
        organization_id: UUID,
        email: str,
        role: str = "member",
        status: str = "pending",
        user_id: UUID | None = None,
    ) -> OrganizationMembership:
        return OrganizationMembership(
            id=uuid4(),
            organization_id=organization_id,
            email=email.strip().lower(),
            role=role,
            status=status,
            user_id=user_id,
        )

    def addressed_to(self, user_id: UUID, email: str) -> bool:
        if self.user_id is not None:
            return self.user_id == user_id
        return self.email == email.strip().lower()
