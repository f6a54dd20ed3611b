from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class LinkedAccount:
    """A user's delegated OAuth grant to an external provider.

    The calendar and storage clients act as this user: every meeting and
    folder is created in the creator's own account.
    """

    id: UUID
    user_id: UUID
    provider: str  # google
    access_token: str | None
    refresh_token: str | None = None
    scope: str = ""  # space-separated, as granted

    @staticmethod
    def new(
        *,
        user_id: UUID,
        provider: str,
        access_token: str | None,
        refresh_token: str | None = None,
        scope: str = "",
    ) -> LinkedAccount:
        return LinkedAccount(
            id=uuid4(),
            user_id=user_id,
            provider=provider,
            access_token=access_token,
            refresh_token=refresh_token,
            scope=scope,
        )

    def has_scope(self, scope: str) -> bool:
        return scope in self.scope.split()
