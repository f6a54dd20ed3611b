from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller, extracted from a validated JWT.

    Passed explicitly into every workflow; nothing reads the current user
    from ambient state.
    """

    user_id: UUID
    email: str
    name: str = ""
    roles: frozenset[str] = frozenset()

    def has_role(self, role: str) -> bool:
        return role in self.roles
