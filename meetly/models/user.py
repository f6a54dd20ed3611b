from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    email: str
    name: str = ""
    slug: str | None = None  # public profile path
    image: str | None = None
    email_verified: bool = False

    @staticmethod
    def new(
        *,
        email: str,
        name: str = "",
        slug: str | None = None,
        email_verified: bool = False,
    ) -> User:
        return User(
            id=uuid4(),
            email=email.strip().lower(),
            name=name.strip(),
            slug=slug,
            email_verified=email_verified,
        )
