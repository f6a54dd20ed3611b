from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from meetly.content.blocks import Block


@dataclass(frozen=True, slots=True)
class Event:
    id: UUID
    user_id: UUID
    title: str
    content: tuple[Block, ...] = ()
    image_url: str | None = None
    organization_id: UUID | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def new(
        *,
        user_id: UUID,
        title: str,
        content: tuple[Block, ...],
        image_url: str | None = None,
        organization_id: UUID | None = None,
    ) -> Event:
        return Event(
            id=uuid4(),
            user_id=user_id,
            title=title,
            content=content,
            image_url=image_url,
            organization_id=organization_id,
        )
