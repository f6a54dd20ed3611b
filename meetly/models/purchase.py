from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

PENDING = "pending"
PAID = "paid"


@dataclass(frozen=True, slots=True)
class PackagePurchase:
    """One buyer's transaction against one package.

    pending → paid happens once, in the settlement webhook.  Purchases are
    never deleted and never leave paid.
    """

    id: UUID
    package_id: UUID
    buyer_id: UUID
    status: str = PENDING  # pending|paid
    paid_at: datetime | None = None
    invoice_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def new(*, package_id: UUID, buyer_id: UUID) -> PackagePurchase:
        return PackagePurchase(id=uuid4(), package_id=package_id, buyer_id=buyer_id)

    @property
    def is_paid(self) -> bool:
        return self.status == PAID
