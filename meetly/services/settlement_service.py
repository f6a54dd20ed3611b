"""Payment settlement: invoice notification → paid purchase → access.

The webhook handler verifies the callback token and hands the parsed
body here.  Marking the purchase paid is unconditional, so a redelivered
notification rewrites the same state and re-runs the grants (the
providers tolerate a repeated invite).  Grants run as the creator: the
buyer is added to every stored meeting and given read access to the
package folder.  A failed grant is logged and skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from meetly.core.config import Settings
from meetly.core.metrics import SETTLEMENTS
from meetly.models.package import Package
from meetly.providers.base import (
    FolderProvider,
    MeetingProvider,
    ProvisioningReport,
    attempt,
)
from meetly.repos.store import Store

logger = logging.getLogger(__name__)

PAID_STATUS = "PAID"

IGNORED = "ignored"
SETTLED = "settled"
NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class SettlementResult:
    status: str  # ignored|settled|not_found
    purchase_id: UUID | None = None
    report: ProvisioningReport | None = None


def purchase_id_from_external_id(external_id: str, prefix: str) -> str:
    """Strip our prefix; ids without it are used as-is."""
    if prefix and external_id.startswith(prefix):
        return external_id[len(prefix):]
    return external_id


async def _grant_access(
    meetings: MeetingProvider,
    folders: FolderProvider,
    package: Package,
    buyer_email: str,
    report: ProvisioningReport,
) -> None:
    creator_id = package.user_id
    for meeting in package.meetings:
        await attempt(
            report,
            "add_invitee",
            meeting.meeting_id,
            meetings.add_invitee(creator_id, meeting.meeting_id, buyer_email),
        )
    if package.drive_folder_id:
        await attempt(
            report,
            "share_folder",
            package.drive_folder_id,
            folders.share_folder(creator_id, package.drive_folder_id, buyer_email, "reader"),
        )


async def settle_invoice_notification(
    store: Store,
    meetings: MeetingProvider,
    folders: FolderProvider,
    settings: Settings,
    notification: Mapping[str, Any],
) -> SettlementResult:
    status = notification.get("status")
    external_id = notification.get("external_id")
    if status != PAID_STATUS or not isinstance(external_id, str) or not external_id:
        SETTLEMENTS.labels(outcome=IGNORED).inc()
        logger.debug("Notification ignored status=%s", status)
        return SettlementResult(status=IGNORED)

    raw_id = purchase_id_from_external_id(external_id, settings.external_id_prefix)
    try:
        purchase_id = UUID(raw_id)
    except ValueError:
        purchase_id = None

    purchase = await store.purchases.get(purchase_id) if purchase_id else None
    package = await store.packages.get(purchase.package_id) if purchase else None
    buyer = await store.users.get_by_id(purchase.buyer_id) if purchase else None
    if purchase is None or package is None or buyer is None:
        SETTLEMENTS.labels(outcome=NOT_FOUND).inc()
        logger.warning("Settlement for unknown purchase external_id=%s", external_id)
        return SettlementResult(status=NOT_FOUND)

    await store.purchases.mark_paid(purchase.id, datetime.now(UTC))

    report = ProvisioningReport()
    await _grant_access(meetings, folders, package, buyer.email, report)

    SETTLEMENTS.labels(outcome=SETTLED).inc()
    logger.info(
        "Purchase settled id=%s package=%s grants=%s",
        purchase.id,
        package.id,
        report.summary(),
        extra={
            "purchase_id": str(purchase.id),
            "package_id": str(package.id),
            "operation": "settle",
            "outcome": "ok" if report.ok else "partial",
        },
    )
    return SettlementResult(status=SETTLED, purchase_id=purchase.id, report=report)
