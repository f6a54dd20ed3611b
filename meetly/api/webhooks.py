"""Payment provider webhook.

Xendit calls this when an invoice changes state, sending the shared
callback token in ``x-callback-token``.  Responses use the ``error`` /
``received`` body shape the provider's dashboard displays.
"""

from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from meetly.api.dependencies import (
    Integrations,
    get_integrations,
    get_settings,
    get_store,
)
from meetly.core.config import Settings
from meetly.core.metrics import SETTLEMENTS
from meetly.repos.store import Store
from meetly.services.settlement_service import NOT_FOUND, settle_invoice_notification

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


def _token_matches(received: str | None, expected: str) -> bool:
    return hmac.compare_digest((received or "").encode(), expected.encode())


@router.post("/api/xendit")
async def xendit_webhook(
    request: Request,
    store: Annotated[Store, Depends(get_store)],
    integrations: Annotated[Integrations, Depends(get_integrations)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JSONResponse:
    """Settle a paid invoice and grant the buyer access."""
    expected = settings.xendit_webhook_token
    # No token configured means verification is off (local dev).
    if expected and not _token_matches(request.headers.get("x-callback-token"), expected):
        SETTLEMENTS.labels(outcome="unauthorized").inc()
        logger.warning("Webhook rejected: callback token mismatch")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Unauthorized"},
        )

    try:
        notification = await request.json()
        result = await settle_invoice_notification(
            store,
            integrations.meetings,
            integrations.folders,
            settings,
            notification,
        )
    except Exception:
        SETTLEMENTS.labels(outcome="error").inc()
        logger.exception("Webhook processing failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    if result.status == NOT_FOUND:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Purchase not found"},
        )
    return JSONResponse(content={"received": True})
