from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from meetly.core.config import SETTINGS, Settings
from meetly.db import engine as db
from meetly.models.principal import Principal
from meetly.payments.invoices import (
    InMemoryInvoiceClient,
    InvoiceClient,
    ProxyInvoiceClient,
    XenditInvoiceClient,
)
from meetly.providers import http
from meetly.providers.base import FolderProvider, MeetingProvider
from meetly.providers.calendar import GoogleCalendarClient, InMemoryCalendarProvider
from meetly.providers.drive import GoogleDriveClient, InMemoryDriveProvider
from meetly.providers.google_auth import GoogleCredentials
from meetly.repos.store import Store, in_memory_store, pg_store
from meetly.services import token_service
from meetly.services.errors import Category, DomainError
from meetly.services.package_orchestrator import WorkflowContext

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _principal_from_token(raw_token: str) -> Principal:
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    try:
        user_id = UUID(claims["sub"])
    except ValueError:
        logger.warning("Token subject is not a user id: %r", claims["sub"])
        raise _unauthorized("Invalid token") from None

    principal = Principal(
        user_id=user_id,
        email=claims["email"],
        name=claims.get("name") or "",
        roles=frozenset(claims.get("roles", [])),
    )
    logger.debug("Token validated for user=%s", principal.user_id)
    return principal


def require_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> Principal:
    """Validate the bearer token and return the caller as a Principal."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    return _principal_from_token(credentials.credentials)


def optional_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> Principal | None:
    """Like require_user, but anonymous callers get None.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    return _principal_from_token(credentials.credentials)


# ---------------------------------------------------------------------------
# Store and integrations
# ---------------------------------------------------------------------------


async def get_store() -> AsyncIterator[Store]:
    """Per-request repository bundle.

    With a database the whole request runs in one session, committed
    after the endpoint returns and rolled back if it raises.
    """
    if db.async_session_factory is None:
        yield in_memory_store()
        return
    async with db.session_scope() as session:
        yield pg_store(session)


def get_settings() -> Settings:
    return SETTINGS


# Used whenever the real provider is not configured (dev, tests).
fake_meetings = InMemoryCalendarProvider()
fake_folders = InMemoryDriveProvider()
fake_invoices = InMemoryInvoiceClient()


@dataclass(frozen=True)
class Integrations:
    meetings: MeetingProvider
    folders: FolderProvider
    invoices: InvoiceClient


def _invoice_client(settings: Settings) -> InvoiceClient | None:
    if http.http_client is None:
        return None
    if settings.is_prod and settings.payment_proxy_url:
        return ProxyInvoiceClient(http.http_client, settings.payment_proxy_url)
    if settings.xendit_secret_key:
        return XenditInvoiceClient(http.http_client, settings.xendit_secret_key)
    return None


def get_integrations(
    store: Annotated[Store, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Integrations:
    invoices = _invoice_client(settings)
    google_ready = settings.google_configured and http.http_client is not None
    if settings.is_prod and (invoices is None or not google_ready):
        # Never serve the in-memory fakes in prod.
        raise RuntimeError("provider integrations are not configured")
    if invoices is None:
        invoices = fake_invoices
    if not google_ready:
        return Integrations(meetings=fake_meetings, folders=fake_folders, invoices=invoices)

    credentials = GoogleCredentials(store.linked_accounts, http.http_client, settings)
    return Integrations(
        meetings=GoogleCalendarClient(credentials),
        folders=GoogleDriveClient(credentials),
        invoices=invoices,
    )


def get_workflow_context(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    integrations: Annotated[Integrations, Depends(get_integrations)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WorkflowContext:
    return WorkflowContext(
        principal=principal,
        store=store,
        meetings=integrations.meetings,
        folders=integrations.folders,
        settings=settings,
    )


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


_STATUS_BY_CATEGORY = {
    Category.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    Category.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    Category.VALIDATION: 422,
    Category.CONFLICT: status.HTTP_409_CONFLICT,
}


def status_for(error: DomainError) -> int:
    return _STATUS_BY_CATEGORY[error.category]


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a DomainError as ``{"detail": message, "code": CODE}``."""
    code = status_for(exc)
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "code": exc.code.value},
    )
