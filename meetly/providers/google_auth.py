"""Delegated Google credentials.

Calendar and Drive calls act as the creator, using the access token the
creator granted when linking their Google account.  Tokens live in
``linked_accounts``; when Google answers 401 we refresh once with the
refresh token, write the new access token back, and replay the call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx

from meetly.core.config import Settings
from meetly.providers.base import DelegationError, ProviderError
from meetly.repos.linked_account_repo import LinkedAccountRepo

logger = logging.getLogger(__name__)

PROVIDER = "google"
TOKEN_URL = "https://oauth2.googleapis.com/token"

# Narrow scopes: only calendar events and files this app created.
CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar.app.created"
DRIVE_SCOPE = "https://www.googleapis.com/auth/drive.file"


@dataclass(frozen=True, slots=True)
class GrantedScopes:
    has_calendar_scope: bool
    has_drive_scope: bool


async def granted_scopes(linked_accounts: LinkedAccountRepo, user_id: UUID) -> GrantedScopes:
    """Which provider capabilities the user has delegated so far."""
    account = await linked_accounts.get_for_user(user_id, PROVIDER)
    if account is None:
        return GrantedScopes(has_calendar_scope=False, has_drive_scope=False)
    return GrantedScopes(
        has_calendar_scope=account.has_scope(CALENDAR_SCOPE),
        has_drive_scope=account.has_scope(DRIVE_SCOPE),
    )


class GoogleCredentials:
    """Authorized HTTP calls on behalf of one user at a time."""

    def __init__(
        self,
        linked_accounts: LinkedAccountRepo,
        http: httpx.AsyncClient,
        settings: Settings,
    ) -> None:
        self._accounts = linked_accounts
        self._http = http
        self._settings = settings

    async def request(
        self,
        user_id: UUID,
        scope: str,
        method: str,
        url: str,
        *,
        provider: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request as ``user_id``.

        Raises DelegationError when the user has no usable grant for
        ``scope`` and ProviderError on transport or HTTP failures.
        ``provider`` only labels errors (``calendar``, ``drive``).
        """
        account = await self._accounts.get_for_user(user_id, PROVIDER)
        if account is None or not account.access_token:
            raise DelegationError(
                provider, "no Google account linked or missing access token"
            )
        if not account.has_scope(scope):
            raise DelegationError(provider, f"scope not granted: {scope}")

        resp = await self._send(provider, method, url, account.access_token, **kwargs)

        if resp.status_code == 401 and account.refresh_token:
            logger.info("Access token rejected, refreshing user=%s", user_id)
            token = await self._refresh(provider, account.id, account.refresh_token)
            resp = await self._send(provider, method, url, token, **kwargs)

        if resp.status_code >= 400:
            raise ProviderError(
                provider,
                f"{method} {url} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp

    async def _send(
        self, provider: str, method: str, url: str, token: str, **kwargs: Any
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"}
        try:
            return await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ProviderError(provider, f"{method} {url} failed: {e!r}") from e

    async def _refresh(self, provider: str, account_id: UUID, refresh_token: str) -> str:
        try:
            resp = await self._http.post(
                TOKEN_URL,
                data={
                    "client_id": self._settings.google_client_id or "",
                    "client_secret": self._settings.google_client_secret or "",
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )
        except httpx.HTTPError as e:
            raise ProviderError(provider, f"token refresh failed: {e!r}") from e

        if resp.status_code != 200:
            raise DelegationError(
                provider, f"token refresh rejected ({resp.status_code})"
            )

        body = resp.json()
        access_token = body.get("access_token")
        if not access_token:
            raise DelegationError(provider, "token refresh returned no access token")

        await self._accounts.update_tokens(
            account_id, access_token, body.get("refresh_token")
        )
        return access_token
