from __future__ import annotations

from dataclasses import replace

import httpx
import pytest

from meetly.api.dependencies import fake_invoices, fake_meetings, get_integrations
from meetly.core.config import SETTINGS
from meetly.payments.invoices import ProxyInvoiceClient, XenditInvoiceClient
from meetly.providers import http
from meetly.providers.calendar import GoogleCalendarClient
from meetly.providers.drive import GoogleDriveClient
from meetly.repos.store import Store

PROD = replace(
    SETTINGS,
    app_env="prod",
    google_client_id="client-id",
    google_client_secret="client-secret",
    xendit_secret_key="xnd_secret",
    payment_proxy_url=None,
)


@pytest.fixture
def outbound_client(monkeypatch: pytest.MonkeyPatch) -> httpx.AsyncClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    monkeypatch.setattr(http, "http_client", client)
    return client


def test_prod_wires_real_providers(store: Store, outbound_client) -> None:
    integrations = get_integrations(store, PROD)
    assert isinstance(integrations.meetings, GoogleCalendarClient)
    assert isinstance(integrations.folders, GoogleDriveClient)
    assert isinstance(integrations.invoices, XenditInvoiceClient)


def test_prod_prefers_payment_proxy(store: Store, outbound_client) -> None:
    settings = replace(PROD, payment_proxy_url="https://pay.example.com/invoices")
    assert isinstance(get_integrations(store, settings).invoices, ProxyInvoiceClient)


@pytest.mark.parametrize(
    "missing",
    [
        {"google_client_id": None},
        {"xendit_secret_key": None},
    ],
)
def test_prod_never_falls_back_to_fakes(store: Store, outbound_client, missing: dict) -> None:
    with pytest.raises(RuntimeError, match="not configured"):
        get_integrations(store, replace(PROD, **missing))


def test_prod_without_outbound_client_is_refused(store: Store) -> None:
    assert http.http_client is None
    with pytest.raises(RuntimeError):
        get_integrations(store, PROD)


def test_dev_uses_in_memory_fakes(store: Store, outbound_client) -> None:
    settings = replace(PROD, app_env="dev", google_client_id=None, xendit_secret_key=None)
    integrations = get_integrations(store, settings)
    assert integrations.meetings is fake_meetings
    assert integrations.invoices is fake_invoices
