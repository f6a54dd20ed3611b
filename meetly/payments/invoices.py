"""Invoice creation against the payment provider.

Three InvoiceClient implementations:

  XenditInvoiceClient : Xendit REST API, basic auth with the secret key.
  ProxyInvoiceClient  : used in prod; a payment proxy that holds the key
                         and forwards the request (camelCase JSON body).
  InMemoryInvoiceClient: tests and local dev without credentials.

The provider later calls POST /api/xendit with the invoice's external id,
which is how settlement finds the purchase again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

XENDIT_API_URL = "https://api.xendit.co"


class InvoiceError(Exception):
    """The payment provider could not create the invoice."""


@dataclass(frozen=True, slots=True)
class InvoiceRequest:
    external_id: str
    amount: int
    description: str
    currency: str
    payer_email: str
    success_redirect_url: str
    failure_redirect_url: str


@dataclass(frozen=True, slots=True)
class Invoice:
    invoice_id: str | None
    invoice_url: str | None


@runtime_checkable
class InvoiceClient(Protocol):
    async def create_invoice(self, request: InvoiceRequest) -> Invoice: ...


class XenditInvoiceClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        secret_key: str,
        *,
        base_url: str = XENDIT_API_URL,
    ) -> None:
        self._http = http
        self._auth = httpx.BasicAuth(secret_key, "")
        self._base_url = base_url.rstrip("/")

    async def create_invoice(self, request: InvoiceRequest) -> Invoice:
        try:
            resp = await self._http.post(
                f"{self._base_url}/v2/invoices",
                auth=self._auth,
                json={
                    "external_id": request.external_id,
                    "amount": request.amount,
                    "description": request.description,
                    "currency": request.currency,
                    "payer_email": request.payer_email,
                    "success_redirect_url": request.success_redirect_url,
                    "failure_redirect_url": request.failure_redirect_url,
                },
            )
        except httpx.HTTPError as e:
            raise InvoiceError(f"invoice request failed: {e!r}") from e

        if resp.status_code >= 400:
            logger.warning(
                "Invoice rejected status=%d external_id=%s",
                resp.status_code,
                request.external_id,
            )
            raise InvoiceError(f"invoice rejected ({resp.status_code})")

        body = resp.json()
        return Invoice(invoice_id=body.get("id"), invoice_url=body.get("invoice_url"))


class ProxyInvoiceClient:
    def __init__(self, http: httpx.AsyncClient, proxy_url: str) -> None:
        self._http = http
        self._proxy_url = proxy_url

    async def create_invoice(self, request: InvoiceRequest) -> Invoice:
        try:
            resp = await self._http.post(
                self._proxy_url,
                json={
                    "externalId": request.external_id,
                    "amount": request.amount,
                    "description": request.description,
                    "currency": request.currency,
                    "payerEmail": request.payer_email,
                    "successRedirectUrl": request.success_redirect_url,
                    "failureRedirectUrl": request.failure_redirect_url,
                },
            )
        except httpx.HTTPError as e:
            raise InvoiceError(f"payment proxy unreachable: {e!r}") from e

        if resp.status_code >= 400:
            raise InvoiceError(f"payment proxy returned {resp.status_code}")

        body = resp.json()
        return Invoice(invoice_id=body.get("id"), invoice_url=body.get("invoiceUrl"))


class InMemoryInvoiceClient:
    """Records requests and hands back deterministic invoice ids."""

    def __init__(self) -> None:
        self.requests: list[InvoiceRequest] = []
        self.failing = False

    def reset(self) -> None:
        self.requests.clear()
        self.failing = False

    async def create_invoice(self, request: InvoiceRequest) -> Invoice:
        if self.failing:
            raise InvoiceError("invoice provider unavailable")
        self.requests.append(request)
        n = len(self.requests)
        return Invoice(
            invoice_id=f"inv-{n}",
            invoice_url=f"https://checkout.example.com/inv-{n}",
        )
