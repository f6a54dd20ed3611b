"""Enrollment: a pending purchase plus an invoice to pay it.

The purchase id travels to the payment provider inside the invoice's
external id and comes back on the settlement webhook.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from meetly.core.config import Settings
from meetly.models.principal import Principal
from meetly.models.purchase import PackagePurchase
from meetly.models.user import User
from meetly.payments.invoices import InvoiceClient, InvoiceRequest
from meetly.repos.store import Store
from meetly.services.errors import (
    AlreadyPurchasedError,
    EnrollmentValidationError,
    PackageNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EnrollmentResult:
    purchase_id: UUID
    invoice_url: str | None


def external_id_for(settings: Settings, purchase_id: UUID) -> str:
    return f"{settings.external_id_prefix}{purchase_id}"


async def enroll(
    store: Store,
    invoices: InvoiceClient,
    settings: Settings,
    *,
    package_id: UUID,
    buyer_id: UUID,
    payer_email: str,
) -> EnrollmentResult:
    """Open a purchase for ``buyer_id`` and invoice it.

    Only a paid purchase blocks a new one; a buyer who abandoned checkout
    can start again and collects another pending row.
    """
    package = await store.packages.get(package_id)
    if package is None:
        raise PackageNotFoundError()

    if await store.purchases.find_paid(package_id, buyer_id) is not None:
        raise AlreadyPurchasedError()

    purchase = PackagePurchase.new(package_id=package_id, buyer_id=buyer_id)
    await store.purchases.add(purchase)

    base = settings.app_base_url
    invoice = await invoices.create_invoice(
        InvoiceRequest(
            external_id=external_id_for(settings, purchase.id),
            amount=package.price,
            description=f"Package: {package.name}",
            currency=package.currency,
            payer_email=payer_email,
            success_redirect_url=f"{base}/success?purchase={purchase.id}",
            failure_redirect_url=f"{base}/failed?purchase={purchase.id}",
        )
    )
    await store.purchases.set_invoice_id(purchase.id, invoice.invoice_id)

    logger.info(
        "Purchase opened id=%s package=%s invoice=%s",
        purchase.id,
        package_id,
        invoice.invoice_id,
        extra={"purchase_id": str(purchase.id), "package_id": str(package_id)},
    )
    return EnrollmentResult(purchase_id=purchase.id, invoice_url=invoice.invoice_url)


async def enroll_guest(
    store: Store,
    invoices: InvoiceClient,
    settings: Settings,
    *,
    package_id: UUID,
    principal: Principal | None,
    name: str | None = None,
    email: str | None = None,
) -> EnrollmentResult:
    """Enroll the signed-in caller, or a guest identified by name and email.

    Guests are matched to an existing user by email, or a new unverified
    user is created for them.
    """
    if await store.packages.get(package_id) is None:
        raise PackageNotFoundError()

    if principal is not None:
        return await enroll(
            store,
            invoices,
            settings,
            package_id=package_id,
            buyer_id=principal.user_id,
            payer_email=principal.email,
        )

    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email:
        raise EnrollmentValidationError(
            "Name and email are required to enroll without an account"
        )

    user = await store.users.get_by_email(email)
    if user is None:
        user = User.new(email=email, name=name, email_verified=False)
        await store.users.add(user)
        logger.info("Guest user created id=%s", user.id)

    return await enroll(
        store,
        invoices,
        settings,
        package_id=package_id,
        buyer_id=user.id,
        payer_email=user.email,
    )
