from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from meetly.models.package import Package
from meetly.models.principal import Principal
from meetly.models.purchase import PENDING, PackagePurchase
from meetly.models.user import User
from meetly.payments.invoices import InMemoryInvoiceClient, InvoiceError
from meetly.services import enrollment_service
from meetly.services.errors import (
    AlreadyPurchasedError,
    EnrollmentValidationError,
    PackageNotFoundError,
)


@pytest.fixture
def invoices() -> InMemoryInvoiceClient:
    return InMemoryInvoiceClient()


@pytest.fixture
def package(store, owner) -> Package:
    pkg = Package.new(
        event_id=uuid4(), user_id=owner.id, name="Course", price=150000, currency="IDR"
    )
    asyncio.run(store.packages.add(pkg))
    return pkg


@pytest.fixture
def student(store) -> User:
    user = User.new(email="student@example.com", name="Student")
    asyncio.run(store.users.add(user))
    return user


def _enroll(store, invoices, settings, package_id, buyer):
    return asyncio.run(
        enrollment_service.enroll(
            store,
            invoices,
            settings,
            package_id=package_id,
            buyer_id=buyer.id,
            payer_email=buyer.email,
        )
    )


def test_enroll_creates_pending_purchase_and_invoice(store, invoices, settings, package, student) -> None:
    result = _enroll(store, invoices, settings, package.id, student)

    purchase = asyncio.run(store.purchases.get(result.purchase_id))
    assert purchase.status == PENDING
    assert purchase.buyer_id == student.id

    (request,) = invoices.requests
    assert request.external_id == f"meetly-{purchase.id}"
    assert request.amount == 150000
    assert request.currency == "IDR"
    assert request.description == "Package: Course"
    assert request.payer_email == "student@example.com"
    assert request.success_redirect_url == f"https://meetly.test/success?purchase={purchase.id}"
    assert request.failure_redirect_url == f"https://meetly.test/failed?purchase={purchase.id}"

    assert purchase.invoice_id is not None
    assert result.invoice_url.endswith(purchase.invoice_id)


def test_enroll_unknown_package(store, invoices, settings, student) -> None:
    with pytest.raises(PackageNotFoundError):
        _enroll(store, invoices, settings, uuid4(), student)
    assert invoices.requests == []


def test_paid_purchase_blocks_second_enrollment(store, invoices, settings, package, student) -> None:
    result = _enroll(store, invoices, settings, package.id, student)
    asyncio.run(store.purchases.mark_paid(result.purchase_id, datetime.now(UTC)))

    with pytest.raises(AlreadyPurchasedError):
        _enroll(store, invoices, settings, package.id, student)


def test_pending_purchase_allows_another(store, invoices, settings, package, student) -> None:
    first = _enroll(store, invoices, settings, package.id, student)
    second = _enroll(store, invoices, settings, package.id, student)

    assert first.purchase_id != second.purchase_id
    purchases = asyncio.run(store.purchases.list_by_package(package.id))
    assert [p.status for p in purchases] == [PENDING, PENDING]


def test_invoice_failure_leaves_pending_purchase(store, invoices, settings, package, student) -> None:
    invoices.failing = True
    with pytest.raises(InvoiceError):
        _enroll(store, invoices, settings, package.id, student)

    (purchase,) = asyncio.run(store.purchases.list_by_buyer(student.id))
    assert purchase.status == PENDING
    assert purchase.invoice_id is None


# ---- guest enrollment ----


def _guest(store, invoices, settings, package_id, principal=None, **kw):
    return asyncio.run(
        enrollment_service.enroll_guest(
            store, invoices, settings, package_id=package_id, principal=principal, **kw
        )
    )


def test_guest_creates_unverified_user(store, invoices, settings, package) -> None:
    result = _guest(
        store, invoices, settings, package.id, name=" Guest ", email=" Guest@Example.COM "
    )

    user = asyncio.run(store.users.get_by_email("guest@example.com"))
    assert user is not None
    assert user.name == "Guest"
    assert not user.email_verified
    purchase = asyncio.run(store.purchases.get(result.purchase_id))
    assert purchase.buyer_id == user.id
    assert invoices.requests[0].payer_email == "guest@example.com"


def test_guest_reuses_existing_user(store, invoices, settings, package, student) -> None:
    result = _guest(store, invoices, settings, package.id, name="S", email="student@example.com")
    purchase = asyncio.run(store.purchases.get(result.purchase_id))
    assert purchase.buyer_id == student.id


@pytest.mark.parametrize("name,email", [(None, "a@x.io"), ("A", None), ("  ", "a@x.io"), ("A", "")])
def test_guest_requires_name_and_email(store, invoices, settings, package, name, email) -> None:
    with pytest.raises(EnrollmentValidationError):
        _guest(store, invoices, settings, package.id, name=name, email=email)


def test_signed_in_caller_enrolls_as_themselves(store, invoices, settings, package, student) -> None:
    principal = Principal(user_id=student.id, email=student.email, name=student.name)
    result = _guest(store, invoices, settings, package.id, principal=principal)
    purchase = asyncio.run(store.purchases.get(result.purchase_id))
    assert purchase.buyer_id == student.id


def test_guest_unknown_package_checked_first(store, invoices, settings) -> None:
    with pytest.raises(PackageNotFoundError):
        _guest(store, invoices, settings, uuid4())


def test_external_id_for(settings) -> None:
    purchase = PackagePurchase.new(package_id=uuid4(), buyer_id=uuid4())
    assert enrollment_service.external_id_for(settings, purchase.id) == f"meetly-{purchase.id}"
