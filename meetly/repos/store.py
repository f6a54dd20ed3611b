"""Repository bundle handed to the services.

Two flavors, chosen once per request by ``get_store``:

  in_memory_store(): process-wide singletons; used when DATABASE_URL is
    not set (local dev, tests).
  pg_store(session): Pg* repos bound to the request's AsyncSession, so
    everything a workflow writes commits (or rolls back) together at the
    end of the request.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from meetly.repos.event_repo import EventRepo, InMemoryEventRepo
from meetly.repos.linked_account_repo import (
    InMemoryLinkedAccountRepo,
    LinkedAccountRepo,
)
from meetly.repos.membership_repo import InMemoryMembershipRepo, MembershipRepo
from meetly.repos.organization_repo import (
    InMemoryOrganizationRepo,
    OrganizationRepo,
)
from meetly.repos.package_repo import InMemoryPackageRepo, PackageRepo
from meetly.repos.purchase_repo import InMemoryPurchaseRepo, PurchaseRepo
from meetly.repos.user_repo import InMemoryUserRepo, UserRepo


@dataclass(frozen=True)
class Store:
    users: UserRepo
    linked_accounts: LinkedAccountRepo
    events: EventRepo
    packages: PackageRepo
    purchases: PurchaseRepo
    organizations: OrganizationRepo
    memberships: MembershipRepo


def new_in_memory_store() -> Store:
    return Store(
        users=InMemoryUserRepo(),
        linked_accounts=InMemoryLinkedAccountRepo(),
        events=InMemoryEventRepo(),
        packages=InMemoryPackageRepo(),
        purchases=InMemoryPurchaseRepo(),
        organizations=InMemoryOrganizationRepo(),
        memberships=InMemoryMembershipRepo(),
    )


_IN_MEMORY = new_in_memory_store()


def in_memory_store() -> Store:
    return _IN_MEMORY


def reset_in_memory_store() -> None:
    """Start over with empty repos.  Tests call this between cases."""
    global _IN_MEMORY
    _IN_MEMORY = new_in_memory_store()


def pg_store(session: AsyncSession) -> Store:
    # Imported lazily so the in-memory path never touches table metadata.
    from meetly.repos.pg_event_repo import PgEventRepo
    from meetly.repos.pg_linked_account_repo import PgLinkedAccountRepo
    from meetly.repos.pg_membership_repo import PgMembershipRepo
    from meetly.repos.pg_organization_repo import PgOrganizationRepo
    from meetly.repos.pg_package_repo import PgPackageRepo
    from meetly.repos.pg_purchase_repo import PgPurchaseRepo
    from meetly.repos.pg_user_repo import PgUserRepo

    return Store(
        users=PgUserRepo(session),
        linked_accounts=PgLinkedAccountRepo(session),
        events=PgEventRepo(session),
        packages=PgPackageRepo(session),
        purchases=PgPurchaseRepo(session),
        organizations=PgOrganizationRepo(session),
        memberships=PgMembershipRepo(session),
    )
