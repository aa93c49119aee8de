"""
Business Logic Services Package.

One service per page of the treasury application, each composing its own
collection views over the injected remote store.  Views never share a
cache; two services showing the same collection refetch independently.

The ``create_services()`` factory wires every service together,
returning a typed dict that the application layer can consume without
knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from tesoreria.config import AppConfig
from tesoreria.logger import StructuredLogger, get_logger
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.accounts import AccountsView
from tesoreria.services.collaborators import CollaboratorsView
from tesoreria.services.dashboard import Dashboard
from tesoreria.services.expenses import ExpenseLedger
from tesoreria.services.identity_lookup import NationalIdClient
from tesoreria.services.income import IncomeLedger
from tesoreria.services.members import MemberRegistrationService
from tesoreria.services.people import PeopleView


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    dashboard: Dashboard
    people_view: PeopleView
    member_registration: MemberRegistrationService
    income_ledger: IncomeLedger
    expense_ledger: ExpenseLedger
    accounts_view: AccountsView
    collaborators_view: CollaboratorsView


def create_services(
    store: RemoteStore,
    identity_client: Optional[NationalIdClient] = None,
    logger: Optional[StructuredLogger] = None,
    config: Optional[AppConfig] = None,
) -> ServiceContainer:
    """
    Wire all services together.

    This is the single composition root for the service layer.  It must
    be called from inside a running event loop because every view
    starts its first fetch immediately.

    Args:
        store: The remote store shared (as a client, not as a cache) by
            every view.
        identity_client: National-ID lookup used to prefill the
            registration form; ``None`` disables enrichment.
        logger: Logger injected into every service.
        config: Application configuration.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = logger or get_logger("services")
    recent_limit = config.RECENT_TRANSACTIONS_LIMIT if config is not None else 5

    return ServiceContainer(
        dashboard=Dashboard(
            store=store,
            logger=logger.child("dashboard"),
            recent_limit=recent_limit,
        ),
        people_view=PeopleView(store=store, logger=logger.child("people")),
        member_registration=MemberRegistrationService(
            store=store,
            logger=logger.child("members"),
            identity_client=identity_client,
        ),
        income_ledger=IncomeLedger(store=store, logger=logger.child("income")),
        expense_ledger=ExpenseLedger(store=store, logger=logger.child("expenses")),
        accounts_view=AccountsView(store=store, logger=logger.child("accounts")),
        collaborators_view=CollaboratorsView(
            store=store,
            logger=logger.child("collaborators"),
        ),
    )


def close_services(services: ServiceContainer) -> None:
    """Close every view so late fetch results are dropped."""
    for service in services.values():
        service.close()


__all__ = [
    "AccountsView",
    "CollaboratorsView",
    "Dashboard",
    "ExpenseLedger",
    "IncomeLedger",
    "MemberRegistrationService",
    "NationalIdClient",
    "PeopleView",
    "ServiceContainer",
    "close_services",
    "create_services",
]
