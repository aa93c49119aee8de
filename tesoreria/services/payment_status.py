"""
Payment Status Reconciliation.

Pure functions joining the member registry with the income receipts on
the DNI to decide, per member, whether they have paid, are exempt or
still owe.  No I/O, no caching: callers recompute on every change of
either input, and the two snapshots may have been fetched at different
times.

Rules, in order:
    1. ``Extremo Pobre``                      -> Exonerado (exempt)
    2. ``Pobre`` and DNI among income DNIs    -> Pagado (paid)
    3. anything else, including unset status  -> No Pagado (unpaid)

Income rows with an absent or blank DNI are dropped from the lookup set,
and a member without a DNI is never matched.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from tesoreria.models.enums import DerivedStatus, EconomicSituation
from tesoreria.models.income import IncomeEvent
from tesoreria.models.member import Member
from tesoreria.models.service_models import PaymentStatusCounts, PaymentStatusView

__all__ = [
    "classify_member",
    "compute_payment_statuses",
    "paid_identifiers",
    "reconcile_members",
    "summarize_payment_statuses",
]


def _clean_identifier(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def paid_identifiers(incomes: Iterable[IncomeEvent]) -> frozenset[str]:
    """Return the set of non-empty DNIs that appear on income receipts."""
    identifiers: set[str] = set()
    for income in incomes:
        dni = _clean_identifier(income.dni)
        if dni is not None:
            identifiers.add(dni)
    return frozenset(identifiers)


def classify_member(member: Member, paid: frozenset[str]) -> DerivedStatus:
    """Apply the status rules to one member against a prepared DNI set."""
    if member.situacion_economica == EconomicSituation.EXTREMO_POBRE:
        return DerivedStatus.EXEMPT

    dni = _clean_identifier(member.dni)
    if (
        member.situacion_economica == EconomicSituation.POBRE
        and dni is not None
        and dni in paid
    ):
        return DerivedStatus.PAID

    return DerivedStatus.UNPAID


def compute_payment_statuses(
    members: Sequence[Member], incomes: Iterable[IncomeEvent]
) -> list[DerivedStatus]:
    """One status per member, in the same order as *members*."""
    paid = paid_identifiers(incomes)
    return [classify_member(member, paid) for member in members]


def reconcile_members(
    members: Sequence[Member], incomes: Iterable[IncomeEvent]
) -> PaymentStatusView:
    """Join the computed statuses back onto the member records by id."""
    statuses = compute_payment_statuses(members, incomes)
    return PaymentStatusView(
        records=list(members),
        status={member.id: status for member, status in zip(members, statuses)},
    )


def summarize_payment_statuses(statuses: Iterable[DerivedStatus]) -> PaymentStatusCounts:
    counts = PaymentStatusCounts()
    for status in statuses:
        if status == DerivedStatus.PAID:
            counts.paid += 1
        elif status == DerivedStatus.EXEMPT:
            counts.exempt += 1
        else:
            counts.unpaid += 1
    return counts
