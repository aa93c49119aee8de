"""
Dashboard Service.

Aggregates for the overview page, computed from four independent views
(incomes, expenses, collaborators, members) each time ``summary()`` is
called:
    - total income, total expenses and net balance,
    - collaborator and member counts,
    - paid / exempt / unpaid member counts from the payment reconciler,
    - income vs. expense per ``YYYY-MM`` month, ascending,
    - the most recent transactions of either kind by ``created_at``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

from tesoreria.errors import ErrorKind
from tesoreria.logger import StructuredLogger
from tesoreria.models.collaborator import Collaborator
from tesoreria.models.expense import Expense
from tesoreria.models.income import IncomeEvent
from tesoreria.models.member import Member
from tesoreria.models.service_models import (
    DashboardSummary,
    MonthlyTotals,
    RecentTransaction,
)
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.base_service import BaseService
from tesoreria.services.payment_status import (
    compute_payment_statuses,
    summarize_payment_statuses,
)
from tesoreria.sync import CollectionSync, open_collection

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(tx: RecentTransaction) -> datetime:
    if tx.created_at is None:
        return _OLDEST
    if tx.created_at.tzinfo is None:
        return tx.created_at.replace(tzinfo=timezone.utc)
    return tx.created_at


def monthly_totals(
    incomes: list[IncomeEvent], expenses: list[Expense]
) -> list[MonthlyTotals]:
    """Sum amounts per ``YYYY-MM`` of the transaction date, oldest first.

    Rows without a date are left out of the series.
    """
    buckets: dict[str, MonthlyTotals] = {}
    for income in incomes:
        if income.date is None:
            continue
        month = income.date.strftime("%Y-%m")
        bucket = buckets.setdefault(month, MonthlyTotals(month=month))
        bucket.ingresos += income.amount
    for expense in expenses:
        if expense.date is None:
            continue
        month = expense.date.strftime("%Y-%m")
        bucket = buckets.setdefault(month, MonthlyTotals(month=month))
        bucket.gastos += expense.amount
    return [buckets[month] for month in sorted(buckets)]


def recent_transactions(
    incomes: list[IncomeEvent], expenses: list[Expense], limit: int = 5
) -> list[RecentTransaction]:
    """The *limit* newest incomes and expenses, newest first."""
    merged: list[RecentTransaction] = [
        RecentTransaction(
            date=income.date,
            created_at=income.created_at,
            description=f"Pago de {income.full_name}" if income.full_name else "N/A",
            category=str(income.transaction_type) if income.transaction_type else "General",
            amount=income.amount,
            is_income=True,
        )
        for income in incomes
    ]
    merged.extend(
        RecentTransaction(
            date=expense.date,
            created_at=expense.created_at,
            description=expense.description or "N/A",
            category=expense.category or "General",
            amount=expense.amount,
            is_income=False,
        )
        for expense in expenses
    )
    merged.sort(key=_sort_key, reverse=True)
    return merged[:limit]


class Dashboard(BaseService):
    """Overview aggregates over incomes, expenses, collaborators and members."""

    def __init__(
        self,
        store: RemoteStore,
        logger: StructuredLogger,
        recent_limit: int = 5,
    ) -> None:
        super().__init__(logger)
        self._recent_limit = recent_limit
        self._incomes: CollectionSync[IncomeEvent] = open_collection(store, IncomeEvent, logger)
        self._expenses: CollectionSync[Expense] = open_collection(store, Expense, logger)
        self._collaborators: CollectionSync[Collaborator] = open_collection(
            store, Collaborator, logger,
        )
        self._members: CollectionSync[Member] = open_collection(store, Member, logger)

    def _views(self) -> tuple[CollectionSync, ...]:
        return (self._incomes, self._expenses, self._collaborators, self._members)

    @property
    def is_loading(self) -> bool:
        return any(view.is_loading for view in self._views())

    @property
    def last_error(self) -> Optional[ErrorKind]:
        for view in self._views():
            if view.last_error is not None:
                return view.last_error
        return None

    def summary(self) -> DashboardSummary:
        incomes = self._incomes.records
        expenses = self._expenses.records
        members = self._members.records

        total_income = sum(income.amount for income in incomes)
        total_expenses = sum(expense.amount for expense in expenses)
        statuses = compute_payment_statuses(members, incomes)

        return DashboardSummary(
            total_income=total_income,
            total_expenses=total_expenses,
            net_balance=total_income - total_expenses,
            collaborator_count=len(self._collaborators.records),
            member_count=len(members),
            payments=summarize_payment_statuses(statuses),
            monthly=monthly_totals(incomes, expenses),
            recent_transactions=recent_transactions(
                incomes, expenses, limit=self._recent_limit,
            ),
        )

    def refresh(self) -> None:
        for view in self._views():
            view.refresh()

    async def wait_idle(self) -> None:
        await asyncio.gather(*(view.wait_idle() for view in self._views()))

    def close(self) -> None:
        for view in self._views():
            view.close()
