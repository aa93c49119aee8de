"""
Expense Ledger Service.

Backs the expenses ("Gastos") page.  A new expense without an explicit
number is saved first and then numbered from its server-assigned id
(``GAS-000042``), so the number always matches the stored row.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from tesoreria.errors import ErrorKind
from tesoreria.logger import StructuredLogger
from tesoreria.models.base import RecordId
from tesoreria.models.collaborator import Collaborator
from tesoreria.models.expense import Expense
from tesoreria.models.service_models import ServiceResult
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.base_service import BaseService
from tesoreria.sync import CollectionSync, open_collection

EXPENSE_NUMBER_PREFIX = "GAS-"


def format_expense_number(record_id: RecordId) -> str:
    """``GAS-`` plus the zero-padded sequence id, or the UUID's first block."""
    if isinstance(record_id, int):
        return f"{EXPENSE_NUMBER_PREFIX}{record_id:06d}"
    return f"{EXPENSE_NUMBER_PREFIX}{str(record_id).replace('-', '')[:8].upper()}"


class ExpenseLedger(BaseService):
    """Expenses plus the collaborators they can be assigned to."""

    def __init__(self, store: RemoteStore, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._expenses: CollectionSync[Expense] = open_collection(
            store, Expense, logger,
        )
        self._collaborators: CollectionSync[Collaborator] = open_collection(
            store, Collaborator, logger,
        )

    @property
    def expenses(self) -> list[Expense]:
        return self._expenses.records

    @property
    def is_loading(self) -> bool:
        return self._expenses.is_loading or self._collaborators.is_loading

    @property
    def last_error(self) -> Optional[ErrorKind]:
        return self._expenses.last_error or self._collaborators.last_error

    def total(self) -> float:
        return sum(expense.amount for expense in self._expenses.records)

    def collaborator_choices(self) -> list[tuple[str, str]]:
        """``(id, full name)`` pairs sorted by name, for the assignee dropdown."""
        choices = [(c.id, c.full_name) for c in self._collaborators.records]
        return sorted(choices, key=lambda choice: choice[1].lower())

    async def record_expense(self, fields: Mapping[str, object]) -> ServiceResult[Expense]:
        created = await self._expenses.create(fields)
        if not created.success or created.data is None or created.data.numero_gasto:
            return created

        number = format_expense_number(created.data.id)
        numbered = await self._expenses.update(created.data.id, {"numero_gasto": number})
        if not numbered.success:
            # The expense exists; only its number is missing.
            self._logger.warning(
                "Expense %s saved but numbering failed: %s",
                created.data.id,
                numbered.error,
            )
            return created
        return ServiceResult(success=True, data=numbered.data, status_code=201)

    async def update_expense(
        self, expense_id: RecordId, fields: Mapping[str, object]
    ) -> ServiceResult[Expense]:
        return await self._expenses.update(expense_id, fields)

    async def delete_expense(self, expense_id: RecordId) -> ServiceResult[None]:
        return await self._expenses.remove(expense_id)

    def refresh(self) -> None:
        self._expenses.refresh()
        self._collaborators.refresh()

    async def wait_idle(self) -> None:
        await asyncio.gather(self._expenses.wait_idle(), self._collaborators.wait_idle())

    def close(self) -> None:
        self._expenses.close()
        self._collaborators.close()
