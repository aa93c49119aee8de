"""
Income Ledger Service.

Backs the income ("Ingresos") page: the list of receipts, the account
choices for the form, and the payer lookup that fills the full name
from the member registry once a DNI is typed.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from tesoreria.errors import ErrorKind, RecordNotFoundError, StoreError
from tesoreria.logger import StructuredLogger
from tesoreria.models.account import Account
from tesoreria.models.income import IncomeEvent
from tesoreria.models.member import Member
from tesoreria.models.service_models import ServiceResult
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.base_service import BaseService
from tesoreria.sync import CollectionSync, open_collection


class IncomeLedger(BaseService):
    """Income receipts plus the accounts they are paid into."""

    def __init__(self, store: RemoteStore, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._store = store
        self._incomes: CollectionSync[IncomeEvent] = open_collection(
            store, IncomeEvent, logger,
        )
        self._accounts: CollectionSync[Account] = open_collection(
            store, Account, logger,
        )

    @property
    def incomes(self) -> list[IncomeEvent]:
        return self._incomes.records

    @property
    def is_loading(self) -> bool:
        return self._incomes.is_loading or self._accounts.is_loading

    @property
    def last_error(self) -> Optional[ErrorKind]:
        return self._incomes.last_error or self._accounts.last_error

    def account_names(self) -> list[str]:
        return [account.name for account in self._accounts.records if account.name]

    def total(self) -> float:
        return sum(income.amount for income in self._incomes.records)

    async def lookup_payer(self, dni: str) -> ServiceResult[Optional[str]]:
        """Full name of the member with *dni*; ``data`` is ``None`` if unknown."""
        try:
            row = await self._store.find_one(Member.TABLE, {"dni": dni.strip()})
            member = Member.parse_row(row) if row is not None else None
        except RecordNotFoundError:
            member = None
        except StoreError as exc:
            self._logger.warning("Payer lookup for DNI %s failed: %s", dni, exc.message)
            return ServiceResult.from_error(exc)
        if member is None:
            return ServiceResult(success=True, data=None)
        return ServiceResult(success=True, data=member.full_name)

    async def record_income(self, fields: Mapping[str, object]) -> ServiceResult[IncomeEvent]:
        return await self._incomes.create(fields)

    async def update_income(
        self, income_id: int, fields: Mapping[str, object]
    ) -> ServiceResult[IncomeEvent]:
        return await self._incomes.update(income_id, fields)

    async def delete_income(self, income_id: int) -> ServiceResult[None]:
        return await self._incomes.remove(income_id)

    def refresh(self) -> None:
        self._incomes.refresh()
        self._accounts.refresh()

    async def wait_idle(self) -> None:
        await asyncio.gather(self._incomes.wait_idle(), self._accounts.wait_idle())

    def close(self) -> None:
        self._incomes.close()
        self._accounts.close()
