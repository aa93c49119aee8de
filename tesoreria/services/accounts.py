"""Accounts View Service: CRUD over the ``cuentas`` collection."""

from __future__ import annotations

from typing import Mapping, Optional

from tesoreria.errors import ErrorKind
from tesoreria.logger import StructuredLogger
from tesoreria.models.account import Account
from tesoreria.models.service_models import ServiceResult
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.base_service import BaseService
from tesoreria.sync import CollectionSync, open_collection


class AccountsView(BaseService):
    def __init__(self, store: RemoteStore, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._accounts: CollectionSync[Account] = open_collection(store, Account, logger)

    @property
    def accounts(self) -> list[Account]:
        return self._accounts.records

    @property
    def is_loading(self) -> bool:
        return self._accounts.is_loading

    @property
    def last_error(self) -> Optional[ErrorKind]:
        return self._accounts.last_error

    def total_balance(self) -> float:
        return sum(account.balance for account in self._accounts.records)

    async def create_account(self, fields: Mapping[str, object]) -> ServiceResult[Account]:
        return await self._accounts.create(fields)

    async def update_account(
        self, account_id: int, fields: Mapping[str, object]
    ) -> ServiceResult[Account]:
        return await self._accounts.update(account_id, fields)

    async def delete_account(self, account_id: int) -> ServiceResult[None]:
        return await self._accounts.remove(account_id)

    def refresh(self) -> None:
        self._accounts.refresh()

    async def wait_idle(self) -> None:
        await self._accounts.wait_idle()

    def close(self) -> None:
        self._accounts.close()
