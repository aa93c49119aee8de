"""Tests for the income, expense, account and collaborator services."""

from __future__ import annotations

import pytest

from tesoreria.errors import ErrorKind, TransportError
from tesoreria.services.accounts import AccountsView
from tesoreria.services.collaborators import CollaboratorsView
from tesoreria.services.expenses import ExpenseLedger, format_expense_number
from tesoreria.services.income import IncomeLedger
from tests.conftest import VALID_EXPENSE, VALID_INCOME, expense_row, income_row, member_row


class TestIncomeLedger:

    async def test_account_names_sorted_by_name(self, store, logger):
        store.seed("cuentas", [
            {"id": 1, "name": "Caja", "balance": 10},
            {"id": 2, "name": "BCP", "balance": 20},
        ])
        ledger = IncomeLedger(store=store, logger=logger)
        await ledger.wait_idle()

        assert ledger.account_names() == ["BCP", "Caja"]

    async def test_lookup_payer(self, store, logger):
        store.seed("socio_titulares", [
            member_row(1, dni="45678912", nombres="Rosa", paterno="Huaman", materno="Flores"),
        ])
        ledger = IncomeLedger(store=store, logger=logger)

        found = await ledger.lookup_payer("45678912")
        missing = await ledger.lookup_payer("00000000")

        assert found.data == "Rosa Huaman Flores"
        assert missing.success and missing.data is None

    async def test_lookup_payer_transport_failure(self, store, logger):
        store.fail("find_one", TransportError("down"))
        ledger = IncomeLedger(store=store, logger=logger)

        result = await ledger.lookup_payer("45678912")

        assert result.error_kind == ErrorKind.TRANSPORT_ERROR

    async def test_record_update_delete(self, store, logger):
        ledger = IncomeLedger(store=store, logger=logger)
        await ledger.wait_idle()

        created = await ledger.record_income(VALID_INCOME)
        await ledger.wait_idle()
        assert created.success
        assert ledger.total() == 30

        updated = await ledger.update_income(created.data.id, {"amount": 45})
        await ledger.wait_idle()
        assert updated.success
        assert ledger.total() == 45

        deleted = await ledger.delete_income(created.data.id)
        await ledger.wait_idle()
        assert deleted.success
        assert ledger.incomes == []


class TestExpenseLedger:

    @pytest.mark.parametrize(
        ("record_id", "expected"),
        [
            (42, "GAS-000042"),
            ("0b5f3f0a-2a1e-4d4e-9a43-6c2c7b7f1e11", "GAS-0B5F3F0A"),
        ],
    )
    def test_format_expense_number(self, record_id, expected):
        assert format_expense_number(record_id) == expected

    async def test_new_expense_is_numbered_from_its_id(self, store, logger):
        ledger = ExpenseLedger(store=store, logger=logger)
        await ledger.wait_idle()

        result = await ledger.record_expense(VALID_EXPENSE)
        await ledger.wait_idle()

        assert result.success
        assert result.status_code == 201
        assert result.data.numero_gasto == format_expense_number(result.data.id)
        assert ledger.expenses[0].numero_gasto == result.data.numero_gasto

    async def test_explicit_number_is_kept(self, store, logger):
        ledger = ExpenseLedger(store=store, logger=logger)

        result = await ledger.record_expense({**VALID_EXPENSE, "numero_gasto": "GAS-MANUAL"})

        assert result.data.numero_gasto == "GAS-MANUAL"
        assert ("update", "gastos") not in store.calls

    async def test_numbering_failure_still_returns_created_expense(self, store, logger):
        ledger = ExpenseLedger(store=store, logger=logger)
        store.fail("update", TransportError("down"))

        result = await ledger.record_expense(VALID_EXPENSE)

        assert result.success
        assert result.data.numero_gasto is None

    async def test_invalid_expense_is_rejected(self, store, logger):
        ledger = ExpenseLedger(store=store, logger=logger)

        result = await ledger.record_expense({**VALID_EXPENSE, "description": ""})

        assert result.error_kind == ErrorKind.VALIDATION_ERROR
        assert "description" in result.field_errors

    async def test_collaborator_choices_sorted_by_name(self, store, logger):
        store.seed("colaboradores", [
            {"id": "b", "name": "Zoila", "apellidos": "Paz", "dni": "11111111"},
            {"id": "a", "name": "Ana", "apellidos": "Ruiz", "dni": "22222222"},
        ])
        ledger = ExpenseLedger(store=store, logger=logger)
        await ledger.wait_idle()

        assert ledger.collaborator_choices() == [("a", "Ana Ruiz"), ("b", "Zoila Paz")]

    async def test_update_and_delete(self, store, logger):
        store.seed("gastos", [expense_row(5, amount=10)])
        ledger = ExpenseLedger(store=store, logger=logger)
        await ledger.wait_idle()

        assert (await ledger.update_expense(5, {"amount": 15})).success
        await ledger.wait_idle()
        assert ledger.total() == 15

        assert (await ledger.delete_expense(5)).success
        await ledger.wait_idle()
        assert ledger.expenses == []


class TestAccountsAndCollaborators:

    async def test_accounts_crud(self, store, logger):
        view = AccountsView(store=store, logger=logger)
        await view.wait_idle()

        created = await view.create_account({"name": "Caja chica", "balance": 100})
        await view.wait_idle()
        assert created.success
        assert view.total_balance() == 100

        await view.update_account(created.data.id, {"balance": 250})
        await view.wait_idle()
        assert view.total_balance() == 250

        await view.delete_account(created.data.id)
        await view.wait_idle()
        assert view.accounts == []

    async def test_collaborators_crud(self, store, logger):
        view = CollaboratorsView(store=store, logger=logger)
        await view.wait_idle()

        created = await view.create_collaborator(
            {"name": "Luis", "apellidos": "Ramos", "dni": "12345678", "email": "luis@example.com"}
        )
        await view.wait_idle()
        assert created.success
        assert isinstance(created.data.id, str)
        assert [c.full_name for c in view.collaborators] == ["Luis Ramos"]

        bad = await view.update_collaborator(created.data.id, {"celular": "12"})
        assert bad.error_kind == ErrorKind.VALIDATION_ERROR

        removed = await view.delete_collaborator(created.data.id)
        await view.wait_idle()
        assert removed.success
        assert view.collaborators == []
