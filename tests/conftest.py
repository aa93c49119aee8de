"""
Shared fixtures: an in-memory ``RemoteStore`` and a quiet logger.

``FakeStore`` behaves like the Supabase adapter (server-assigned ``id``
and ``created_at``, equality filters, ``NotFound`` on a missing id,
uniqueness on the member DNI) and adds two testing hooks:

    - ``hold_selects``: every ``select`` snapshots its result, then parks
      on a gate until the test releases or fails it, so responses can be
      delivered in any order;
    - ``fail(op, exc)``: the next call of *op* raises *exc*.
"""

from __future__ import annotations

import asyncio
import itertools
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from tesoreria.errors import RecordNotFoundError, UniquenessViolationError
from tesoreria.logger import StructuredLogger
from tesoreria.repositories.store import Filters, OrderBy, Row

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)

UNIQUE_COLUMNS: dict[str, tuple[str, ...]] = {"socio_titulares": ("dni",)}
UUID_COLLECTIONS: frozenset[str] = frozenset({"colaboradores"})


class PendingSelect:
    """A parked ``select`` call waiting for the test to resolve it."""

    def __init__(self, collection: str, filters: dict, rows: list[Row]) -> None:
        self.collection = collection
        self.filters = filters
        self.rows = rows
        self.error: Optional[BaseException] = None
        self.gate = asyncio.Event()

    def release(self) -> None:
        self.gate.set()

    def fail(self, exc: BaseException) -> None:
        self.error = exc
        self.gate.set()


class FakeStore:
    def __init__(self) -> None:
        self.tables: dict[str, list[Row]] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []
        self.hold_selects: bool = False
        self.pending: list[PendingSelect] = []
        self._failures: dict[str, list[BaseException]] = defaultdict(list)
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def seed(self, collection: str, rows: list[Row]) -> None:
        for row in rows:
            row = dict(row)
            row.setdefault("created_at", self._timestamp())
            self.tables[collection].append(row)

    def fail(self, op: str, exc: BaseException) -> None:
        self._failures[op].append(exc)

    async def wait_for_pending(self, count: int) -> None:
        for _ in range(100):
            if len(self.pending) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} parked selects, got {len(self.pending)}")

    def _timestamp(self) -> str:
        return (_EPOCH + timedelta(minutes=next(self._clock))).isoformat()

    def _maybe_fail(self, op: str) -> None:
        if self._failures[op]:
            raise self._failures[op].pop(0)

    @staticmethod
    def _matches(row: Row, filters: Filters) -> bool:
        return all(row.get(column) == value for column, value in filters.items())

    def _find(self, collection: str, record_id) -> Row:
        for row in self.tables[collection]:
            if row.get("id") == record_id:
                return row
        raise RecordNotFoundError(f"No record {record_id!r} in {collection}.")

    def _check_unique(self, collection: str, row: Row, ignore_id=None) -> None:
        for column in UNIQUE_COLUMNS.get(collection, ()):
            value = row.get(column)
            if value in (None, ""):
                continue
            for other in self.tables[collection]:
                if other.get("id") != ignore_id and other.get(column) == value:
                    raise UniquenessViolationError(
                        f'duplicate key value violates unique constraint "{collection}_{column}_key"',
                        field_errors={column: "Already registered."},
                        code="23505",
                    )

    # ------------------------------------------------------------------
    # RemoteStore API
    # ------------------------------------------------------------------

    async def select(
        self, collection: str, filters: Filters, order: Optional[OrderBy] = None
    ) -> list[Row]:
        self.calls.append(("select", collection))
        self._maybe_fail("select")
        rows = [dict(row) for row in self.tables[collection] if self._matches(row, filters)]
        if order is not None:
            rows.sort(
                key=lambda row: (row.get(order.column) is None, row.get(order.column) or ""),
                reverse=order.descending,
            )
        if self.hold_selects:
            pending = PendingSelect(collection, dict(filters), rows)
            self.pending.append(pending)
            await pending.gate.wait()
            if pending.error is not None:
                raise pending.error
        return rows

    async def find_one(self, collection: str, filters: Filters) -> Optional[Row]:
        self.calls.append(("find_one", collection))
        self._maybe_fail("find_one")
        for row in self.tables[collection]:
            if self._matches(row, filters):
                return dict(row)
        return None

    async def insert(self, collection: str, fields: Row) -> Row:
        self.calls.append(("insert", collection))
        self._maybe_fail("insert")
        self._check_unique(collection, fields)
        row = dict(fields)
        row["id"] = str(uuid.uuid4()) if collection in UUID_COLLECTIONS else next(self._ids)
        row["created_at"] = self._timestamp()
        self.tables[collection].append(row)
        return dict(row)

    async def update(self, collection: str, record_id, fields: Row) -> Row:
        self.calls.append(("update", collection))
        self._maybe_fail("update")
        row = self._find(collection, record_id)
        self._check_unique(collection, fields, ignore_id=record_id)
        row.update(fields)
        return dict(row)

    async def delete(self, collection: str, record_id) -> None:
        self.calls.append(("delete", collection))
        self._maybe_fail("delete")
        row = self._find(collection, record_id)
        self.tables[collection].remove(row)


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def member_row(
    member_id: int,
    dni: Optional[str] = None,
    situacion: Optional[str] = "Pobre",
    localidad: Optional[str] = "Centro",
    nombres: str = "Ana",
    paterno: str = "Quispe",
    materno: str = "Mamani",
) -> Row:
    return {
        "id": member_id,
        "dni": dni,
        "nombres": nombres,
        "apellidoPaterno": paterno,
        "apellidoMaterno": materno,
        "situacionEconomica": situacion,
        "localidad": localidad,
    }


def income_row(
    income_id: int,
    dni: Optional[str] = None,
    amount: float = 50.0,
    date: str = "2026-01-15",
    full_name: str = "Ana Quispe",
) -> Row:
    return {
        "id": income_id,
        "receipt_number": f"R-{income_id:03d}",
        "dni": dni,
        "full_name": full_name,
        "amount": amount,
        "account": "BCP",
        "date": date,
        "transaction_type": "Ingreso",
    }


def expense_row(
    expense_id, amount: float = 20.0, date: str = "2026-01-20", category: str = "Servicios"
) -> Row:
    return {
        "id": expense_id,
        "category": category,
        "description": f"Gasto {expense_id}",
        "amount": amount,
        "account": "BCP",
        "date": date,
        "numero_gasto": None,
    }


VALID_MEMBER: dict[str, object] = {
    "nombres": "Rosa",
    "apellidoPaterno": "Huaman",
    "apellidoMaterno": "Flores",
    "dni": "45678912",
    "fechaNacimiento": "1980-05-12",
    "celular": "987654321",
    "situacionEconomica": "Pobre",
    "direccionDNI": "Jr. Lima 123",
    "regionDNI": "Cusco",
    "provinciaDNI": "Cusco",
    "distritoDNI": "Wanchaq",
    "localidad": "Wanchaq",
}

VALID_INCOME: dict[str, object] = {
    "receipt_number": "R-100",
    "dni": "45678912",
    "full_name": "Rosa Huaman Flores",
    "amount": 30,
    "account": "BCP",
    "date": "2026-02-03",
    "transaction_type": "Ingreso",
}

VALID_EXPENSE: dict[str, object] = {
    "amount": 120.5,
    "account": "BCP",
    "date": "2026-02-10",
    "category": "Servicios",
    "description": "Recibo de luz",
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="tesoreria.tests", log_file="")
