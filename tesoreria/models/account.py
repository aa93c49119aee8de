"""
Account Model.

A money account ("cuenta") stored in the ``cuentas`` collection.  Income
and expense rows reference accounts by name.
"""

from __future__ import annotations

from pydantic import Field

from tesoreria.models.base import RecordInput, StoreRecord


class AccountInput(RecordInput):
    """Create / edit payload for an account."""

    name: str = Field(min_length=1, max_length=255)
    balance: float = 0.0


class Account(StoreRecord):
    """Represents an account row."""

    TABLE = "cuentas"
    INPUT_MODEL = AccountInput
    ORDER_BY = "name"
    ORDER_DESC = False

    id: int
    name: str = ""
    balance: float = 0.0
