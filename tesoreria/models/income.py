"""
IncomeEvent Model.

An income receipt stored in the ``ingresos`` collection.  Receipts
reference the paying member by DNI (the natural key), not by the member's
internal id, so the join key may be absent or duplicated.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import Field, field_validator

from tesoreria.models.base import RecordInput, StoreRecord, coerce_enum
from tesoreria.models.enums import TransactionType
from tesoreria.models.member import DNI_PATTERN


class IncomeInput(RecordInput):
    """Create / edit payload for an income receipt."""

    receipt_number: str = Field(min_length=1, max_length=255)
    dni: str = Field(pattern=DNI_PATTERN)
    full_name: str = Field(min_length=1, max_length=255)
    amount: float = Field(gt=0)
    account: str = Field(min_length=1)
    date: dt.date
    transaction_type: Optional[TransactionType] = None
    numero_operacion: Optional[str] = Field(default=None, alias="numeroOperacion")


class IncomeEvent(StoreRecord):
    """Represents an income receipt row."""

    TABLE = "ingresos"
    INPUT_MODEL = IncomeInput

    id: int
    receipt_number: str = ""
    dni: Optional[str] = None
    full_name: str = ""
    amount: float = 0.0
    account: str = ""
    date: Optional[dt.date] = None
    transaction_type: Optional[TransactionType] = None
    numero_operacion: Optional[str] = Field(default=None, alias="numeroOperacion")

    @field_validator("transaction_type", mode="before")
    @classmethod
    def _read_transaction_type(cls, value: object) -> Optional[TransactionType]:
        return coerce_enum(TransactionType, value)
