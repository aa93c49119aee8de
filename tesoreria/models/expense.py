"""
Expense Model.

An outgoing payment stored in the ``gastos`` collection, optionally linked
to a collaborator by UUID.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, Union
from uuid import UUID

from pydantic import AliasChoices, Field

from tesoreria.models.base import RecordInput, StoreRecord


class ExpenseInput(RecordInput):
    """Create / edit payload for an expense."""

    amount: float = Field(gt=0)
    account: str = Field(min_length=1)
    date: dt.date
    category: str = Field(min_length=1)
    subcategory: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("subcategory", "sub_category"),
    )
    description: str = Field(min_length=1, max_length=255)
    numero_gasto: Optional[str] = None
    colaborador_id: Optional[UUID] = None


class Expense(StoreRecord):
    """Represents an expense row.  Older rows use integer ids, newer ones UUIDs."""

    TABLE = "gastos"
    INPUT_MODEL = ExpenseInput

    id: Union[int, str]
    category: str = ""
    subcategory: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("subcategory", "sub_category"),
    )
    description: Optional[str] = None
    amount: float = 0.0
    date: Optional[dt.date] = None
    numero_gasto: Optional[str] = None
    colaborador_id: Optional[str] = None
    account: str = ""
