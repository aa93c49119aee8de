"""
Service Layer Data Transfer Objects.

Pydantic models for validated output at service boundaries.
Replaces raw dict passing between layers.
"""

from __future__ import annotations

import datetime as dt
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from tesoreria.errors import ErrorKind, StoreError
from tesoreria.models.enums import DerivedStatus
from tesoreria.models.member import Member

T = TypeVar("T")

__all__ = [
    "DashboardSummary",
    "IdentityRecord",
    "MemberPrefill",
    "MonthlyTotals",
    "PaymentStatusCounts",
    "PaymentStatusView",
    "RecentTransaction",
    "ServiceResult",
]


# ---------------------------------------------------------------------------
# Generic service models
# ---------------------------------------------------------------------------

class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    Every mutation of a collection view returns this, providing a
    consistent contract for the calling layer.  ``error_kind`` carries the
    typed failure; ``field_errors`` maps offending input fields to
    messages for inline display.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    field_errors: dict[str, str] = Field(default_factory=dict)
    status_code: int = 200

    @classmethod
    def from_error(cls, exc: StoreError) -> "ServiceResult[T]":
        return cls(
            success=False,
            error=exc.message,
            error_kind=exc.kind,
            field_errors=exc.field_errors,
            status_code=exc.status_code,
        )


# ---------------------------------------------------------------------------
# Payment status
# ---------------------------------------------------------------------------

class PaymentStatusView(BaseModel):
    """Members joined with their derived payment status, keyed by member id."""

    records: list[Member] = Field(default_factory=list)
    status: dict[int, DerivedStatus] = Field(default_factory=dict)

    def status_of(self, member: Member) -> DerivedStatus:
        return self.status.get(member.id, DerivedStatus.UNPAID)


class PaymentStatusCounts(BaseModel):
    """Number of members in each derived status."""

    paid: int = 0
    exempt: int = 0
    unpaid: int = 0


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class MonthlyTotals(BaseModel):
    """Income and expense sums for one ``YYYY-MM`` bucket."""

    month: str
    ingresos: float = 0.0
    gastos: float = 0.0


class RecentTransaction(BaseModel):
    """One row of the dashboard's recent-activity table.

    ``amount`` is always positive; ``is_income`` decides the sign shown.
    """

    date: Optional[dt.date] = None
    created_at: Optional[dt.datetime] = None
    description: str
    category: str
    amount: float
    is_income: bool


class DashboardSummary(BaseModel):
    """Aggregates rendered on the overview page."""

    total_income: float = 0.0
    total_expenses: float = 0.0
    net_balance: float = 0.0
    collaborator_count: int = 0
    member_count: int = 0
    payments: PaymentStatusCounts = Field(default_factory=PaymentStatusCounts)
    monthly: list[MonthlyTotals] = Field(default_factory=list)
    recent_transactions: list[RecentTransaction] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# National-ID enrichment
# ---------------------------------------------------------------------------

class IdentityRecord(BaseModel):
    """Person data returned by the national-ID registry."""

    document_number: str
    name: str = ""
    surname: str = ""
    address: str = ""
    district: str = ""
    province: str = ""
    department: str = ""
    date_of_birth: Optional[dt.date] = None

    @property
    def paternal_surname(self) -> str:
        parts = self.surname.split(" ", 1)
        return parts[0] if parts and parts[0] else ""

    @property
    def maternal_surname(self) -> str:
        parts = self.surname.split(" ", 1)
        return parts[1].strip() if len(parts) > 1 else ""


class MemberPrefill(BaseModel):
    """Registration form values suggested from a DNI lookup.

    ``source`` is ``"registry"`` when the member already exists in the
    store, ``"national_id"`` when filled from the external lookup and
    ``"manual"`` when nothing was found and the user must type it in.
    """

    source: str
    fields: dict[str, object] = Field(default_factory=dict)
    existing_member_id: Optional[int] = None
    warning: Optional[str] = None
