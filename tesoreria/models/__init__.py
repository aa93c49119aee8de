"""
Data Models Package.

Re-exports all Pydantic models for convenient imports:
    from tesoreria.models import Member, IncomeEvent, Expense, Account, Collaborator
    from tesoreria.models import EconomicSituation, DerivedStatus, TransactionType
"""

from __future__ import annotations

from tesoreria.models.account import Account, AccountInput
from tesoreria.models.base import RecordId, RecordInput, StoreRecord
from tesoreria.models.collaborator import Collaborator, CollaboratorInput
from tesoreria.models.enums import DerivedStatus, EconomicSituation, Gender, TransactionType
from tesoreria.models.expense import Expense, ExpenseInput
from tesoreria.models.income import IncomeEvent, IncomeInput
from tesoreria.models.member import Member, MemberInput

__all__ = [
    "Account",
    "AccountInput",
    "Collaborator",
    "CollaboratorInput",
    "DerivedStatus",
    "EconomicSituation",
    "Expense",
    "ExpenseInput",
    "Gender",
    "IncomeEvent",
    "IncomeInput",
    "Member",
    "MemberInput",
    "RecordId",
    "RecordInput",
    "StoreRecord",
    "TransactionType",
]
