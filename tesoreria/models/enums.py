"""
Shared Enumerations for Tesorería Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents, and the values
are exactly what the remote store holds in its columns.
"""

from __future__ import annotations
from enum import StrEnum


class EconomicSituation(StrEnum):
    """Economic classification of a titular member.

    A member with no classification stores ``NULL``; that case is modelled
    as ``None`` on the record, not as an enum member.
    """

    POBRE = "Pobre"
    EXTREMO_POBRE = "Extremo Pobre"


class DerivedStatus(StrEnum):
    """Payment status computed per member at read time.  Never persisted."""

    PAID = "Pagado"
    EXEMPT = "Exonerado"
    UNPAID = "No Pagado"


class TransactionType(StrEnum):
    """Kind of income movement."""

    INGRESO = "Ingreso"
    ANULACION = "Anulacion"
    DEVOLUCION = "Devolucion"


class Gender(StrEnum):
    """Options offered by the registration form."""

    MASCULINO = "Masculino"
    FEMENINO = "Femenino"
    OTRO = "Otro"
