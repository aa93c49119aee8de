"""
Collaborator Model.

Staff or volunteers ("colaboradores") stored in the ``colaboradores``
collection.  Identified by a UUID string; expenses may reference them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from tesoreria.models.base import RecordInput, StoreRecord
from tesoreria.models.member import DNI_PATTERN, PHONE_PATTERN

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CollaboratorInput(RecordInput):
    """Create / edit payload for a collaborator."""

    name: str = Field(min_length=1, max_length=255)
    apellidos: str = Field(min_length=1, max_length=255)
    dni: str = Field(pattern=DNI_PATTERN)
    celular: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)


class Collaborator(StoreRecord):
    """Represents a collaborator row."""

    TABLE = "colaboradores"
    INPUT_MODEL = CollaboratorInput

    id: str  # Supabase UUID
    name: str = ""
    apellidos: str = ""
    dni: str = ""
    celular: Optional[str] = None
    email: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.apellidos}".strip()
