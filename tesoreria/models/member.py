"""
Member Model.

A titular member ("socio titular") of the organization, stored in the
``socio_titulares`` collection.  The DNI is the natural key used to join
members with their income receipts; it may be absent on legacy rows.

Several remote columns are camelCase, so those fields carry an alias and
payloads are always dumped ``by_alias``.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import Field, field_validator, model_validator

from tesoreria.models.base import RecordInput, StoreRecord, coerce_enum
from tesoreria.models.enums import EconomicSituation, Gender
from tesoreria.utils.general import calculate_age

DNI_PATTERN = r"^\d{8}$"
PHONE_PATTERN = r"^\d{9,15}$"


class MemberInput(RecordInput):
    """Registration / edit payload for a titular member."""

    nombres: str = Field(min_length=1, max_length=255)
    apellido_paterno: str = Field(alias="apellidoPaterno", min_length=1, max_length=255)
    apellido_materno: str = Field(alias="apellidoMaterno", min_length=1, max_length=255)
    dni: str = Field(pattern=DNI_PATTERN)
    fecha_nacimiento: date = Field(alias="fechaNacimiento")
    edad: Optional[int] = Field(default=None, ge=0)
    celular: str = Field(pattern=PHONE_PATTERN)
    situacion_economica: EconomicSituation = Field(alias="situacionEconomica")
    direccion_dni: str = Field(alias="direccionDNI", min_length=1, max_length=255)
    region_dni: str = Field(alias="regionDNI", min_length=1, max_length=255)
    provincia_dni: str = Field(alias="provinciaDNI", min_length=1, max_length=255)
    distrito_dni: str = Field(alias="distritoDNI", min_length=1, max_length=255)
    localidad: str = Field(min_length=1, max_length=255)
    genero: Optional[Gender] = None

    # Housing address (optional, second form tab)
    region_vivienda: Optional[str] = Field(default=None, alias="regionVivienda")
    provincia_vivienda: Optional[str] = Field(default=None, alias="provinciaVivienda")
    distrito_vivienda: Optional[str] = Field(default=None, alias="distritoVivienda")
    direccion_vivienda: Optional[str] = Field(default=None, alias="direccionVivienda")
    mz: Optional[str] = None
    lote: Optional[str] = None

    @model_validator(mode="after")
    def _derive_age(self) -> "MemberInput":
        if self.edad is None:
            self.edad = calculate_age(self.fecha_nacimiento)
        return self

    @classmethod
    def complete_partial(cls, payload: dict[str, object]) -> dict[str, object]:
        """Recompute ``edad`` whenever the birth date changes."""
        birth = payload.get("fechaNacimiento")
        if isinstance(birth, str) and "edad" not in payload:
            payload["edad"] = calculate_age(date.fromisoformat(birth))
        return payload


class Member(StoreRecord):
    """Represents a titular member row."""

    TABLE = "socio_titulares"
    INPUT_MODEL = MemberInput

    id: int
    dni: Optional[str] = None
    nombres: str = ""
    apellido_paterno: str = Field(default="", alias="apellidoPaterno")
    apellido_materno: str = Field(default="", alias="apellidoMaterno")
    fecha_nacimiento: Optional[date] = Field(default=None, alias="fechaNacimiento")
    edad: Optional[int] = None
    celular: Optional[str] = None
    situacion_economica: Optional[EconomicSituation] = Field(
        default=None, alias="situacionEconomica"
    )
    direccion_dni: Optional[str] = Field(default=None, alias="direccionDNI")
    region_dni: Optional[str] = Field(default=None, alias="regionDNI")
    provincia_dni: Optional[str] = Field(default=None, alias="provinciaDNI")
    distrito_dni: Optional[str] = Field(default=None, alias="distritoDNI")
    localidad: Optional[str] = None
    genero: Optional[str] = None
    region_vivienda: Optional[str] = Field(default=None, alias="regionVivienda")
    provincia_vivienda: Optional[str] = Field(default=None, alias="provinciaVivienda")
    distrito_vivienda: Optional[str] = Field(default=None, alias="distritoVivienda")
    direccion_vivienda: Optional[str] = Field(default=None, alias="direccionVivienda")
    mz: Optional[str] = None
    lote: Optional[str] = None

    @field_validator("situacion_economica", mode="before")
    @classmethod
    def _read_situacion(cls, value: object) -> Optional[EconomicSituation]:
        return coerce_enum(EconomicSituation, value)

    @property
    def full_name(self) -> str:
        parts = (self.nombres, self.apellido_paterno, self.apellido_materno)
        return " ".join(part.strip() for part in parts if part and part.strip())
