"""
Member Registration Service.

Backs the registration form: given a DNI it suggests form values, first
from an existing member row and otherwise from the national-ID registry,
then saves the form as a new member or as an update of the existing one.

The national-ID lookup is strictly best effort.  When it is not
configured or fails, the prefill degrades to manual entry and the form
stays usable.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

from tesoreria.errors import (
    EnrichmentUnavailableError,
    ErrorKind,
    RecordNotFoundError,
    RecordValidationError,
    StoreError,
)
from tesoreria.logger import StructuredLogger
from tesoreria.models.member import Member
from tesoreria.models.service_models import IdentityRecord, MemberPrefill, ServiceResult
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.base_service import BaseService
from tesoreria.services.identity_lookup import NationalIdClient
from tesoreria.sync import CollectionSync
from tesoreria.utils.general import calculate_age

_RE_DNI = re.compile(r"^\d{8}$")

# Member columns never copied into a prefill.
_PREFILL_EXCLUDE: frozenset[str] = frozenset({"id", "created_at"})


def prefill_from_identity(identity: IdentityRecord) -> dict[str, object]:
    """Map a registry match onto member columns.

    The surname is split on its first space into paternal and maternal
    parts, and the locality defaults to the DNI district.
    """
    fields: dict[str, object] = {
        "dni": identity.document_number,
        "nombres": identity.name,
        "apellidoPaterno": identity.paternal_surname,
        "apellidoMaterno": identity.maternal_surname,
        "direccionDNI": identity.address,
        "regionDNI": identity.department,
        "provinciaDNI": identity.province,
        "distritoDNI": identity.district,
        "localidad": identity.district,
    }
    if identity.date_of_birth is not None:
        fields["fechaNacimiento"] = identity.date_of_birth.isoformat()
        fields["edad"] = calculate_age(identity.date_of_birth)
    return fields


class MemberRegistrationService(BaseService):
    """Lookup, prefill and save of titular members."""

    def __init__(
        self,
        store: RemoteStore,
        logger: StructuredLogger,
        identity_client: Optional[NationalIdClient] = None,
    ) -> None:
        super().__init__(logger)
        self._store = store
        self._identity_client = identity_client
        # Not opened: the form never lists members, it only writes them.
        self._members: CollectionSync[Member] = CollectionSync(store, Member, logger)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def find_by_dni(self, dni: str) -> ServiceResult[Optional[Member]]:
        """Return the member registered with *dni*; ``data`` is ``None`` if absent."""
        try:
            row = await self._store.find_one(Member.TABLE, {"dni": dni.strip()})
            member = Member.parse_row(row) if row is not None else None
        except RecordNotFoundError:
            return ServiceResult(success=True, data=None)
        except StoreError as exc:
            self._logger.warning("Member lookup by DNI failed: %s", exc.message)
            return ServiceResult.from_error(exc)
        return ServiceResult(success=True, data=member)

    async def prefill_from_dni(self, dni: str) -> ServiceResult[MemberPrefill]:
        """Suggest registration form values for *dni*.

        An existing member wins over the national registry.  When the
        registry cannot help, the result is still successful with
        ``source="manual"`` and ``error_kind`` set to
        ``ENRICHMENT_UNAVAILABLE``.
        """
        dni = (dni or "").strip()
        if not _RE_DNI.match(dni):
            return ServiceResult.from_error(
                RecordValidationError(
                    "Por favor, ingresa un DNI de 8 dígitos.",
                    field_errors={"dni": "El DNI debe ser 8 dígitos numéricos."},
                )
            )

        existing = await self.find_by_dni(dni)
        if not existing.success:
            return ServiceResult(
                success=False,
                error=existing.error,
                error_kind=existing.error_kind,
                field_errors=existing.field_errors,
                status_code=existing.status_code,
            )
        member = existing.data
        if member is not None:
            self._logger.info("DNI %s already registered as member %s.", dni, member.id)
            fields = member.model_dump(by_alias=True, mode="json", exclude=set(_PREFILL_EXCLUDE))
            return ServiceResult(
                success=True,
                data=MemberPrefill(
                    source="registry",
                    fields=fields,
                    existing_member_id=member.id,
                ),
            )

        if self._identity_client is None:
            return self._manual_prefill(
                dni, EnrichmentUnavailableError("National ID lookup is not configured.")
            )

        try:
            identity = await self._identity_client.lookup(dni)
        except EnrichmentUnavailableError as exc:
            return self._manual_prefill(dni, exc)

        return ServiceResult(
            success=True,
            data=MemberPrefill(source="national_id", fields=prefill_from_identity(identity)),
        )

    def _manual_prefill(
        self, dni: str, exc: EnrichmentUnavailableError
    ) -> ServiceResult[MemberPrefill]:
        self._logger.info("Falling back to manual entry for DNI %s: %s", dni, exc.message)
        return ServiceResult(
            success=True,
            data=MemberPrefill(source="manual", fields={"dni": dni}, warning=exc.message),
            error=exc.message,
            error_kind=ErrorKind.ENRICHMENT_UNAVAILABLE,
        )

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def register(self, fields: Mapping[str, object]) -> ServiceResult[Member]:
        """Create a member; a duplicate DNI yields ``UNIQUENESS_VIOLATION``."""
        return await self._members.create(fields)

    async def update(
        self, member_id: int, fields: Mapping[str, object]
    ) -> ServiceResult[Member]:
        return await self._members.update(member_id, fields)

    async def save(
        self,
        fields: Mapping[str, object],
        existing_member_id: Optional[int] = None,
    ) -> ServiceResult[Member]:
        """Submit the form: update when a member was prefilled, else register."""
        if existing_member_id is not None:
            return await self.update(existing_member_id, fields)
        return await self.register(fields)

    async def wait_idle(self) -> None:
        await self._members.wait_idle()

    def close(self) -> None:
        self._members.close()
