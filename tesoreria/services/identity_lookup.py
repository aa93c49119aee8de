"""
National ID Lookup Service.

Best-effort enrichment of the member registration form from the Peruvian
national registry via the consultasperu.com query API.

Request body::

    {"token": "...", "type_document": "dni", "document_number": "12345678"}

Response body::

    {"success": true,
     "data": {"name": ..., "surname": ..., "address": ..., "district": ...,
              "province": ..., "department": ..., "date_of_birth": ...},
     "message": "..."}

Every failure (no token configured, malformed DNI, HTTP or network error,
``success: false``, unparseable payload) raises
``EnrichmentUnavailableError``.  Callers treat that as "fill the form by
hand"; it must never block registering a member.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from tesoreria.errors import EnrichmentUnavailableError
from tesoreria.logger import StructuredLogger
from tesoreria.models.service_models import IdentityRecord
from tesoreria.services.base_service import BaseService

_RE_DNI = re.compile(r"^\d{8}$")
_BIRTH_DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


def _parse_birth_date(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    text = str(raw).strip()[:10]
    for fmt in _BIRTH_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


class NationalIdClient(BaseService):
    """Async client for the national-ID registry.

    Parameters
    ----------
    http:
        Shared ``httpx.AsyncClient`` (tests pass one built on
        ``httpx.MockTransport``).
    api_url:
        Query endpoint.
    api_token:
        API token; an empty token disables lookups.
    logger:
        Structured JSON logger.
    timeout_s:
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_url: str,
        api_token: str,
        logger: StructuredLogger,
        timeout_s: float = 10.0,
    ) -> None:
        super().__init__(logger)
        self._http = http
        self._api_url = api_url
        self._api_token = api_token
        self._timeout_s = timeout_s

    @property
    def is_enabled(self) -> bool:
        return bool(self._api_token)

    async def lookup(self, document_number: str) -> IdentityRecord:
        """Fetch the registry entry for *document_number*.

        Raises:
            EnrichmentUnavailableError: On any failure or when no match exists.
        """
        dni = (document_number or "").strip()
        if not _RE_DNI.match(dni):
            raise EnrichmentUnavailableError(
                "Por favor, ingresa un DNI de 8 dígitos.",
                field_errors={"dni": "El DNI debe ser 8 dígitos numéricos."},
            )
        if not self.is_enabled:
            raise EnrichmentUnavailableError(
                "CONSULTAS_PERU_API_TOKEN is not configured."
            )

        try:
            response = await self._http.post(
                self._api_url,
                json={
                    "token": self._api_token,
                    "type_document": "dni",
                    "document_number": dni,
                },
                timeout=self._timeout_s,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            self._logger.warning(
                "National ID lookup returned HTTP %d for %s.",
                exc.response.status_code,
                dni,
            )
            raise EnrichmentUnavailableError(
                f"National ID service responded with HTTP {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            self._logger.warning("National ID lookup failed for %s: %s", dni, exc)
            raise EnrichmentUnavailableError(
                f"Could not reach the national ID service: {exc}"
            ) from exc
        except ValueError as exc:
            self._logger.warning("National ID lookup returned invalid JSON: %s", exc)
            raise EnrichmentUnavailableError(
                "National ID service returned an unreadable response."
            ) from exc

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(body, dict) or not body.get("success") or not isinstance(data, dict):
            message = body.get("message") if isinstance(body, dict) else None
            self._logger.info("No national ID match for %s.", dni)
            raise EnrichmentUnavailableError(
                message or "No se encontraron datos para el DNI proporcionado."
            )

        try:
            record = IdentityRecord(
                document_number=dni,
                name=str(data.get("name") or "").strip(),
                surname=str(data.get("surname") or "").strip(),
                address=str(data.get("address") or "").strip(),
                district=str(data.get("district") or "").strip(),
                province=str(data.get("province") or "").strip(),
                department=str(data.get("department") or "").strip(),
                date_of_birth=_parse_birth_date(data.get("date_of_birth")),
            )
        except PydanticValidationError as exc:
            raise EnrichmentUnavailableError(
                "National ID service returned an unexpected payload."
            ) from exc

        self._logger.info("National ID match found for %s.", dni)
        return record
