"""
Error Taxonomy.

Typed failures raised by the store adapter, the validation layer and the
national-ID client.  The collection sync layer catches every ``StoreError``
at its boundary and reports the ``ErrorKind`` instead of re-raising, so
view code never needs exception-based control flow.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

__all__ = [
    "ErrorKind",
    "StoreError",
    "RecordValidationError",
    "RecordNotFoundError",
    "UniquenessViolationError",
    "TransportError",
    "EnrichmentUnavailableError",
    "STATUS_CODES",
]


class ErrorKind(StrEnum):
    """Machine-readable failure classification."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNIQUENESS_VIOLATION = "UNIQUENESS_VIOLATION"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    ENRICHMENT_UNAVAILABLE = "ENRICHMENT_UNAVAILABLE"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNIQUENESS_VIOLATION: 409,
    ErrorKind.TRANSPORT_ERROR: 503,
    ErrorKind.ENRICHMENT_UNAVAILABLE: 502,
}


class StoreError(Exception):
    """Base class for every typed failure.

    Attributes
    ----------
    kind:
        The ``ErrorKind`` this exception maps to.
    field_errors:
        Optional ``{field_name: message}`` mapping so forms can show the
        message next to the offending input.
    code:
        Raw remote error code (e.g. PostgREST ``23505``) when available.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT_ERROR

    def __init__(
        self,
        message: str,
        *,
        field_errors: Optional[dict[str, str]] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.field_errors: dict[str, str] = dict(field_errors or {})
        self.code: Optional[str] = code

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class RecordValidationError(StoreError):
    """Input rejected locally or by a remote schema/constraint."""

    kind = ErrorKind.VALIDATION_ERROR


class RecordNotFoundError(StoreError):
    """The addressed record does not exist (stale id reference)."""

    kind = ErrorKind.NOT_FOUND


class UniquenessViolationError(StoreError):
    """A unique natural key already exists in the collection."""

    kind = ErrorKind.UNIQUENESS_VIOLATION


class TransportError(StoreError):
    """Connectivity, timeout or an unclassified remote failure."""

    kind = ErrorKind.TRANSPORT_ERROR


class EnrichmentUnavailableError(StoreError):
    """National-ID lookup failed or returned no match.  Never fatal."""

    kind = ErrorKind.ENRICHMENT_UNAVAILABLE
