"""Shared utility functions for the Tesorería application.

Convenience re-exports so consumers can import directly from
``tesoreria.utils`` while full absolute imports remain supported.
"""

from tesoreria.utils.audit import AuditEvent, log_audit_event
from tesoreria.utils.general import (
    calculate_age,
    convert_to_json_safe,
    normalize_search_text,
)

__all__ = [
    "AuditEvent",
    "calculate_age",
    "convert_to_json_safe",
    "log_audit_event",
    "normalize_search_text",
]
