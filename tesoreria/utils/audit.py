"""
Structured Audit Logging Utility.

Every successful mutation against the remote store is logged as a
structured JSON object.  Provides a Pydantic-validated model and a single
function for consistent audit trail entries.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from tesoreria.logger import StructuredLogger

__all__ = ["AuditEvent", "log_audit_event"]

# Scalar type permitted inside the ``details`` mapping.  Kept flat;
# nested structures should be modelled explicitly.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit trail entry."""

    timestamp: str
    action: str
    collection: str
    record_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    collection: str,
    record_id: Union[str, int, None],
    details: Optional[dict[str, DetailValue]] = None,
) -> None:
    """Log a structured JSON audit event.

    Args:
        logger: The logger instance to write to.
        action: What happened (``"CREATE"``, ``"UPDATE"``, ``"DELETE"``).
        collection: Remote collection affected (e.g. ``"ingresos"``).
        record_id: Identifier of the affected record.
        details: Optional additional context (e.g. the updated field names).
    """
    event = AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        collection=collection,
        record_id="" if record_id is None else str(record_id),
        details=details or {},
    )
    logger.info(
        "AUDIT: %s",
        json.dumps(event.model_dump(), default=str),
        extra={
            "action": event.action,
            "collection": event.collection,
            "record_id": event.record_id,
        },
    )
