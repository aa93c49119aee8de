"""General Utility Functions."""

from __future__ import annotations

import math
import unicodedata
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Union
from uuid import UUID

__all__ = [
    "calculate_age",
    "convert_to_json_safe",
    "normalize_search_text",
]


# ---------------------------------------------------------------------------
# Type definitions
# ---------------------------------------------------------------------------

JsonSafeType = Union[
    None,
    str,
    int,
    bool,
    float,
    Dict[str, "JsonSafeType"],
    List["JsonSafeType"],
]
"""The set of types that are natively representable in JSON."""

JsonInputType = Union[
    None,
    str,
    int,
    bool,
    float,
    Decimal,
    datetime,
    date,
    UUID,
    Dict[str, "JsonInputType"],
    List["JsonInputType"],
]
"""All types accepted as input to :func:`convert_to_json_safe`."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def convert_to_json_safe(data: JsonInputType) -> JsonSafeType:
    """Recursively convert a data structure to JSON-safe types.

    PostgREST receives request bodies as JSON, so every payload sent to
    the store passes through here first.

    Handles:
    - ``datetime`` / ``date`` objects -> ISO-format strings
    - ``Decimal`` -> ``float``
    - ``UUID`` -> ``str``
    - ``float`` NaN / Inf -> ``None``
    - Nested dicts, lists and tuples
    """
    if data is None:
        return None

    if isinstance(data, (str, int, bool)):
        return data

    if isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            return None
        return data

    if isinstance(data, Decimal):
        return float(data)

    # datetime MUST be checked before date because datetime is a subclass of date.
    if isinstance(data, datetime):
        return data.isoformat()

    if isinstance(data, date):
        return data.isoformat()

    if isinstance(data, UUID):
        return str(data)

    if isinstance(data, dict):
        return {key: convert_to_json_safe(value) for key, value in data.items()}

    if isinstance(data, (list, tuple)):
        return [convert_to_json_safe(item) for item in data]

    return str(data)


def calculate_age(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Return whole years elapsed since *birth_date*, or ``None``.

    Future birth dates yield ``None`` rather than a negative age.
    """
    if birth_date is None:
        return None
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()
    reference = today or date.today()
    years = reference.year - birth_date.year
    if (reference.month, reference.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years if years >= 0 else None


def normalize_search_text(value: Optional[object]) -> str:
    """Lower-case *value*, strip accents and collapse whitespace.

    ``None`` becomes the empty string so callers can concatenate
    optional name parts freely.
    """
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())
