"""
Remote Store Contract.

The collection views depend on this protocol only, never on the Supabase
client directly, so tests can substitute an in-memory fake.  Every
method is a suspension point; implementations raise ``StoreError``
subclasses for typed failures.
"""

from __future__ import annotations

from typing import Mapping, NamedTuple, Optional, Protocol, Union

from tesoreria.models.base import RecordId

FilterValue = Union[str, int, float, bool, None]
Filters = Mapping[str, FilterValue]
Row = dict[str, object]


class OrderBy(NamedTuple):
    """Ordering by one named column."""

    column: str
    descending: bool = False


class RemoteStore(Protocol):
    """Equality-filtered CRUD over named collections."""

    async def select(
        self,
        collection: str,
        filters: Filters,
        order: Optional[OrderBy] = None,
    ) -> list[Row]:
        """Return every row matching all equality *filters*."""
        ...

    async def find_one(self, collection: str, filters: Filters) -> Optional[Row]:
        """Return the first matching row, or ``None``."""
        ...

    async def insert(self, collection: str, fields: Row) -> Row:
        """Insert one row and return it with server-assigned fields."""
        ...

    async def update(self, collection: str, record_id: RecordId, fields: Row) -> Row:
        """Apply *fields* to the row with *record_id*; raise NotFound if absent."""
        ...

    async def delete(self, collection: str, record_id: RecordId) -> None:
        """Delete the row with *record_id*; raise NotFound if absent."""
        ...
