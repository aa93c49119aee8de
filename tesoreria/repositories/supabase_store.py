"""
Supabase Store.

``RemoteStore`` implementation over the Supabase (PostgREST) client.

The Supabase client is synchronous, so every query runs on a worker
thread via ``asyncio.to_thread``; application state is never touched from
that thread.  PostgREST and transport failures are translated into the
typed ``StoreError`` hierarchy here, at the edge, so nothing above this
layer needs to know about ``postgrest`` or ``httpx`` exceptions.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Optional, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client as SupabaseClient

from tesoreria.database import DatabaseManager
from tesoreria.errors import (
    RecordNotFoundError,
    RecordValidationError,
    StoreError,
    TransportError,
    UniquenessViolationError,
)
from tesoreria.logger import StructuredLogger
from tesoreria.models.base import RecordId
from tesoreria.repositories.store import Filters, OrderBy, Row
from tesoreria.utils.general import convert_to_json_safe

T = TypeVar("T")

# PostgreSQL / PostgREST error codes
_UNIQUE_VIOLATION = "23505"
_NO_ROWS = "PGRST116"
_VALIDATION_CODES: frozenset[str] = frozenset({
    "22001",  # string too long
    "22003",  # numeric out of range
    "22007",  # invalid datetime format
    "22P02",  # invalid text representation
    "23502",  # not-null violation
    "23503",  # foreign-key violation
    "23514",  # check violation
    "42703",  # undefined column
    "PGRST102",  # invalid request body
    "PGRST204",  # column not found in schema cache
})

_RE_KEY_COLUMN = re.compile(r"Key \((?P<column>[^)]+)\)")
_RE_QUOTED_COLUMN = re.compile(r'column "(?P<column>[^"]+)"')


def translate_api_error(exc: APIError) -> StoreError:
    """Map a PostgREST ``APIError`` onto the typed error hierarchy."""
    code: str = str(exc.code or "")
    message: str = exc.message or str(exc)
    details: str = str(exc.details or "")

    column_match = _RE_KEY_COLUMN.search(details) or _RE_QUOTED_COLUMN.search(message)
    field_errors: dict[str, str] = {}
    if column_match:
        field_errors[column_match.group("column")] = message

    if code == _UNIQUE_VIOLATION:
        return UniquenessViolationError(message, field_errors=field_errors, code=code)
    if code == _NO_ROWS:
        return RecordNotFoundError(message, code=code)
    if code in _VALIDATION_CODES or code.startswith(("22", "23")):
        return RecordValidationError(message, field_errors=field_errors, code=code)
    return TransportError(message, code=code or None)


class SupabaseStore:
    """Async ``RemoteStore`` backed by the shared Supabase client."""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for cloud operations."""
        return self._db.supabase

    # ------------------------------------------------------------------
    # RemoteStore API
    # ------------------------------------------------------------------

    async def select(
        self,
        collection: str,
        filters: Filters,
        order: Optional[OrderBy] = None,
    ) -> list[Row]:
        def _select() -> list[Row]:
            query = self._apply_filters(
                self.supabase.table(collection).select("*"), filters
            )
            if order is not None:
                query = query.order(order.column, desc=order.descending)
            response = query.execute()
            return list(response.data or [])

        return await self._run(_select, operation_name=f"select ({collection})")

    async def find_one(self, collection: str, filters: Filters) -> Optional[Row]:
        def _find_one() -> Optional[Row]:
            query = self._apply_filters(
                self.supabase.table(collection).select("*"), filters
            )
            response = query.limit(1).execute()
            rows = response.data or []
            return rows[0] if rows else None

        return await self._run(_find_one, operation_name=f"find_one ({collection})")

    async def insert(self, collection: str, fields: Row) -> Row:
        def _insert() -> Row:
            response = (
                self.supabase.table(collection)
                .insert(convert_to_json_safe(fields))
                .execute()
            )
            rows = response.data or []
            if not rows:
                raise TransportError(
                    f"Insert into {collection} returned no row."
                )
            return rows[0]

        return await self._run(_insert, operation_name=f"insert ({collection})")

    async def update(self, collection: str, record_id: RecordId, fields: Row) -> Row:
        def _update() -> Row:
            response = (
                self.supabase.table(collection)
                .update(convert_to_json_safe(fields))
                .eq("id", record_id)
                .execute()
            )
            rows = response.data or []
            if not rows:
                raise RecordNotFoundError(
                    f"No record {record_id!r} in {collection}."
                )
            return rows[0]

        return await self._run(_update, operation_name=f"update ({collection})")

    async def delete(self, collection: str, record_id: RecordId) -> None:
        def _delete() -> None:
            response = (
                self.supabase.table(collection)
                .delete()
                .eq("id", record_id)
                .execute()
            )
            if not response.data:
                raise RecordNotFoundError(
                    f"No record {record_id!r} in {collection}."
                )

        await self._run(_delete, operation_name=f"delete ({collection})")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_filters(query, filters: Filters):
        for column, value in filters.items():
            if value is None:
                query = query.is_(column, "null")
            else:
                query = query.eq(column, convert_to_json_safe(value))
        return query

    async def _run(self, op: Callable[[], T], *, operation_name: str) -> T:
        """Execute *op* off the event loop, translating every failure."""
        try:
            return await asyncio.to_thread(op)
        except StoreError as exc:
            self._logger.warning("%s failed: %s", operation_name, exc.message)
            raise
        except APIError as exc:
            translated = translate_api_error(exc)
            self._logger.warning(
                "%s rejected by remote store (%s): %s",
                operation_name,
                translated.kind,
                translated.message,
            )
            raise translated from exc
        except (httpx.HTTPError, OSError) as exc:
            self._logger.warning("%s transport failure: %s", operation_name, exc)
            raise TransportError(f"Remote store unreachable: {exc}") from exc
        except Exception as exc:
            self._logger.error(
                "Unexpected failure during %s: %s", operation_name, exc, exc_info=True,
            )
            raise TransportError(f"Unexpected remote store failure: {exc}") from exc
