"""
Database Connection Layer.

Owns the single Supabase (cloud PostgreSQL) client for the process.  The
remote store is the only source of truth; every view keeps an in-memory
cache that is valid only between fetches.

Data access is performed through ``SupabaseStore``.  This module only
manages the raw *connection*; it contains no query logic.

Usage (dependency injection at app startup)::

    from tesoreria.database import DatabaseManager
    from tesoreria.logger import StructuredLogger

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
    # Inject `db` into the store adapter.
"""

from __future__ import annotations

from typing import Optional

from supabase import Client as SupabaseClient
from supabase import create_client

from tesoreria.errors import TransportError
from tesoreria.logger import StructuredLogger


class DatabaseManager:
    """Holds the Supabase client, fully configured at construction time.

    When ``supabase_url`` or ``supabase_key`` is empty the client is **not**
    created.  Accessing :pyattr:`supabase` then raises ``TransportError``,
    which the store adapter and the collection views report as a
    connectivity failure instead of crashing.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The Supabase anonymous key.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    client:
        Optional pre-built client (tests inject a mock here).
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
        client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._supabase: Optional[SupabaseClient] = client

        if self._supabase is not None:
            return

        if supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                self._logger.warning(
                    "Supabase credential format error: %s. Remote store unavailable.",
                    exc,
                )
            except Exception as exc:
                self._logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Remote store unavailable.",
                    exc,
                    exc_info=True,
                )
        else:
            self._logger.warning(
                "Supabase credentials not configured — remote store unavailable."
            )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        TransportError
            If the client was not initialised.
        """
        if self._supabase is None:
            raise TransportError(
                "Supabase client is not initialised; check SUPABASE_URL "
                "and SUPABASE_ANON_KEY."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None
