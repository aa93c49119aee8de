"""
Repository Layer Package.

Provides the remote-store contract and its Supabase implementation.
All remote operations flow through a ``RemoteStore``; services and
collection views never touch the Supabase client directly.

Usage:
    from tesoreria.repositories import SupabaseStore, RemoteStore
"""

from tesoreria.repositories.store import Filters, OrderBy, RemoteStore, Row
from tesoreria.repositories.supabase_store import SupabaseStore, translate_api_error

__all__ = [
    "Filters",
    "OrderBy",
    "RemoteStore",
    "Row",
    "SupabaseStore",
    "translate_api_error",
]
