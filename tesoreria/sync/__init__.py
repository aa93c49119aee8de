"""
Collection Sync Package.

Client-side cached views over remote collections.

Usage:
    from tesoreria.sync import open_collection
"""

from tesoreria.sync.collection_sync import CollectionSync, open_collection

__all__ = ["CollectionSync", "open_collection"]
