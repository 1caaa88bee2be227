"""
Backend access for the game catalog.

A lazily created connection handle plus a client that reads,
lists and searches the category tables.
"""

from miku_catalog.client.catalog import SEARCH_LIMIT_PER_CATEGORY, CatalogClient
from miku_catalog.client.connection import (
    CatalogError,
    ConnectionConfigError,
    ConnectionHandle,
    RemoteQueryError,
    TableQuery,
    current_connection,
    get_connection,
    reconfigure,
)

__all__ = [
    # Connection
    "ConnectionHandle",
    "TableQuery",
    "current_connection",
    "get_connection",
    "reconfigure",
    # Errors
    "CatalogError",
    "ConnectionConfigError",
    "RemoteQueryError",
    # Client
    "CatalogClient",
    "SEARCH_LIMIT_PER_CATEGORY",
]
