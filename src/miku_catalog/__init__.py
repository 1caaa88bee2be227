"""
Miku Catalog.

Async data-access layer for a game catalog hosted on a
backend-as-a-service, plus a release version sync tool.
"""

from miku_catalog.client import (
    CatalogClient,
    CatalogError,
    ConnectionConfigError,
    ConnectionHandle,
    RemoteQueryError,
    get_connection,
    reconfigure,
)
from miku_catalog.config import Settings, get_settings
from miku_catalog.contracts import (
    CategoryResult,
    GameCategory,
    GameImages,
    GameListItem,
    GameRecord,
)
from miku_catalog.logger import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    "CatalogClient",
    "CatalogError",
    "CategoryResult",
    "ConnectionConfigError",
    "ConnectionHandle",
    "GameCategory",
    "GameImages",
    "GameListItem",
    "GameRecord",
    "RemoteQueryError",
    "Settings",
    "get_connection",
    "get_logger",
    "get_settings",
    "reconfigure",
    "setup_logging",
    "__version__",
]
