"""
Data contracts for the game catalog.

Pydantic models describing catalog rows and the views derived
from them.
"""

from miku_catalog.contracts.games import (
    CategoryResult,
    GameCategory,
    GameImages,
    GameListItem,
    GameRecord,
)

__all__ = [
    "CategoryResult",
    "GameCategory",
    "GameImages",
    "GameListItem",
    "GameRecord",
]
