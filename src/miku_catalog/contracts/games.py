"""
Data contracts for game catalog rows.

These Pydantic models define the expected structure of rows
returned by the catalog tables, providing validation and type safety.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class GameCategory(str, Enum):
    """
    Game classification, one remote table per category.

    Declaration order is the order multi-table operations walk.
    """

    GENERAL = "games"
    ADULT = "h_games"
    VISUAL_NOVEL = "galgames"

    @property
    def table_name(self) -> str:
        """Remote table backing this category."""
        return self.value


class GameRecord(BaseModel):
    """Minimal game row as stored in a category table."""

    id: str = Field(..., description="Row identifier, unique within its table")
    title: str = Field(..., description="Display title")
    image_urls: list[str] = Field(default_factory=list, description="Screenshot URLs")
    cover_image_url: str | None = Field(default=None, description="Cover image URL")
    version: str | None = Field(default=None, description="Release version string")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")

    @field_validator("image_urls", "tags", mode="before")
    @classmethod
    def null_to_empty(cls, v: list[str] | None) -> list[str]:
        """Treat null array columns as empty."""
        return [] if v is None else v


class GameListItem(BaseModel):
    """
    Game summary for list and search views.

    Never persisted; ``category`` records which table it came from.
    """

    id: str
    title: str
    cover_image_url: str | None = None
    category: GameCategory
    version: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def null_to_empty(cls, v: list[str] | None) -> list[str]:
        return [] if v is None else v

    @classmethod
    def from_record(cls, record: GameRecord, category: GameCategory) -> "GameListItem":
        """Build a list item from a full record fetched from ``category``."""
        return cls(
            id=record.id,
            title=record.title,
            cover_image_url=record.cover_image_url,
            category=category,
            version=record.version,
            tags=list(record.tags),
        )


class GameImages(BaseModel):
    """Full image list for a single game."""

    id: str
    image_urls: list[str] = Field(default_factory=list)

    @field_validator("image_urls", mode="before")
    @classmethod
    def null_to_empty(cls, v: list[str] | None) -> list[str]:
        return [] if v is None else v


class CategoryResult(BaseModel):
    """
    Outcome of one category query inside a multi-table operation.

    Failed categories carry ``error_message`` and no items.
    """

    category: GameCategory
    success: bool
    items: list[GameListItem] = Field(default_factory=list)
    error_message: str | None = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float | None = None
