"""
Catalog client for the three game tables.

Single-table reads surface ``RemoteQueryError``; multi-table reads
walk the categories one after another and drop (but log) any
category whose query fails.
"""

import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from miku_catalog.client.connection import (
    CatalogError,
    ConnectionHandle,
    RemoteQueryError,
    get_connection,
)
from miku_catalog.contracts import (
    CategoryResult,
    GameCategory,
    GameImages,
    GameListItem,
    GameRecord,
)
from miku_catalog.logger import get_logger

ACTIVE_STATUS = "active"
RECORD_FIELDS = "id, title, image_urls, cover_image_url, version, tags"
LIST_ITEM_FIELDS = "id, title, cover_image_url, version, tags"
IMAGE_FIELDS = "id, image_urls"
SEARCH_LIMIT_PER_CATEGORY = 20
PROBE_CATEGORY = GameCategory.GENERAL

CategoryFetcher = Callable[[GameCategory], Awaitable[list[GameListItem]]]


class CatalogClient:
    """
    Reads game entries from the catalog tables.

    Without an injected handle every call resolves the process-wide
    connection, so ``reconfigure`` applies from the next call on.

    Example:
        >>> client = CatalogClient()
        >>> games = await client.fetch_all_categories()
        >>> hits = await client.search("miku", GameCategory.VISUAL_NOVEL)
    """

    def __init__(self, connection: ConnectionHandle | None = None) -> None:
        self._connection = connection
        self._logger = get_logger(self.__class__.__name__, component="catalog")

    @property
    def connection(self) -> ConnectionHandle:
        return self._connection or get_connection()

    @staticmethod
    def _parse_rows(rows: Any, model: type[BaseModel], table: str) -> list[Any]:
        """Validate a list payload row by row."""
        if not isinstance(rows, list):
            raise RemoteQueryError(
                f"Expected a list of rows from {table}",
                table=table,
            )
        try:
            return [model.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise RemoteQueryError(
                f"Response validation failed: {e}",
                table=table,
                original_error=e,
            ) from e

    async def fetch_category(self, category: GameCategory | str) -> list[GameRecord]:
        """
        Fetch every active game of one category, newest first.

        Args:
            category: Category (or its table name)

        Returns:
            list[GameRecord]: Active rows ordered by creation time, descending

        Raises:
            ValueError: If ``category`` is not a known category
            RemoteQueryError: If the backend rejects the query
        """
        category = GameCategory(category)
        rows = await (
            self.connection.table(category.table_name)
            .select(RECORD_FIELDS)
            .eq("status", ACTIVE_STATUS)
            .order("created_at", desc=True)
            .execute()
        )
        records = self._parse_rows(rows, GameRecord, category.table_name)

        self._logger.debug(
            "Category fetched",
            category=category.value,
            count=len(records),
        )
        return records

    async def _list_category(self, category: GameCategory) -> list[GameListItem]:
        records = await self.fetch_category(category)
        return [GameListItem.from_record(record, category) for record in records]

    async def _search_category(
        self,
        category: GameCategory,
        keyword: str,
    ) -> list[GameListItem]:
        rows = await (
            self.connection.table(category.table_name)
            .select(LIST_ITEM_FIELDS)
            .eq("status", ACTIVE_STATUS)
            .ilike("title", f"%{keyword}%")
            .limit(SEARCH_LIMIT_PER_CATEGORY)
            .execute()
        )
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise RemoteQueryError(
                f"Expected a list of rows from {category.table_name}",
                table=category.table_name,
            )
        tagged = [{**row, "category": category} for row in rows[:SEARCH_LIMIT_PER_CATEGORY]]
        return self._parse_rows(tagged, GameListItem, category.table_name)

    async def _collect(
        self,
        categories: Iterable[GameCategory],
        fetcher: CategoryFetcher,
        operation: str,
    ) -> list[CategoryResult]:
        """Run ``fetcher`` for each category in turn, recording each outcome."""
        results: list[CategoryResult] = []

        for category in categories:
            start_time = time.perf_counter()
            try:
                items = await fetcher(category)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                self._logger.error(
                    f"{operation} failed for category",
                    category=category.value,
                    error=str(e),
                    status_code=getattr(e, "status_code", None),
                )
                results.append(
                    CategoryResult(
                        category=category,
                        success=False,
                        error_message=str(e),
                        duration_ms=duration_ms,
                    )
                )
                continue

            duration_ms = (time.perf_counter() - start_time) * 1000
            results.append(
                CategoryResult(
                    category=category,
                    success=True,
                    items=items,
                    duration_ms=duration_ms,
                )
            )

        return results

    def _fold(self, results: list[CategoryResult], operation: str) -> list[GameListItem]:
        items: list[GameListItem] = []
        for result in results:
            items.extend(result.items)

        successful = sum(1 for r in results if r.success)
        self._logger.info(
            f"{operation} complete",
            categories=len(results),
            successful=successful,
            failed=len(results) - successful,
            total_items=len(items),
        )
        return items

    async def fetch_all_category_results(self) -> list[CategoryResult]:
        """Fetch every category and return the per-category outcomes."""
        return await self._collect(GameCategory, self._list_category, "Listing")

    async def fetch_all_categories(self) -> list[GameListItem]:
        """
        List active games from all categories.

        Categories are queried in declaration order; a category whose
        query fails contributes nothing. Never raises for remote errors.

        Returns:
            list[GameListItem]: Concatenated items, newest first per category
        """
        results = await self.fetch_all_category_results()
        return self._fold(results, "Listing")

    async def fetch_game_detail(
        self,
        game_id: str,
        category: GameCategory | str,
    ) -> GameImages | None:
        """
        Fetch the full image list of one game.

        Returns None when the game does not exist and also when the
        query fails; only the log tells the two apart.
        """
        category = GameCategory(category)
        try:
            row = await (
                self.connection.table(category.table_name)
                .select(IMAGE_FIELDS)
                .eq("id", game_id)
                .single()
                .execute()
            )
            return GameImages.model_validate(row)
        except (CatalogError, PydanticValidationError) as e:
            self._logger.error(
                "Failed to fetch game images",
                game_id=game_id,
                category=category.value,
                error=str(e),
            )
            return None

    async def search(
        self,
        keyword: str,
        category: GameCategory | str | None = None,
    ) -> list[GameListItem]:
        """
        Search active games by title.

        Case-insensitive substring match, at most 20 rows per category,
        in the backend's own order. Failing categories are skipped.

        Args:
            keyword: Title fragment
            category: Restrict to one category (all categories if None)

        Returns:
            list[GameListItem]: Matches in category order
        """
        categories = list(GameCategory) if category is None else [GameCategory(category)]

        async def fetcher(c: GameCategory) -> list[GameListItem]:
            return await self._search_category(c, keyword)

        results = await self._collect(categories, fetcher, "Search")
        return self._fold(results, "Search")

    async def check_connectivity(self) -> bool:
        """Probe the backend with a one-row query; True if it answered."""
        try:
            await self.connection.table(PROBE_CATEGORY.table_name).select("id").limit(1).execute()
        except Exception as e:
            self._logger.warning("Connectivity check failed", error=str(e))
            return False
        return True
