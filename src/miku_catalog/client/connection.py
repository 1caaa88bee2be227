"""
Backend connection handle and query builder.

Wraps the hosted backend's PostgREST interface: one handle per
endpoint/key pair, one HTTP round trip per executed query. The
process-wide handle is created lazily and can be swapped with
``reconfigure``.
"""

from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from miku_catalog.config import BackendConfig, get_settings

logger = structlog.get_logger(__name__)

REST_PATH = "/rest/v1"
JSON_ACCEPT = "application/json"
# PostgREST answers 406 unless exactly one row matches
SINGLE_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


class CatalogError(Exception):
    """Base exception for catalog errors."""


class ConnectionConfigError(CatalogError):
    """Raised when a connection handle cannot be built from its settings."""


class RemoteQueryError(CatalogError):
    """Raised when the backend rejects a query or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.table = table
        self.status_code = status_code
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


def _error_message(response: httpx.Response) -> str:
    """Extract the backend's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"


class TableQuery:
    """
    Fluent builder for a single PostgREST query.

    Example:
        >>> rows = await (
        ...     handle.table("games")
        ...     .select("id, title")
        ...     .eq("status", "active")
        ...     .order("created_at", desc=True)
        ...     .execute()
        ... )
    """

    def __init__(self, handle: "ConnectionHandle", table: str) -> None:
        self._handle = handle
        self._table = table
        self._params: list[tuple[str, str]] = []
        self._single = False

    @property
    def table_name(self) -> str:
        return self._table

    @property
    def params(self) -> list[tuple[str, str]]:
        return list(self._params)

    def select(self, columns: str) -> "TableQuery":
        self._params.append(("select", columns.replace(" ", "")))
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self._params.append((column, f"eq.{value}"))
        return self

    def ilike(self, column: str, pattern: str) -> "TableQuery":
        """Case-insensitive LIKE; ``%`` is the wildcard."""
        self._params.append((column, f"ilike.{pattern}"))
        return self

    def order(self, column: str, *, desc: bool = False) -> "TableQuery":
        self._params.append(("order", f"{column}.{'desc' if desc else 'asc'}"))
        return self

    def limit(self, count: int) -> "TableQuery":
        self._params.append(("limit", str(count)))
        return self

    def single(self) -> "TableQuery":
        """Expect exactly one row and return it as an object."""
        self._single = True
        return self

    async def execute(self) -> Any:
        """Run the query and return the decoded JSON payload."""
        return await self._handle.execute(self._table, self._params, single=self._single)


class ConnectionHandle:
    """
    Credentials and endpoint used to issue backend queries.

    Construction validates the endpoint; it does not contact the
    backend. No timeout is configured beyond the transport defaults.
    """

    def __init__(self, url: str, key: str) -> None:
        """
        Initialize the handle.

        Args:
            url: Project endpoint (absolute http/https URL)
            key: Access key sent as ``apikey`` and bearer token

        Raises:
            ConnectionConfigError: If the endpoint is malformed or the key is empty
        """
        url = (url or "").strip().rstrip("/")
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as e:
            raise ConnectionConfigError(f"Invalid backend endpoint: {url!r}") from e

        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ConnectionConfigError(f"Invalid backend endpoint: {url!r}")
        if not key:
            raise ConnectionConfigError("Backend access key is empty")

        self._url = url
        self._key = key
        self._rest_url = f"{url}{REST_PATH}"

    @classmethod
    def from_config(cls, config: BackendConfig) -> "ConnectionHandle":
        """Build a handle from backend settings."""
        return cls(config.url, config.anon_key.get_secret_value())

    @property
    def url(self) -> str:
        return self._url

    @property
    def key(self) -> str:
        return self._key

    @property
    def rest_url(self) -> str:
        return self._rest_url

    def __repr__(self) -> str:
        return f"ConnectionHandle(url={self._url!r})"

    def _headers(self, *, single: bool) -> dict[str, str]:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Accept": SINGLE_OBJECT_ACCEPT if single else JSON_ACCEPT,
            "User-Agent": "MikuCatalog/1.0",
        }

    def table(self, name: str) -> TableQuery:
        """Start a query against ``name``."""
        return TableQuery(self, name)

    async def execute(
        self,
        table: str,
        params: list[tuple[str, str]],
        *,
        single: bool = False,
    ) -> Any:
        """
        Execute one query against ``table``.

        Args:
            table: Remote table name
            params: PostgREST query parameters, in order
            single: Request a single row object instead of a list

        Returns:
            Any: Decoded JSON (list of rows, or one row when ``single``)

        Raises:
            RemoteQueryError: On transport failure, error status or undecodable body
        """
        url = f"{self._rest_url}/{table}"
        logger.debug("Querying table", table=table, params=params, single=single)

        try:
            async with httpx.AsyncClient(
                headers=self._headers(single=single),
                follow_redirects=True,
            ) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise RemoteQueryError(
                f"Request to {table} failed: {e}",
                table=table,
                original_error=e,
            ) from e

        if response.status_code >= 400:
            raise RemoteQueryError(
                _error_message(response),
                table=table,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteQueryError(
                f"Invalid JSON from {table}",
                table=table,
                status_code=response.status_code,
                original_error=e,
            ) from e


# Unsynchronized: only touched from the event loop thread
_connection: ConnectionHandle | None = None


def get_connection() -> ConnectionHandle:
    """
    Return the process-wide handle, creating it from settings on first use.

    Raises:
        ConnectionConfigError: If the configured endpoint is malformed
        pydantic.ValidationError: If endpoint or key are not configured
    """
    global _connection
    if _connection is None:
        _connection = ConnectionHandle.from_config(get_settings().backend)
        logger.info("Backend connection created", url=_connection.url)
    return _connection


def reconfigure(url: str, key: str) -> None:
    """
    Replace the process-wide handle immediately.

    Requests already in flight keep whichever handle they resolved.
    """
    global _connection
    _connection = ConnectionHandle(url, key)
    logger.info("Backend connection reconfigured", url=url)


def current_connection() -> ConnectionHandle | None:
    """Return the process-wide handle if one was built, without building it."""
    return _connection
