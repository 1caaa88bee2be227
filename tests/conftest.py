"""Shared fixtures."""

from collections.abc import Iterator

import pytest

from miku_catalog.client import connection
from miku_catalog.config import get_settings


@pytest.fixture(autouse=True)
def reset_connection(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test without a process-wide handle or cached settings."""
    monkeypatch.setattr(connection, "_connection", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
