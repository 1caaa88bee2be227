"""
Command-line interface for Miku Catalog.

Provides commands to inspect the catalog backend and to sync
the release version across manifests.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel, Field

from miku_catalog.client import CatalogClient, current_connection
from miku_catalog.config import get_settings
from miku_catalog.contracts import GameCategory
from miku_catalog.logger import setup_logging
from miku_catalog.version_sync import VersionSyncError, sync_version

logger = structlog.get_logger(__name__)


class CLIOutput(BaseModel):
    """Structured output for CLI commands."""

    success: bool
    command: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def print_json(output: CLIOutput) -> None:
    """Print output as formatted JSON."""
    print(json.dumps(output.model_dump(mode="json"), indent=2, ensure_ascii=False))


async def cmd_test_config() -> None:
    """Show the loaded configuration."""
    settings = get_settings()

    print_json(
        CLIOutput(
            success=True,
            command="test-config",
            data={
                "environment": settings.environment,
                "backend_url": settings.backend.url,
                "anon_key_configured": bool(settings.backend.anon_key.get_secret_value()),
                "log_level": settings.logging.level,
            },
        )
    )


async def cmd_ping() -> None:
    """Check that the backend answers."""
    reachable = await CatalogClient().check_connectivity()

    # No handle exists when the settings could not build one
    data: dict[str, Any] = {"reachable": reachable}
    handle = current_connection()
    if handle is not None:
        data["url"] = handle.url

    print_json(CLIOutput(success=reachable, command="ping", data=data))


async def cmd_list() -> None:
    """List active games from every category."""
    results = await CatalogClient().fetch_all_category_results()

    print_json(
        CLIOutput(
            success=all(r.success for r in results),
            command="list",
            data=[r.model_dump(mode="json") for r in results],
        )
    )


async def cmd_category(category: str) -> None:
    """Fetch one category."""
    records = await CatalogClient().fetch_category(category)
    print_json(
        CLIOutput(
            success=True,
            command="category",
            data=[r.model_dump(mode="json") for r in records],
        )
    )


async def cmd_detail(game_id: str, category: str) -> None:
    """Fetch the images of one game."""
    images = await CatalogClient().fetch_game_detail(game_id, category)
    print_json(
        CLIOutput(
            success=images is not None,
            command="detail",
            data=images.model_dump(mode="json") if images else None,
            error=None if images else f"No game {game_id} in {category}",
        )
    )


async def cmd_search(keyword: str, category: str | None = None) -> None:
    """Search titles."""
    items = await CatalogClient().search(keyword, category)
    print_json(
        CLIOutput(
            success=True,
            command="search",
            data=[i.model_dump(mode="json") for i in items],
        )
    )


def cmd_sync_version(root: str) -> None:
    """Propagate version.json into the app manifests."""
    try:
        version = sync_version(root)
    except VersionSyncError as e:
        logger.error("Version sync failed", error=str(e))
        print_json(CLIOutput(success=False, command="sync-version", error=str(e)))
        sys.exit(1)

    print_json(CLIOutput(success=True, command="sync-version", data={"version": version}))


def print_usage() -> None:
    """Print CLI usage information."""
    categories = ", ".join(c.value for c in GameCategory)
    usage = f"""
Miku Catalog CLI
================

Usage: miku-catalog <command> [arguments]

Commands:
  test-config                       Show loaded configuration
  ping                              Check backend connectivity
  list                              List active games from all categories
  category <name>                   List active games of one category
  detail <game_id> <category>       Show the images of one game
  search <keyword> [--category <c>] Search titles
  sync-version [root]               Sync version.json into the app manifests

Categories: {categories}
"""
    print(usage)


def parse_args(args: list[str], options: tuple[str, ...]) -> tuple[list[str], dict[str, str]]:
    """
    Split arguments into positionals and ``--name value`` options.

    Options may appear anywhere; a trailing option without a value is dropped.
    """
    positional: list[str] = []
    values: dict[str, str] = {}
    i = 0
    while i < len(args):
        if args[i] in options:
            if i + 1 < len(args):
                values[args[i]] = args[i + 1]
            i += 2
            continue
        positional.append(args[i])
        i += 1
    return positional, values


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1]
    args = sys.argv[2:]

    if command in ("help", "--help", "-h"):
        print_usage()
        return

    setup_logging()

    try:
        if command == "test-config":
            asyncio.run(cmd_test_config())

        elif command == "ping":
            asyncio.run(cmd_ping())

        elif command == "list":
            asyncio.run(cmd_list())

        elif command == "category":
            if not args:
                print("Error: category required")
                sys.exit(1)
            asyncio.run(cmd_category(args[0]))

        elif command == "detail":
            if len(args) < 2:
                print("Error: game_id and category required")
                sys.exit(1)
            asyncio.run(cmd_detail(args[0], args[1]))

        elif command == "search":
            positional, options = parse_args(args, ("--category",))
            if not positional:
                print("Error: keyword required")
                sys.exit(1)
            asyncio.run(cmd_search(positional[0], options.get("--category")))

        elif command == "sync-version":
            cmd_sync_version(args[0] if args else ".")

        else:
            print(f"Unknown command: {command}")
            print_usage()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error", error=str(e))
        print_json(CLIOutput(success=False, command=command, error=str(e)))
        sys.exit(1)


if __name__ == "__main__":
    main()
