"""
Release version synchronization.

Copies the ``version`` field of ``version.json`` into the app's
other manifests and regenerates the version constant module.
Only the source file is mandatory; failures on targets are logged
and skipped.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

VERSION_MODULE_TEMPLATE = """\
// Global version info - generated by sync-version
// Do not edit this file by hand
export const APP_VERSION = '{version}';
"""


class VersionSyncError(Exception):
    """Raised when the source version file is unusable."""


@dataclass
class VersionSyncPaths:
    """File locations relative to the project root."""

    source: Path = Path("version.json")
    manifests: tuple[Path, ...] = (
        Path("package.json"),
        Path("src-tauri") / "tauri.conf.json",
    )
    version_module: Path = Path("src") / "version.ts"


def read_version(path: Path) -> str:
    """
    Read the ``version`` field from a JSON file.

    Raises:
        VersionSyncError: If the file is unreadable, unparseable or has no version
    """
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = json.load(f)
    except (OSError, ValueError) as e:
        raise VersionSyncError(f"Cannot read {path}: {e}") from e

    version = data.get("version") if isinstance(data, dict) else None
    if not version:
        raise VersionSyncError(f"{path} has no version field")
    return str(version)


def update_manifest(path: Path, version: str) -> None:
    """Set ``version`` in a JSON manifest, keeping its other keys."""
    with path.open(encoding="utf-8") as f:
        manifest = json.load(f)
    manifest["version"] = version
    path.write_text(json.dumps(manifest, indent=2, ensure_ascii=False), encoding="utf-8")


def write_version_module(path: Path, version: str) -> None:
    path.write_text(VERSION_MODULE_TEMPLATE.format(version=version), encoding="utf-8")


def sync_version(root: Path | str = ".", paths: VersionSyncPaths | None = None) -> str:
    """
    Propagate the release version from the source file.

    Args:
        root: Project root the paths are relative to
        paths: File layout (defaults to the app layout)

    Returns:
        str: The version that was propagated

    Raises:
        VersionSyncError: If the source version cannot be read
    """
    root = Path(root)
    paths = paths or VersionSyncPaths()

    version = read_version(root / paths.source)
    logger.info("Syncing version", version=version)

    for manifest in paths.manifests:
        target = root / manifest
        try:
            update_manifest(target, version)
        except (OSError, ValueError, TypeError) as e:
            logger.error("Failed to update manifest", path=str(target), error=str(e))
            continue
        logger.info("Manifest updated", path=str(target))

    module_path = root / paths.version_module
    try:
        write_version_module(module_path, version)
    except OSError as e:
        logger.error("Failed to write version module", path=str(module_path), error=str(e))
    else:
        logger.info("Version module written", path=str(module_path))

    logger.info("Version sync complete", version=version)
    return version
