"""
Directory listing for the project picker — subdirectories only, hidden ones skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path

log = logging.getLogger(__name__)


class DirectoryListingError(Exception):
    pass


def list_directory(dir_path: str | None = None) -> dict:
    """List the visible subdirectories of dir_path (home directory by default)."""
    target = Path(dir_path).resolve() if dir_path else Path.home()
    try:
        entries = [
            {"name": child.name, "path": str(child), "isDirectory": True}
            for child in target.iterdir()
            if child.is_dir() and not child.name.startswith(".")
        ]
    except OSError as e:
        log.error("Failed to read directory %s: %s", target, e)
        raise DirectoryListingError("Failed to read directory") from e

    entries.sort(key=lambda entry: entry["name"].lower())
    return {
        "currentPath": str(target),
        "parentPath": None if target.parent == target else str(target.parent),
        "entries": entries,
    }
