"""
Project registry — the list of projects the UI knows about, kept in a JSON file.

Each entry is {"id", "name", "path"}. A project must be a directory with a
.beads data directory, or be initialized with `bd init` when added.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path

import config
from features.beads.cli import BdCommandError, init_project

log = logging.getLogger(__name__)


class ProjectNeedsInitError(Exception):
    """The directory exists but has no .beads directory yet."""


class InvalidProjectError(Exception):
    pass


class DuplicateProjectError(Exception):
    pass


def _projects_file(path: Path | None) -> Path:
    return Path(path) if path is not None else config.PROJECTS_FILE


def load_projects(path: Path | None = None) -> list[dict]:
    """Read the registry. A missing or unreadable file reads as empty."""
    projects_file = _projects_file(path)
    try:
        with open(projects_file) as f:
            data = json.load(f)
    except FileNotFoundError:
        return []
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Could not read %s: %s", projects_file, e)
        return []
    return data if isinstance(data, list) else []


def save_projects(projects: list[dict], path: Path | None = None) -> None:
    with open(_projects_file(path), "w") as f:
        json.dump(projects, f, indent=2)


def get_project(project_id: str, path: Path | None = None) -> dict | None:
    return next((p for p in load_projects(path) if p.get("id") == project_id), None)


def add_project(project_path: str, init: bool = False, path: Path | None = None) -> dict:
    """Register a project directory, optionally running `bd init` in it first."""
    root = Path(project_path)
    if not root.is_dir():
        raise InvalidProjectError(f"Invalid beads project: not a directory: {project_path}")

    if not (root / config.BEADS_DIR_NAME).exists():
        if not init:
            raise ProjectNeedsInitError(project_path)
        try:
            init_project(project_path)
        except BdCommandError as e:
            raise InvalidProjectError(f"Failed to initialize beads: {e}") from e
        log.info("Initialized beads in %s", project_path)

    projects = load_projects(path)
    if any(p.get("path") == project_path for p in projects):
        raise DuplicateProjectError("Project already exists")

    project = {
        "id": str(uuid.uuid4()),
        "name": root.name,
        "path": project_path,
    }
    projects.append(project)
    save_projects(projects, path)
    log.info("Added project %s (%s)", project["name"], project["id"])
    return project


def remove_project(project_id: str, path: Path | None = None) -> list[dict]:
    """Drop a project by ID and return the remaining list."""
    remaining = [p for p in load_projects(path) if p.get("id") != project_id]
    save_projects(remaining, path)
    return remaining
