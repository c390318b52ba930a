"""
Projects feature — registry of beads projects shown in the UI.
"""

from features.projects.registry import (
    DuplicateProjectError,
    InvalidProjectError,
    ProjectNeedsInitError,
    add_project,
    get_project,
    load_projects,
    remove_project,
)

__all__ = [
    "DuplicateProjectError",
    "InvalidProjectError",
    "ProjectNeedsInitError",
    "add_project",
    "get_project",
    "load_projects",
    "remove_project",
]
