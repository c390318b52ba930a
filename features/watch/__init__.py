"""
Watch feature — live beads-update notifications over WebSocket.

Public API:
    from features.watch import WatchManager
"""

from features.watch.manager import WatchManager
from features.watch.project_watcher import ProjectWatcher, is_data_file
from features.watch.registry import ConnectionRegistry

__all__ = ["WatchManager", "ProjectWatcher", "ConnectionRegistry", "is_data_file"]
