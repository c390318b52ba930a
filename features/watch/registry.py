"""
Connection Registry — which connection is subscribed to which project.

Both directions are kept in sync here and nowhere else, so watcher lifecycle
decisions can be driven purely by the 0→1 and 1→0 count transitions this
class reports. All methods are total: unknown connections are no-ops.
"""

from __future__ import annotations

import logging

from features.watch.models import Connection, Subscriber

log = logging.getLogger(__name__)


class ConnectionRegistry:
    """Bidirectional index of subscriber ↔ project path."""

    def __init__(self) -> None:
        self._subscribers: dict[Connection, Subscriber] = {}
        self._by_project: dict[str, set[Connection]] = {}

    def subscribe(self, connection: Connection, project_path: str) -> bool:
        """Register a connection. Returns True if it is the project's first subscriber."""
        if connection in self._subscribers:
            # A connection is bound once for its lifetime
            return False

        self._subscribers[connection] = Subscriber(connection, project_path)
        connections = self._by_project.setdefault(project_path, set())
        connections.add(connection)
        log.debug("Subscribed connection to %s (%d total)", project_path, len(connections))
        return len(connections) == 1

    def unsubscribe(self, connection: Connection) -> str | None:
        """Remove a connection. Returns its project path if that was the last subscriber."""
        subscriber = self._subscribers.pop(connection, None)
        if subscriber is None:
            return None

        project_path = subscriber.project_path
        connections = self._by_project.get(project_path)
        if connections is None:
            return None
        connections.discard(connection)
        if connections:
            return None

        del self._by_project[project_path]
        return project_path

    def project_for(self, connection: Connection) -> str | None:
        subscriber = self._subscribers.get(connection)
        return subscriber.project_path if subscriber else None

    def subscribers_for(self, project_path: str) -> list[Connection]:
        """Snapshot of the connections bound to a project."""
        return list(self._by_project.get(project_path, ()))

    def count_for(self, project_path: str) -> int:
        return len(self._by_project.get(project_path, ()))

    def total_count(self) -> int:
        return len(self._subscribers)

    def project_paths(self) -> list[str]:
        return list(self._by_project)

    def clear(self) -> None:
        self._subscribers.clear()
        self._by_project.clear()
