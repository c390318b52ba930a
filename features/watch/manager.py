"""
Watch Manager — ties subscriber lifecycle to per-project watchers.

A project has a live ProjectWatcher exactly while at least one connection is
subscribed to it. When a watcher's debounce settles, the manager broadcasts a
single beads-update message to that project's subscribers and nobody else.

The manager is created once by the application lifespan and shut down with it;
all state mutations happen synchronously on the event loop, so no locks.
"""

from __future__ import annotations

import asyncio
import logging

from features.watch.models import Connection, change_notification, connected_message
from features.watch.project_watcher import ProjectWatcher
from features.watch.registry import ConnectionRegistry

log = logging.getLogger(__name__)


class WatchManager:
    """Process-wide registry of subscribers and the watchers serving them."""

    def __init__(
        self,
        debounce_ms: int | None = None,
        stability_ms: int | None = None,
        poll_ms: int | None = None,
    ):
        self.registry = ConnectionRegistry()
        self._watchers: dict[str, ProjectWatcher] = {}
        self._signals: set[asyncio.Task] = set()
        self._stopping: dict[str, asyncio.Future] = {}
        self._watch_options = {
            "debounce_ms": debounce_ms,
            "stability_ms": stability_ms,
            "poll_ms": poll_ms,
        }

    # ── Subscribers ───────────────────────────────────────────────────

    async def add_subscriber(self, connection: Connection, project_path: str) -> None:
        """Subscribe a connection to a project and acknowledge it.

        A connection stays bound to the project it first subscribed to; a
        repeat subscribe re-acknowledges that project and ignores the new path.
        """
        if not project_path:
            raise ValueError("project_path is required")

        bound = self.registry.project_for(connection)
        if bound is not None and bound != project_path:
            log.warning("Connection already bound to %s, ignoring %s", bound, project_path)
            project_path = bound
        else:
            self.registry.subscribe(connection, project_path)

        # A previous watcher for this path may still be shutting down
        stopping = self._stopping.get(project_path)
        if stopping is not None:
            await stopping
            if self.registry.project_for(connection) != project_path:
                return

        self._ensure_watching(project_path)
        log.info(
            "Client subscribed to %s (%d on project, %d total)",
            project_path, self.registry.count_for(project_path), self.registry.total_count(),
        )

        if not await self._send(connection, connected_message(project_path)):
            await self.remove_subscriber(connection)

    async def remove_subscriber(self, connection: Connection) -> None:
        """Unsubscribe a connection; stops the project's watcher if it was the last one."""
        project_path = self.registry.unsubscribe(connection)
        if project_path is None:
            return

        # Detach before awaiting; subscribers arriving meanwhile wait on _stopping
        watcher = self._watchers.pop(project_path, None)
        if watcher is not None:
            await self._stop_watcher(project_path, watcher)
        log.info("Last client left %s", project_path)

    def _stop_watcher(self, project_path: str, watcher: ProjectWatcher) -> asyncio.Future:
        task = asyncio.ensure_future(watcher.stop())
        self._stopping[project_path] = task

        def _done(_: asyncio.Future) -> None:
            if self._stopping.get(project_path) is task:
                del self._stopping[project_path]

        task.add_done_callback(_done)
        return task

    # ── Broadcast ─────────────────────────────────────────────────────

    async def on_debounced_signal(self, project_path: str) -> None:
        """Notify a project's subscribers that its data files changed."""
        if not self.registry.count_for(project_path):
            return
        log.info("Broadcasting update for %s", project_path)
        await self.broadcast(project_path, change_notification(project_path))

    async def broadcast(self, project_path: str, message: dict) -> None:
        """Send a message to every subscriber of one project, dropping any that fail."""
        for connection in self.registry.subscribers_for(project_path):
            if not await self._send(connection, message):
                await self.remove_subscriber(connection)

    async def _send(self, connection: Connection, message: dict) -> bool:
        try:
            await connection.send_json(message)
            return True
        except Exception as e:
            log.warning("Error sending to client on %s: %s", message.get("projectPath"), e)
            return False

    # ── Watchers ──────────────────────────────────────────────────────

    def _ensure_watching(self, project_path: str) -> None:
        watcher = self._watchers.get(project_path)
        if watcher is not None and watcher.is_watching:
            return

        # First subscriber, or an earlier start found no data dir / hit an error
        if watcher is None:
            watcher = ProjectWatcher(project_path, self._on_watcher_change, **self._watch_options)
        if watcher.start():
            self._watchers[project_path] = watcher
        else:
            self._watchers.pop(project_path, None)

    def _on_watcher_change(self, project_path: str) -> None:
        task = asyncio.ensure_future(self.on_debounced_signal(project_path))
        self._signals.add(task)
        task.add_done_callback(self._signals.discard)

    def watcher_for(self, project_path: str) -> ProjectWatcher | None:
        return self._watchers.get(project_path)

    # ── Observability ─────────────────────────────────────────────────

    def count_for(self, project_path: str) -> int:
        return self.registry.count_for(project_path)

    def total_count(self) -> int:
        return self.registry.total_count()

    def watched_paths(self) -> list[str]:
        return [path for path, watcher in self._watchers.items() if watcher.is_watching]

    def status(self) -> dict:
        return {
            "clients": self.total_count(),
            "watched_projects": self.watched_paths(),
            "clients_by_project": {
                path: self.registry.count_for(path) for path in self.registry.project_paths()
            },
        }

    async def shutdown(self) -> None:
        """Stop every watcher and forget every subscriber."""
        watchers = list(self._watchers.values())
        self._watchers.clear()
        self.registry.clear()
        for watcher in watchers:
            await watcher.stop()
        for stopping in list(self._stopping.values()):
            await stopping
        for task in list(self._signals):
            task.cancel()
        log.info("Watch manager shut down (%d watchers stopped)", len(watchers))
