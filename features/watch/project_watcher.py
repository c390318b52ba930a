"""
Per-Project Watcher — one filesystem watch on one project's .beads directory.

Raw change batches from watchfiles are filtered down to the tracker's data
files and collapsed into a single debounced signal: every relevant change
(re)arms a timer, and only when the timer runs out undisturbed is the
on_change callback invoked.

Everything here runs on the event loop. The watch itself is an asyncio task
iterating watchfiles.awatch; the debounce timer is a loop.call_later handle.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterable
from fnmatch import fnmatch
from pathlib import Path

from watchfiles import Change, awatch

import config

log = logging.getLogger(__name__)

# Upper bound on how long stop() waits for awatch to notice its stop event
STOP_TIMEOUT_SEC = 2.0


def is_data_file(path: str) -> bool:
    """True if a changed path is one of the tracker's data files."""
    name = os.path.basename(path)
    if any(fnmatch(name, pattern) for pattern in config.IGNORED_FILE_PATTERNS):
        return False
    return name in config.DATA_FILES


def _watch_filter(change: Change, path: str) -> bool:
    return is_data_file(path)


class ProjectWatcher:
    """Debounced change signal for a single project's data directory."""

    def __init__(
        self,
        project_path: str,
        on_change: Callable[[str], None],
        debounce_ms: int | None = None,
        stability_ms: int | None = None,
        poll_ms: int | None = None,
    ):
        self.project_path = project_path
        self.data_dir = Path(project_path) / config.BEADS_DIR_NAME
        self.debounce_ms = config.WATCH_DEBOUNCE_MS if debounce_ms is None else debounce_ms
        self.stability_ms = config.WATCH_STABILITY_MS if stability_ms is None else stability_ms
        self.poll_ms = config.WATCH_POLL_MS if poll_ms is None else poll_ms
        self._on_change = on_change
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._stopped = False

    @property
    def is_watching(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopped

    @property
    def is_pending(self) -> bool:
        return self._timer is not None

    def start(self) -> bool:
        """Begin watching. Returns False (and watches nothing) if there is no data directory."""
        if self.is_watching:
            return True

        if not self.data_dir.is_dir():
            log.info("Beads directory not found: %s", self.data_dir)
            return False

        self._stopped = False
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._watch(self._stop_event), name=f"watch:{self.project_path}",
        )
        log.info("Started watching %s", self.data_dir)
        return True

    async def stop(self) -> None:
        """Cancel any pending signal and release the watch. Safe to call repeatedly."""
        self._stopped = True
        self._cancel_timer()
        if self._stop_event is not None:
            self._stop_event.set()

        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            try:
                await asyncio.wait_for(task, timeout=STOP_TIMEOUT_SEC)
            except asyncio.TimeoutError:
                log.warning("Watcher for %s did not stop within %.1fs", self.project_path, STOP_TIMEOUT_SEC)
        log.info("Stopped watching %s", self.project_path)

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> None:
        """Feed a batch of raw (change, path) events into the debouncer."""
        if self._stopped:
            return

        relevant = False
        for change, path in changes:
            if is_data_file(path):
                log.debug("File %s: %s", change.name, path)
                relevant = True

        if relevant:
            self._schedule()

    async def _watch(self, stop_event: asyncio.Event) -> None:
        try:
            async for changes in awatch(
                self.data_dir,
                watch_filter=_watch_filter,
                stop_event=stop_event,
                debounce=self.stability_ms,
                step=self.poll_ms,
                recursive=True,
            ):
                self.handle_changes(changes)
        except Exception:
            # The watch is gone; make sure nothing queued from it fires either
            log.error("Watcher error for %s", self.project_path, exc_info=True)
            self._cancel_timer()

    def _schedule(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_ms / 1000, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._stopped:
            return
        log.info("Change settled for %s", self.project_path)
        self._on_change(self.project_path)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
