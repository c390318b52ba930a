"""Pytest configuration and shared fixtures for Beadwork tests."""

import asyncio
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import patch

import pytest

import config


class FakeConnection:
    """Stands in for a WebSocket: records every JSON message sent to it."""

    def __init__(self, name: str = "client", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.messages: list[dict] = []

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise ConnectionResetError(f"{self.name} is gone")
        self.messages.append(data)

    def of_type(self, kind: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == kind]

    def __repr__(self) -> str:
        return f"FakeConnection({self.name!r})"


class FakeAwatch:
    """Replaces watchfiles.awatch: records calls and idles until stopped."""

    def __init__(self, stop_delay: float = 0) -> None:
        self.calls: list[tuple[tuple, dict]] = []
        self.active = 0
        self.peak = 0
        self.stop_delay = stop_delay

    def __call__(self, *paths: Any, stop_event: Any = None, **kwargs: Any):
        self.calls.append((paths, {"stop_event": stop_event, **kwargs}))
        return self._changes(stop_event)

    async def _changes(self, stop_event: asyncio.Event):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await stop_event.wait()
            if self.stop_delay:
                await asyncio.sleep(self.stop_delay)
        finally:
            self.active -= 1
        return
        yield


@pytest.fixture
def fake_awatch() -> Generator[FakeAwatch, None, None]:
    """Patch the native watch so tests drive changes by hand."""
    fake = FakeAwatch()
    with patch("features.watch.project_watcher.awatch", fake):
        yield fake


@pytest.fixture
def slow_awatch() -> Generator[FakeAwatch, None, None]:
    """Like fake_awatch, but each watch takes a while to wind down once stopped."""
    fake = FakeAwatch(stop_delay=0.1)
    with patch("features.watch.project_watcher.awatch", fake):
        yield fake


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., str]:
    """Create a project directory (with a .beads dir unless beads=False)."""

    def _make(name: str = "proj1", beads: bool = True) -> str:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        if beads:
            (root / config.BEADS_DIR_NAME).mkdir(exist_ok=True)
        return str(root)

    return _make


@pytest.fixture
def projects_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the project registry at a throwaway JSON file."""
    path = tmp_path / "beadwork.projects.json"
    monkeypatch.setattr(config, "PROJECTS_FILE", path)
    return path


def data_change(project_path: str, name: str = "issues.jsonl"):
    """One raw watchfiles-style change for a file in a project's .beads dir."""
    from watchfiles import Change

    return (Change.modified, str(Path(project_path) / config.BEADS_DIR_NAME / name))
