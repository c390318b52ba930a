"""
Data models for the watch feature.

A Subscriber binds one live connection to one project path. Messages sent to
subscribers are plain dicts built fresh for every send.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol


class MessageType(str, Enum):
    CONNECTED = "connected"
    BEADS_UPDATE = "beads-update"


class Connection(Protocol):
    """Anything we can push JSON to (a Starlette WebSocket in production)."""

    async def send_json(self, data: Any) -> None: ...


@dataclass(frozen=True)
class Subscriber:
    """A live connection and the project it was bound to at subscribe time."""
    connection: Connection
    project_path: str


def _message(kind: MessageType, project_path: str) -> dict:
    return {
        "type": kind.value,
        "projectPath": project_path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def connected_message(project_path: str) -> dict:
    """Acknowledgement sent once to a new subscriber."""
    return _message(MessageType.CONNECTED, project_path)


def change_notification(project_path: str) -> dict:
    """Sent to every subscriber of a project when a change burst settles."""
    return _message(MessageType.BEADS_UPDATE, project_path)
