"""
bd runner — every issue operation goes through the external `bd` tool.

The tool owns the data in each project's .beads directory; this module only
spawns it in the project root and hands back its output.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from typing import Any

import config

log = logging.getLogger(__name__)

CREATED_ID_RE = re.compile(r"Created issue: ([\w-]+)")


class BdCommandError(Exception):
    """bd exited non-zero, timed out, or could not be started."""

    def __init__(self, args: list[str], returncode: int, stderr: str):
        self.command = args
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"bd command failed with code {returncode}: {stderr.strip()}")


def run_bd(args: list[str], cwd: str) -> Any:
    """Run `bd <args>` in a project directory.

    With --json in args the parsed JSON is returned (None for empty output,
    raw text if it doesn't parse); otherwise stdout is returned as text.
    """
    cmd = [config.BD_BINARY, *args]
    log.debug("Running %s in %s", " ".join(cmd), cwd)
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=cwd,
            timeout=config.BD_TIMEOUT_SEC,
        )
    except subprocess.TimeoutExpired:
        raise BdCommandError(args, -1, f"timed out after {config.BD_TIMEOUT_SEC}s")
    except OSError as e:
        raise BdCommandError(args, -1, str(e))

    if result.returncode != 0:
        log.warning("bd %s failed: %s", " ".join(args), result.stderr.strip())
        raise BdCommandError(args, result.returncode, result.stderr)

    stdout = result.stdout
    if "--json" not in args:
        return stdout
    if not stdout.strip():
        return None
    try:
        return json.loads(stdout)
    except json.JSONDecodeError:
        log.error("Failed to parse bd JSON output: %s", stdout[:500])
        return stdout


def parse_created_id(output: Any) -> str | None:
    """Pull the new issue ID out of `bd create` output."""
    if not isinstance(output, str):
        return None
    match = CREATED_ID_RE.search(output)
    return match.group(1) if match else None


def init_project(project_path: str) -> None:
    """Run `bd init` to create a .beads directory."""
    run_bd(["init"], project_path)
