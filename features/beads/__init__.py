"""
Beads feature — issue operations backed by the `bd` command-line tool.

Public API:
    from features.beads import run_bd, BdCommandError
    from features.beads import agent as bead_agent
"""

from features.beads.cli import BdCommandError, parse_created_id, run_bd

__all__ = ["BdCommandError", "parse_created_id", "run_bd"]
