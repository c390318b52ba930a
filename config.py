"""
Configuration — loads settings from environment / .env file.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent
PROJECTS_FILE = Path(os.getenv("BEADWORK_PROJECTS_FILE", "beadwork.projects.json"))

# Server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3001"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
    if origin.strip()
]

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1")

# bd command-line tool
BD_BINARY = os.getenv("BD_BINARY", "bd")
BD_TIMEOUT_SEC = float(os.getenv("BD_TIMEOUT_SEC", "60"))

# Data directory inside each project, and the files in it that carry issue data
BEADS_DIR_NAME = ".beads"
DATA_FILES = frozenset({
    "issues.jsonl",
    "beads.db",
    "beads.db-wal",
    "beads.db-shm",
    "deletions.jsonl",
})

# Sockets, locks, pid files and the daemon log never count as data changes
IGNORED_FILE_PATTERNS = ("*.sock", "*.lock", "*.pid", "daemon.log")

# Live updates (milliseconds)
WATCH_DEBOUNCE_MS = int(os.getenv("WATCH_DEBOUNCE_MS", "300"))
WATCH_STABILITY_MS = int(os.getenv("WATCH_STABILITY_MS", "100"))
WATCH_POLL_MS = int(os.getenv("WATCH_POLL_MS", "50"))
