"""
Features package — each sub-package encapsulates a self-contained feature.

Convention:
  features/<feature_name>/
    __init__.py      — public API re-exports
    models.py        — data models specific to this feature (if applicable)
    ...              — any other feature-specific modules

Features:
  watch       — live change notifications for a project's .beads directory
  beads       — issue operations via the bd command-line tool, AI helpers
  projects    — JSON-file registry of known projects
  filesystem  — directory listing for the project picker
"""
