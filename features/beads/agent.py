"""
AI helpers for issues: short titles from descriptions, and work plans.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from features.beads.models import PlanResult
from utils.llm import chat, extract_json_object, strip_fences

log = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Issue"
MAX_TITLE_CHARS = 50

TITLE_SYSTEM = "You write concise titles for software issues."

TITLE_PROMPT = (
    "Generate a short, concise software issue title (max {max_chars} chars) for the "
    "following description. Return ONLY the title text, no quotes, no preambles:\n\n"
    "{description}"
)

PLAN_SYSTEM = (
    "You are a senior engineer breaking software issues down into actionable plans. "
    "You always answer with a single JSON object."
)

PLAN_PROMPT = """I am working on the following issue:
Title: {title}
Description: {description}
Type: {issue_type}

Create a detailed plan to resolve this issue.
Provide your response in valid JSON format ONLY, with the following structure:
{{
  "plan": "Detailed markdown plan...",
  "subtasks": [
    {{ "title": "Subtask title", "description": "Subtask description", "type": "task" }}
  ]
}}
Return only the JSON object, no other text."""


class PlanParseError(Exception):
    """The model's plan reply could not be turned into a PlanResult."""


def clean_title(raw: str) -> str:
    title = strip_fences(raw)
    if len(title) >= 2 and title[0] == title[-1] and title[0] in "\"'":
        title = title[1:-1].strip()
    return title or DEFAULT_TITLE


def generate_title(description: str) -> str:
    """Ask the model for a one-line title summarizing an issue description."""
    raw = chat(
        TITLE_SYSTEM,
        TITLE_PROMPT.format(max_chars=MAX_TITLE_CHARS, description=description),
        temperature=0.2,
        max_tokens=60,
    )
    title = clean_title(raw)
    log.info("Generated title: %s", title)
    return title


def create_plan(title: str, description: str, issue_type: str = "task") -> PlanResult:
    """Ask the model for a plan and subtasks for an issue."""
    raw = chat(
        PLAN_SYSTEM,
        PLAN_PROMPT.format(title=title, description=description, issue_type=issue_type),
        json_mode=True,
    )
    log.debug("Plan response: %s", raw[:500])
    try:
        return PlanResult.model_validate(extract_json_object(raw))
    except (ValueError, ValidationError) as e:
        raise PlanParseError(f"Failed to parse plan JSON: {e}") from e
