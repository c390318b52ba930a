"""Tests for AI title and plan generation, with the LLM patched out."""

from unittest.mock import Mock, patch

import pytest

from features.beads.agent import PlanParseError, clean_title, create_plan, generate_title
from utils.llm import extract_json_object, strip_fences


class TestTitles:

    @pytest.mark.parametrize("raw, expected", [
        ("Fix login redirect loop", "Fix login redirect loop"),
        ('"Fix login redirect loop"', "Fix login redirect loop"),
        ("```\nAdd dark mode\n```", "Add dark mode"),
        ("   ", "Untitled Issue"),
        ("", "Untitled Issue"),
    ])
    def test_clean_title(self, raw: str, expected: str) -> None:
        assert clean_title(raw) == expected

    @patch("features.beads.agent.chat")
    def test_generate_title_includes_description(self, mock_chat: Mock) -> None:
        mock_chat.return_value = '"Crash on empty project list"'

        title = generate_title("The app crashes when there are no projects yet")

        assert title == "Crash on empty project list"
        prompt = mock_chat.call_args.args[1]
        assert "The app crashes when there are no projects yet" in prompt


class TestPlans:

    @patch("features.beads.agent.chat")
    def test_create_plan_parses_json_with_prose(self, mock_chat: Mock) -> None:
        mock_chat.return_value = (
            "Here is the plan:\n"
            '{"plan": "## Steps\\n1. Do it", "subtasks": ['
            '{"title": "Write parser", "description": "Parse input", "type": "task"},'
            '{"title": "Add tests"}]}\n'
            "Good luck!"
        )

        plan = create_plan("Parser", "Need a parser", "feature")

        assert plan.plan.startswith("## Steps")
        assert [s.title for s in plan.subtasks] == ["Write parser", "Add tests"]
        assert plan.subtasks[1].type == "task"
        prompt = mock_chat.call_args.args[1]
        assert "Title: Parser" in prompt
        assert "Type: feature" in prompt

    @patch("features.beads.agent.chat")
    def test_create_plan_rejects_invalid_json(self, mock_chat: Mock) -> None:
        mock_chat.return_value = "I could not come up with a plan."

        with pytest.raises(PlanParseError):
            create_plan("Parser", "Need a parser", "task")

    @patch("features.beads.agent.chat")
    def test_create_plan_rejects_missing_fields(self, mock_chat: Mock) -> None:
        mock_chat.return_value = '{"subtasks": []}'

        with pytest.raises(PlanParseError):
            create_plan("Parser", "Need a parser", "task")


class TestJsonHelpers:

    def test_strip_fences(self) -> None:
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_extract_json_object_requires_object(self) -> None:
        with pytest.raises(ValueError):
            extract_json_object("[1, 2, 3]")
