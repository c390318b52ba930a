"""
Request and result models for the beads feature.

Field aliases follow the camelCase names the web UI sends.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_path: str | None = Field(default=None, alias="projectPath")


class CreateBeadRequest(_Request):
    title: str | None = None
    description: str | None = None
    type: str | None = None


class CreateBeadAsyncRequest(_Request):
    description: str | None = None
    type: str | None = None
    priority: int | None = None
    transient_id: str | None = Field(default=None, alias="transientId")


class UpdateBeadRequest(_Request):
    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: int | str | None = None


class CommentRequest(_Request):
    content: str | None = None


class DependencyRequest(_Request):
    depends_on_id: str | None = Field(default=None, alias="dependsOnId")
    type: str | None = None


class PlanRequest(_Request):
    title: str | None = None
    description: str | None = None
    issue_type: str | None = None


class GenerateTitleRequest(_Request):
    description: str | None = None


class Subtask(BaseModel):
    title: str
    description: str = ""
    type: str = "task"


class PlanResult(BaseModel):
    """What the planner returns: a markdown plan plus subtasks to file."""
    plan: str
    subtasks: list[Subtask] = Field(default_factory=list)
