"""
FastAPI application — REST + WebSocket API for Beadwork.

Endpoints:
  GET    /health                           — Health check + live-update stats
  WS     /ws?projectPath=...               — Live beads-update notifications
  GET    /api/beads?projectPath=...        — List issues
  GET    /api/beads/stats                  — Project stats
  GET    /api/beads/{id}                   — Single issue
  POST   /api/beads                        — Create issue (AI title if none given)
  POST   /api/beads/async                  — Create issue with placeholder title
  PUT    /api/beads/{id}                   — Update issue
  DELETE /api/beads/{id}                   — Delete issue
  GET    /api/beads/{id}/comments          — List comments
  POST   /api/beads/{id}/comments          — Add comment
  GET    /api/beads/{id}/dependencies      — Dependency tree
  POST   /api/beads/{id}/dependencies      — Add dependency
  DELETE /api/beads/{id}/dependencies/{d}  — Remove dependency
  POST   /api/beads/{id}/plan              — AI plan + subtasks
  POST   /api/beads/agent/generate-title   — AI title from description
  GET    /api/projects                     — List projects
  GET    /api/projects/{id}                — Single project
  POST   /api/projects                     — Register project
  DELETE /api/projects/{id}                — Unregister project
  GET    /api/filesystem/directory         — Directory listing
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

import config
from features.beads import agent as bead_agent
from features.beads.cli import BdCommandError, parse_created_id, run_bd
from features.beads.models import (
    CommentRequest,
    CreateBeadAsyncRequest,
    CreateBeadRequest,
    DependencyRequest,
    GenerateTitleRequest,
    PlanRequest,
    UpdateBeadRequest,
)
from features.filesystem import DirectoryListingError, list_directory
from features.projects import registry as project_registry
from features.watch import WatchManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.watch_manager = WatchManager()
    log.info(
        "Watch manager ready (debounce=%dms, stability=%dms)",
        config.WATCH_DEBOUNCE_MS, config.WATCH_STABILITY_MS,
    )
    try:
        yield
    finally:
        await app.state.watch_manager.shutdown()


app = FastAPI(
    title="Beadwork",
    description="Browse and edit beads issue trackers with live updates",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_project(project_path: str | None) -> str:
    if not project_path:
        raise HTTPException(status_code=400, detail="projectPath is required")
    return project_path


async def _bd(args: list[str], project_path: str) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, run_bd, args, project_path)


# ── Health ────────────────────────────────────────────────────────────

@app.get("/")
def root():
    return {
        "name": "Beadwork API",
        "version": app.version,
        "endpoints": {
            "health": "/health",
            "watch": "/ws",
            "beads": "/api/beads",
            "projects": "/api/projects",
            "filesystem": "/api/filesystem",
        },
    }


@app.get("/health")
def health(request: Request):
    return {
        "status": "ok",
        "service": "beadwork",
        "timestamp": _now(),
        "watchers": request.app.state.watch_manager.status(),
    }


# ── Live updates ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def watch_project(websocket: WebSocket):
    """Push a beads-update message whenever the project's data files settle after a change."""
    project_path = websocket.query_params.get("projectPath")
    if not project_path:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="projectPath is required")
        return

    await websocket.accept()
    manager: WatchManager = websocket.app.state.watch_manager
    try:
        await manager.add_subscriber(websocket, project_path)
        # Nothing meaningful is sent by clients; reading just detects the close
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        log.info("Client disconnected from %s", project_path)
    except Exception as e:
        log.warning("WebSocket error for %s: %s", project_path, e)
    finally:
        await manager.remove_subscriber(websocket)


# ── Beads ─────────────────────────────────────────────────────────────

@app.get("/api/beads")
async def list_beads(projectPath: str | None = None):
    project_path = _require_project(projectPath)
    try:
        return await _bd(["list", "--json"], project_path) or []
    except BdCommandError as e:
        log.error("Failed to list beads: %s", e)
        raise HTTPException(status_code=500, detail="Failed to list beads")


@app.get("/api/beads/stats")
async def bead_stats(projectPath: str | None = None):
    """Project stats; null when bd can't produce them."""
    project_path = _require_project(projectPath)
    try:
        return await _bd(["status", "--json"], project_path)
    except BdCommandError as e:
        log.warning("Failed to get project stats: %s", e)
        return None


@app.post("/api/beads/agent/generate-title")
async def generate_title(req: GenerateTitleRequest):
    if not req.description:
        raise HTTPException(status_code=400, detail="description is required")
    loop = asyncio.get_running_loop()
    try:
        title = await loop.run_in_executor(None, bead_agent.generate_title, req.description)
    except Exception as e:
        log.error("Failed to generate title: %s", e)
        raise HTTPException(status_code=500, detail="Failed to generate title")
    return {"title": title}


@app.get("/api/beads/{bead_id}")
async def get_bead(bead_id: str, projectPath: str | None = None):
    project_path = _require_project(projectPath)
    try:
        result = await _bd(["show", bead_id, "--json"], project_path)
    except BdCommandError as e:
        log.error("Failed to get bead %s: %s", bead_id, e)
        raise HTTPException(status_code=500, detail="Failed to get bead")
    if isinstance(result, list):
        if not result:
            raise HTTPException(status_code=404, detail=f"Bead not found: {bead_id}")
        return result[0]
    return result


@app.post("/api/beads")
async def create_bead(req: CreateBeadRequest):
    """Create an issue; a title is generated from the description when missing."""
    project_path = _require_project(req.project_path)
    loop = asyncio.get_running_loop()
    try:
        title = req.title
        if not title and req.description:
            title = await loop.run_in_executor(None, bead_agent.generate_title, req.description)
        if not title:
            raise HTTPException(status_code=400, detail="Title is required")

        args = ["create", title]
        if req.description:
            args += ["--description", req.description]
        if req.type:
            args += ["--type", req.type]
        output = await _bd(args, project_path)
        return {"success": True, "id": parse_created_id(output)}
    except HTTPException:
        raise
    except Exception as e:
        log.error("Failed to create bead: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create bead")


@app.post("/api/beads/async")
async def create_bead_async(req: CreateBeadAsyncRequest):
    """Create an issue right away with a placeholder title derived from the description."""
    project_path = _require_project(req.project_path)
    placeholder = f"{req.description[:50]}..." if req.description else bead_agent.DEFAULT_TITLE

    args = ["create", placeholder]
    if req.description:
        args += ["--description", req.description]
    if req.type:
        args += ["--type", req.type]
    if req.priority is not None:
        args += ["--priority", str(req.priority)]

    try:
        output = await _bd(args, project_path)
    except BdCommandError as e:
        log.error("Failed to create bead: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create bead")

    bead_id = parse_created_id(output)
    if not bead_id:
        raise HTTPException(status_code=500, detail="Failed to create bead: No ID returned")

    return {
        "id": bead_id,
        "title": placeholder,
        "description": req.description,
        "status": "open",
        "priority": req.priority if req.priority is not None else 2,
        "issue_type": req.type or "task",
        "transientId": req.transient_id,
    }


@app.put("/api/beads/{bead_id}")
async def update_bead(bead_id: str, req: UpdateBeadRequest):
    project_path = _require_project(req.project_path)
    args = ["update", bead_id]
    if req.title:
        args += ["--title", req.title]
    if req.description:
        args += ["--description", req.description]
    if req.status:
        args += ["--status", req.status]
    if req.priority is not None and req.priority != "":
        args += ["--priority", str(req.priority)]

    try:
        await _bd(args, project_path)
    except BdCommandError as e:
        log.error("Failed to update bead %s: %s", bead_id, e)
        raise HTTPException(status_code=500, detail="Failed to update bead")
    return {"success": True}


@app.delete("/api/beads/{bead_id}")
async def delete_bead(bead_id: str, projectPath: str | None = None):
    project_path = _require_project(projectPath)
    try:
        await _bd(["delete", bead_id, "--force"], project_path)
    except BdCommandError as e:
        log.error("Failed to delete bead %s: %s", bead_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete bead")
    return {"success": True}


@app.get("/api/beads/{bead_id}/comments")
async def list_comments(bead_id: str, projectPath: str | None = None):
    project_path = _require_project(projectPath)
    try:
        return await _bd(["comments", bead_id, "--json"], project_path) or []
    except BdCommandError as e:
        log.warning("Failed to get comments for %s: %s", bead_id, e)
        return []


@app.post("/api/beads/{bead_id}/comments")
async def add_comment(bead_id: str, req: CommentRequest):
    if not req.project_path or not req.content:
        raise HTTPException(status_code=400, detail="projectPath and content are required")
    try:
        await _bd(["comments", "add", bead_id, req.content], req.project_path)
    except BdCommandError as e:
        log.error("Failed to add comment to %s: %s", bead_id, e)
        raise HTTPException(status_code=500, detail="Failed to add comment")
    return {"success": True}


@app.get("/api/beads/{bead_id}/dependencies")
async def list_dependencies(bead_id: str, projectPath: str | None = None):
    project_path = _require_project(projectPath)
    try:
        return await _bd(["dep", "tree", bead_id, "--json"], project_path) or []
    except BdCommandError as e:
        log.warning("Failed to get dependencies for %s: %s", bead_id, e)
        return []


@app.post("/api/beads/{bead_id}/dependencies")
async def add_dependency(bead_id: str, req: DependencyRequest):
    if not req.project_path or not req.depends_on_id:
        raise HTTPException(status_code=400, detail="projectPath and dependsOnId are required")
    args = ["dep", "add", bead_id, req.depends_on_id]
    if req.type:
        args += ["--type", req.type]
    try:
        await _bd(args, req.project_path)
    except BdCommandError as e:
        log.error("Failed to add dependency %s -> %s: %s", bead_id, req.depends_on_id, e)
        raise HTTPException(status_code=500, detail="Failed to add dependency")
    return {"success": True}


@app.delete("/api/beads/{bead_id}/dependencies/{depends_on_id}")
async def remove_dependency(bead_id: str, depends_on_id: str, projectPath: str | None = None):
    project_path = _require_project(projectPath)
    try:
        await _bd(["dep", "remove", bead_id, depends_on_id], project_path)
    except BdCommandError as e:
        log.error("Failed to remove dependency %s -> %s: %s", bead_id, depends_on_id, e)
        raise HTTPException(status_code=500, detail="Failed to remove dependency")
    return {"success": True}


@app.post("/api/beads/{bead_id}/plan")
async def create_plan(bead_id: str, req: PlanRequest):
    """Generate a plan for an issue and file each subtask as a dependency of it."""
    project_path = _require_project(req.project_path)
    loop = asyncio.get_running_loop()
    try:
        plan = await loop.run_in_executor(
            None, bead_agent.create_plan,
            req.title or "", req.description or "", req.issue_type or "task",
        )
        for subtask in plan.subtasks:
            args = ["create", subtask.title]
            if subtask.description:
                args += ["--description", subtask.description]
            if subtask.type:
                args += ["--type", subtask.type]
            subtask_id = parse_created_id(await _bd(args, project_path))
            if subtask_id:
                await _bd(["dep", "add", bead_id, subtask_id], project_path)
            else:
                log.warning("No ID returned for subtask %r of %s", subtask.title, bead_id)
    except Exception as e:
        log.error("Failed to create plan for %s: %s", bead_id, e)
        raise HTTPException(status_code=500, detail="Failed to create plan")

    return {"success": True, "plan": plan.model_dump()}


# ── Projects ──────────────────────────────────────────────────────────

class AddProjectRequest(BaseModel):
    path: str | None = None
    init: bool = False


@app.get("/api/projects")
def list_projects():
    return project_registry.load_projects()


@app.get("/api/projects/{project_id}")
def get_project(project_id: str):
    project = project_registry.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@app.post("/api/projects")
async def add_project(req: AddProjectRequest):
    if not req.path:
        raise HTTPException(status_code=400, detail="path is required")
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, project_registry.add_project, req.path, req.init)
    except project_registry.ProjectNeedsInitError:
        raise HTTPException(status_code=400, detail="PROJECT_NEEDS_INIT")
    except project_registry.DuplicateProjectError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except project_registry.InvalidProjectError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.error("Failed to add project %s: %s", req.path, e)
        raise HTTPException(status_code=500, detail="Failed to add project")


@app.delete("/api/projects/{project_id}")
def remove_project(project_id: str):
    try:
        return project_registry.remove_project(project_id)
    except OSError as e:
        log.error("Failed to remove project %s: %s", project_id, e)
        raise HTTPException(status_code=500, detail="Failed to remove project")


# ── Filesystem ────────────────────────────────────────────────────────

@app.get("/api/filesystem/directory")
def directory_listing(path: str | None = None):
    try:
        return list_directory(path)
    except DirectoryListingError as e:
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host=config.HOST, port=config.PORT)
