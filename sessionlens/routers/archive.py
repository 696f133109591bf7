"""API routers for prompt history and archived projects."""
from __future__ import annotations

from fastapi import APIRouter, Query

from sessionlens import archive, config
from sessionlens.models import HistoryEntry, ProjectInfo
from sessionlens.parsers import history
from sessionlens.services.projects import list_projects

history_router = APIRouter(prefix="/api/history", tags=["history"])
projects_router = APIRouter(prefix="/api/projects", tags=["projects"])


@history_router.get("", response_model=list[HistoryEntry])
def read_command_history(limit: int = Query(config.HISTORY_LIMIT, ge=0)):
    return history.read_command_history(limit, config.HISTORY_FILE)


@history_router.delete("/{timestamp}")
def delete_command_entry(timestamp: int):
    history.delete_command_entry(timestamp, config.HISTORY_FILE)
    return {"status": "ok"}


@history_router.delete("")
def clear_command_history():
    history.clear_command_history(config.HISTORY_FILE)
    return {"status": "ok"}


@projects_router.get("", response_model=list[ProjectInfo])
def get_projects():
    """List projects that have session logs in the archive."""
    return list_projects(config.PROJECTS_DIR)


@projects_router.get("/decode")
def decode_project_path(encoded: str = Query(..., min_length=1)):
    return {"decodedPath": archive.decode_project_path(encoded)}
