"""API router for live sessions."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from sessionlens import archive, config
from sessionlens.models import ActiveSession, TailResult
from sessionlens.routers.conversations import resolve_session_path
from sessionlens.services.active_sessions import list_active_sessions
from sessionlens.services.tail_reader import tail_session

sessions_router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@sessions_router.get("/active", response_model=list[ActiveSession])
def get_active_sessions(
    threshold_seconds: int = Query(config.ACTIVE_THRESHOLD_SECONDS, ge=0),
):
    """Sessions whose log changed within the threshold."""
    return list_active_sessions(threshold_seconds, config.PROJECTS_DIR)


@sessions_router.get("/tail", response_model=TailResult)
def get_session_tail(
    path: str = Query(..., description="Absolute path of the session log"),
    from_line: int = Query(0, ge=0, description="totalLines from the previous call"),
):
    """Messages appended after from_line, plus the next resume offset."""
    try:
        return tail_session(resolve_session_path(path), from_line)
    except archive.SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
