"""API router for stored conversations."""
from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Query

from sessionlens import archive, config
from sessionlens.models import ConversationMessage, ConversationSummary, SearchHit
from sessionlens.services import transcripts

conversations_router = APIRouter(prefix="/api/conversations", tags=["conversations"])


def resolve_session_path(path: str) -> Path:
    """Confine a caller-supplied path to the archive, as an HTTP 400 on failure."""
    try:
        return archive.validate_session_path(path, config.PROJECTS_DIR)
    except archive.InvalidSessionPathError as e:
        raise HTTPException(status_code=400, detail=str(e))


@conversations_router.get("", response_model=list[ConversationSummary])
def list_conversations(
    project: str | None = Query(None, description="Encoded project directory name"),
):
    """List conversation summaries, most recent first."""
    return transcripts.list_conversations(project, config.PROJECTS_DIR)


@conversations_router.get("/content", response_model=list[ConversationMessage])
def read_conversation(path: str = Query(..., description="Absolute path of the session log")):
    """Read the full transcript of one conversation."""
    try:
        return transcripts.read_conversation(resolve_session_path(path))
    except archive.SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@conversations_router.get("/search", response_model=list[SearchHit])
def search_conversations(
    q: str = Query(..., min_length=1, description="Case-insensitive substring"),
    max_results: int = Query(config.SEARCH_MAX_RESULTS, ge=1, le=1000),
):
    """Search every conversation; stops once max_results hits are found."""
    return transcripts.search_conversations(q, max_results, config.PROJECTS_DIR)


@conversations_router.delete("")
def delete_conversation(path: str = Query(..., description="Absolute path of the session log")):
    """Delete a conversation and its side-car directory."""
    transcripts.delete_conversation(resolve_session_path(path))
    return {"status": "ok"}


@conversations_router.delete("/all")
def clear_all_conversations(project: str | None = Query(None)):
    """Delete every conversation, optionally within one project."""
    deleted = transcripts.clear_all_conversations(project, config.PROJECTS_DIR)
    return {"status": "ok", "deleted": deleted}
