"""SessionLens FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sessionlens import config
from sessionlens.file_watcher import file_watcher
from sessionlens.observability import initialize as initialize_observability, shutdown as shutdown_observability
from sessionlens.routers.archive import history_router, projects_router
from sessionlens.routers.conversations import conversations_router
from sessionlens.routers.live import events_router, watcher_router, watcher_status
from sessionlens.routers.sessions import sessions_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("sessionlens")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("SessionLens backend starting up (archive=%s)", config.PROJECTS_DIR)
    initialize_observability(app)

    if config.WATCHER_AUTOSTART:
        await file_watcher.start(config.CLAUDE_DIR)

    yield

    logger.info("SessionLens backend shutting down")
    await file_watcher.stop()
    shutdown_observability(app)


app = FastAPI(
    title="SessionLens API",
    description="Local index over Claude Code session transcripts",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "tauri://localhost",
        "http://localhost:1420",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(conversations_router)
app.include_router(sessions_router)
app.include_router(history_router)
app.include_router(projects_router)
app.include_router(watcher_router)
app.include_router(events_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    status = watcher_status()
    return {
        "status": "ok",
        "archive": "present" if config.PROJECTS_DIR.exists() else "missing",
        "watcher": "running" if status.running else "stopped",
    }
