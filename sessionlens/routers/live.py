"""Watcher control and the live event stream."""
from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from sessionlens import config
from sessionlens.events import event_broadcaster
from sessionlens.file_watcher import file_watcher
from sessionlens.models import WatcherStatus

logger = logging.getLogger("sessionlens.live")

watcher_router = APIRouter(prefix="/api/watcher", tags=["watcher"])
events_router = APIRouter(tags=["events"])


def watcher_status() -> WatcherStatus:
    return WatcherStatus(
        started=file_watcher.is_started,
        running=file_watcher.is_running,
        root=str(file_watcher.root or ""),
        trackedSessions=len(file_watcher.tracker),
        subscribers=event_broadcaster.subscriber_count,
    )


@watcher_router.get("", response_model=WatcherStatus)
def get_watcher_status():
    return watcher_status()


@watcher_router.post("/start")
async def start_watching():
    """Start the watcher if it is not already running.

    Always reports success; a missing or unwatchable directory only shows
    up as ``running: false`` in the status.
    """
    await file_watcher.start(config.CLAUDE_DIR)
    return {"status": "ok"}


@events_router.websocket("/ws/events")
async def stream_events(websocket: WebSocket):
    """Push watcher events as ``{"event": ..., "payload": ...}`` messages."""
    await websocket.accept()
    queue = event_broadcaster.subscribe()
    try:
        while True:
            message = await queue.get()
            await websocket.send_json(message)
    except WebSocketDisconnect:
        logger.debug("Event subscriber disconnected")
    finally:
        event_broadcaster.unsubscribe(queue)
