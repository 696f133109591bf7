"""Fire-and-forget event emission to connected clients."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from sessionlens import config

logger = logging.getLogger("sessionlens.events")

CLAUDE_MD_CHANGED = "claude-md-changed"
SETTINGS_CHANGED = "settings-changed"
HISTORY_CHANGED = "history-changed"
ENTITY_CHANGED = "entity-changed"
SESSION_COMPLETED = "session-completed"


class EventEmitter(Protocol):
    def emit(self, event: str, payload: Any = None) -> None:
        ...


class EventBroadcaster:
    """Fans events out to per-subscriber queues.

    ``emit`` never blocks and never raises: a subscriber whose queue is full
    misses the event, and with no subscribers the event is simply dropped.
    Must be called from the event loop that owns the queues.
    """

    def __init__(self, queue_size: int = config.EVENT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, event: str, payload: Any = None) -> None:
        message = {"event": event, "payload": payload}
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.debug("Dropping %s for a slow subscriber", event)


# Singleton instance
event_broadcaster = EventBroadcaster()
