"""File watcher service using watchfiles.

Watches the Claude config directory, classifies debounced change batches
into domain events, and tracks which session logs are still being written.
A log that sees no filesystem activity for the completion timeout is
reported once as ``session-completed``.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from watchfiles import Change, awatch

from sessionlens import config
from sessionlens.events import (
    CLAUDE_MD_CHANGED,
    ENTITY_CHANGED,
    HISTORY_CHANGED,
    SESSION_COMPLETED,
    SETTINGS_CHANGED,
    EventEmitter,
    event_broadcaster,
)
from sessionlens.observability import record_watch_event

logger = logging.getLogger("sessionlens.watcher")

ENTITY_DIRS = ("agents", "rules", "commands", "skills", "hooks")


def classify_event(path: str) -> Optional[str]:
    """Map a changed path to a domain event name; first match wins."""
    if path.endswith("CLAUDE.md"):
        return CLAUDE_MD_CHANGED
    if "settings" in path and path.endswith(".json"):
        return SETTINGS_CHANGED
    if path.endswith(config.LOG_FILE_SUFFIX):
        return HISTORY_CHANGED
    for name in ENTITY_DIRS:
        if f"/{name}/" in path or f"\\{name}\\" in path:
            return ENTITY_CHANGED
    return None


class SessionActivityTracker:
    """Last-activity instant per log path, owned by the watcher task."""

    def __init__(self, completion_timeout: float, clock: Callable[[], float] = time.monotonic):
        self.completion_timeout = completion_timeout
        self._clock = clock
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._last_seen)

    def __contains__(self, path: object) -> bool:
        return path in self._last_seen

    def touch(self, path: str) -> None:
        self._last_seen[path] = self._clock()

    def sweep(self) -> list[str]:
        """Remove and return paths idle for longer than the completion timeout."""
        now = self._clock()
        completed = [
            path for path, last_seen in self._last_seen.items()
            if now - last_seen > self.completion_timeout
        ]
        for path in completed:
            del self._last_seen[path]
        return completed


class FileWatcher:
    """Background watcher that pushes domain events to an emitter.

    At most one watch task runs per instance; ``start`` latches on first
    successful call and later calls are no-ops.
    """

    def __init__(
        self,
        emitter: EventEmitter | None = None,
        *,
        debounce_ms: int = config.WATCH_DEBOUNCE_MS,
        poll_seconds: float = config.WATCH_POLL_SECONDS,
        completion_timeout: float = config.SESSION_COMPLETION_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._emitter: EventEmitter = emitter if emitter is not None else event_broadcaster
        self.debounce_ms = debounce_ms
        self.poll_seconds = poll_seconds
        self.tracker = SessionActivityTracker(completion_timeout, clock)
        self._start_lock = threading.Lock()
        self._started = False
        self._running = False
        self._root: Optional[Path] = None
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def root(self) -> Optional[Path]:
        return self._root

    def _claim_start(self) -> bool:
        with self._start_lock:
            if self._started:
                return False
            self._started = True
            return True

    async def start(self, root: Path) -> None:
        """Start watching ``root`` in a background task.

        Setup problems are logged and never raised; callers always see
        success and can consult ``is_running`` for the outcome.
        """
        if self._started:
            return
        if not root.exists():
            logger.warning("Watch root %s does not exist, watcher not started", root)
            return
        if not self._claim_start():
            return

        self._root = root
        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop(root, self._stop_event))
        logger.info("File watcher started for %s", root)

    async def stop(self) -> None:
        """Stop the watch task; used when the hosting app shuts down."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._running = False
        logger.info("File watcher stopped")

    def _emit(self, event: str, payload: Any = None) -> None:
        try:
            self._emitter.emit(event, payload)
        except Exception:
            logger.debug("Dropped %s event", event, exc_info=True)
            return
        record_watch_event(event)

    def process_changes(self, changes: Iterable[tuple[Change, str]]) -> list[str]:
        """Classify one debounced batch; each event kind is emitted at most once."""
        emitted: list[str] = []
        for _change, path in sorted(changes, key=lambda c: c[1]):
            event = classify_event(path)
            if event is not None and event not in emitted:
                emitted.append(event)
                self._emit(event)
            if Path(path).suffix == config.LOG_FILE_SUFFIX:
                self.tracker.touch(path)
        return emitted

    def sweep_completed(self) -> list[str]:
        """Emit ``session-completed`` for each log gone quiet; returns session ids."""
        session_ids: list[str] = []
        for path in self.tracker.sweep():
            session_id = Path(path).stem
            session_ids.append(session_id)
            logger.info("Session %s completed", session_id)
            self._emit(SESSION_COMPLETED, session_id)
        return session_ids

    async def _watch_loop(self, root: Path, stop_event: asyncio.Event) -> None:
        """Main loop: bounded waits for change batches interleaved with sweeps."""
        try:
            async for changes in awatch(
                root,
                debounce=self.debounce_ms,
                step=self.debounce_ms,
                rust_timeout=int(self.poll_seconds * 1000),
                yield_on_timeout=True,
                recursive=True,
                stop_event=stop_event,
            ):
                if changes:
                    emitted = self.process_changes(changes)
                    if emitted:
                        logger.debug("Batch of %d changes emitted %s", len(changes), emitted)
                self.sweep_completed()
        except asyncio.CancelledError:
            logger.info("File watcher task cancelled")
        except Exception as e:
            logger.error("File watcher error: %s", e)
        finally:
            self._running = False


# Singleton instance
file_watcher = FileWatcher()
