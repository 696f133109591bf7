"""SessionLens configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if not value:
        return default
    return Path(value).expanduser()


# Archive layout
CLAUDE_DIR = _env_path("SESSIONLENS_CLAUDE_DIR", Path.home() / ".claude")
PROJECTS_DIR = CLAUDE_DIR / "projects"
HISTORY_FILE = CLAUDE_DIR / "history.jsonl"
LOG_FILE_SUFFIX = ".jsonl"

# Query defaults
PREVIEW_MAX_CHARS = 200
SEARCH_MAX_RESULTS = _env_int("SESSIONLENS_SEARCH_MAX_RESULTS", 50)
ACTIVE_THRESHOLD_SECONDS = _env_int("SESSIONLENS_ACTIVE_THRESHOLD_SECONDS", 300)
HISTORY_LIMIT = _env_int("SESSIONLENS_HISTORY_LIMIT", 100)

# File watcher
WATCHER_AUTOSTART = _env_bool("SESSIONLENS_WATCHER_AUTOSTART", True)
WATCH_DEBOUNCE_MS = _env_int("SESSIONLENS_WATCH_DEBOUNCE_MS", 500)
WATCH_POLL_SECONDS = _env_int("SESSIONLENS_WATCH_POLL_SECONDS", 10)
SESSION_COMPLETION_TIMEOUT_SECONDS = _env_int("SESSIONLENS_SESSION_COMPLETION_TIMEOUT_SECONDS", 60)
EVENT_QUEUE_SIZE = _env_int("SESSIONLENS_EVENT_QUEUE_SIZE", 256)

# Observability
OTEL_ENABLED = _env_bool("SESSIONLENS_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("SESSIONLENS_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("SESSIONLENS_OTEL_SERVICE_NAME", "sessionlens")
PROM_PORT = _env_int("SESSIONLENS_PROM_PORT", 9464)

# Server settings
HOST = os.getenv("SESSIONLENS_HOST", "127.0.0.1")
PORT = _env_int("SESSIONLENS_PORT", 8000)

# CORS
FRONTEND_ORIGIN = os.getenv("SESSIONLENS_FRONTEND_ORIGIN", "http://localhost:1420")
