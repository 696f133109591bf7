"""Read and prune the prompt history file (~/.claude/history.jsonl)."""
from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from sessionlens import config
from sessionlens.models import HistoryEntry

logger = logging.getLogger("sessionlens.history")


def _history_file(history_file: Path | None) -> Path:
    return history_file if history_file is not None else config.HISTORY_FILE


def _parse_entry(line: str) -> HistoryEntry | None:
    try:
        data = json.loads(line)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return HistoryEntry(**data)
    except ValidationError:
        return None


def read_command_history(limit: int = 100, history_file: Path | None = None) -> list[HistoryEntry]:
    """Most recent entries first, at most ``limit`` of them."""
    path = _history_file(history_file)
    if not path.exists():
        return []

    entries: list[HistoryEntry] = []
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            if not line.strip():
                continue
            entry = _parse_entry(line)
            if entry is not None:
                entries.append(entry)

    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries[:max(0, limit)]


def delete_command_entry(timestamp: int, history_file: Path | None = None) -> None:
    """Drop entries with the given timestamp; lines that fail to parse are kept."""
    path = _history_file(history_file)
    if not path.exists():
        return

    # Untouched lines are carried over byte for byte, undecodable ones included.
    remaining: list[bytes] = []
    for raw in path.read_bytes().splitlines():
        if not raw.strip():
            continue
        try:
            entry = _parse_entry(raw.decode("utf-8"))
        except UnicodeDecodeError:
            entry = None
        if entry is not None and entry.timestamp == timestamp:
            continue
        remaining.append(raw)

    _replace_file(path, b"".join(raw + b"\n" for raw in remaining))
    logger.info("Deleted history entry %s", timestamp)


def _replace_file(path: Path, data: bytes) -> None:
    """Write to a temp file in the same directory, then rename over ``path``."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def clear_command_history(history_file: Path | None = None) -> None:
    path = _history_file(history_file)
    if path.exists():
        path.write_text("", encoding="utf-8")
        logger.info("Cleared command history %s", path)
