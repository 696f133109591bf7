"""Report log files written to within a recency window."""
from __future__ import annotations

import logging
import time
from pathlib import Path

from sessionlens import archive
from sessionlens.models import ActiveSession
from sessionlens.observability import record_scan
from sessionlens.parsers.records import iter_records

logger = logging.getLogger("sessionlens.active")


def _scan_active_log(path: Path) -> tuple[int, str, str]:
    """Return (message_count, last_preview, last_model) for a log file."""
    message_count = 0
    last_preview = ""
    last_model = ""
    for record in iter_records(path):
        if not record.qualifies:
            continue
        message_count += 1
        last_preview = record.text
        if record.model:
            last_model = record.model
    return message_count, last_preview, last_model


def list_active_sessions(
    threshold_seconds: float = 300,
    projects_dir: Path | None = None,
    now: float | None = None,
) -> list[ActiveSession]:
    """Sessions whose log was modified within ``threshold_seconds``, newest first."""
    started = time.perf_counter()
    now = time.time() if now is None else now
    sessions: list[ActiveSession] = []

    for project_dir, log_path in archive.iter_archive_logs(projects_dir):
        try:
            mtime = log_path.stat().st_mtime
        except OSError as e:
            logger.warning("Skipping log without metadata %s: %s", log_path, e)
            continue

        if now - mtime > threshold_seconds:
            continue

        try:
            message_count, last_preview, model = _scan_active_log(log_path)
        except OSError as e:
            logger.warning("Skipping unreadable log %s: %s", log_path, e)
            continue

        if message_count == 0:
            continue

        sessions.append(
            ActiveSession(
                sessionId=archive.session_id_for(log_path),
                project=archive.project_name(project_dir.name),
                filePath=str(log_path),
                lastModifiedMillis=int(mtime * 1000),
                messageCount=message_count,
                lastMessagePreview=last_preview,
                model=model,
            )
        )

    sessions.sort(key=lambda s: s.lastModifiedMillis, reverse=True)
    record_scan("list_active_sessions", "ok", (time.perf_counter() - started) * 1000)
    return sessions
