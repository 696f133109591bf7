"""Transcript store: summaries, full transcripts, search and deletion.

Stateless: every call re-derives its result from the files on disk. Bulk
scans skip entries they cannot read; point lookups fail fast with
``SessionNotFoundError``.
"""
from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path

from sessionlens import archive
from sessionlens.models import ConversationMessage, ConversationSummary, SearchHit
from sessionlens.observability import record_parser_failure, record_scan, start_span
from sessionlens.parsers.records import ScanStats, decode_line, iter_lines, iter_records

logger = logging.getLogger("sessionlens.transcripts")


def _summarize_log(path: Path, project: str) -> tuple[ConversationSummary, ScanStats]:
    stats = ScanStats()
    first_preview = ""
    first_timestamp = ""
    message_count = 0

    for record in iter_records(path, stats):
        if not record.qualifies:
            continue
        message_count += 1
        if not first_preview and record.kind == "user":
            first_preview = record.text
            first_timestamp = record.timestamp

    summary = ConversationSummary(
        sessionId=archive.session_id_for(path),
        project=project,
        firstMessagePreview=first_preview,
        firstTimestamp=first_timestamp,
        messageCount=message_count,
        filePath=str(path),
    )
    return summary, stats


def _note_malformed(path: Path, project: str, stats: ScanStats) -> None:
    if stats.all_malformed:
        logger.warning("No decodable lines in %s (%d lines)", path, stats.lines)
        record_parser_failure("transcript", project=project)


def list_conversations(
    project_filter: str | None = None,
    projects_dir: Path | None = None,
) -> list[ConversationSummary]:
    """One summary per log file with a user preview, most recent first."""
    started = time.perf_counter()
    conversations: list[ConversationSummary] = []
    totals = ScanStats()

    with start_span("transcripts.list", {"project": project_filter}):
        for project_dir, log_path in archive.iter_archive_logs(projects_dir, project_filter):
            project = project_dir.name
            try:
                summary, stats = _summarize_log(log_path, project)
            except OSError as e:
                logger.warning("Skipping unreadable log %s: %s", log_path, e)
                continue
            totals.merge(stats)
            _note_malformed(log_path, project, stats)
            if summary.firstMessagePreview:
                conversations.append(summary)

    conversations.sort(key=lambda c: c.firstTimestamp, reverse=True)
    logger.debug(
        "Listed %d conversations (%d lines, %d malformed)",
        len(conversations), totals.lines, totals.malformed,
    )
    record_scan("list_conversations", "ok", (time.perf_counter() - started) * 1000)
    return conversations


def read_conversation(session_path: Path | str) -> list[ConversationMessage]:
    path = Path(session_path)
    if not path.is_file():
        raise archive.SessionNotFoundError(session_path)

    messages: list[ConversationMessage] = []
    for record in iter_records(path):
        if not record.qualifies:
            continue
        messages.append(
            ConversationMessage(
                role=record.role,
                content=record.text,
                timestamp=record.timestamp,
                messageKind=record.kind,
            )
        )
    return messages


def search_conversations(
    query: str,
    max_results: int = 50,
    projects_dir: Path | None = None,
) -> list[SearchHit]:
    """Case-insensitive substring search over raw lines, in discovery order.

    The limit is global: scanning stops as soon as ``max_results`` hits are
    collected, so earlier projects and files win.
    """
    if max_results <= 0:
        return []

    started = time.perf_counter()
    needle = query.lower()
    hits: list[SearchHit] = []

    with start_span("transcripts.search", {"max_results": max_results}):
        for project_dir, log_path in archive.iter_archive_logs(projects_dir):
            try:
                for line in iter_lines(log_path):
                    if needle not in line.lower():
                        continue
                    record = decode_line(line)
                    if record is None or not record.is_message:
                        continue
                    hits.append(
                        SearchHit(
                            sessionPath=str(log_path),
                            project=project_dir.name,
                            matchedLine=record.text,
                            timestamp=record.timestamp,
                        )
                    )
                    if len(hits) >= max_results:
                        record_scan("search_conversations", "limit", (time.perf_counter() - started) * 1000)
                        return hits
            except OSError as e:
                logger.warning("Skipping unreadable log %s: %s", log_path, e)
                continue

    record_scan("search_conversations", "ok", (time.perf_counter() - started) * 1000)
    return hits


def delete_conversation(session_path: Path | str) -> None:
    """Remove a log file and its side-car directory; missing files are fine."""
    path = Path(session_path)
    if path.is_file():
        path.unlink()
        logger.info("Deleted conversation %s", path)
    sidecar = path.with_suffix("")
    if sidecar != path and sidecar.is_dir():
        shutil.rmtree(sidecar)
        logger.info("Deleted side-car directory %s", sidecar)


def clear_all_conversations(
    project_filter: str | None = None,
    projects_dir: Path | None = None,
) -> int:
    """Delete every log file (optionally in one project); returns how many."""
    targets = [log_path for _, log_path in archive.iter_archive_logs(projects_dir, project_filter)]
    for log_path in targets:
        delete_conversation(log_path)
    logger.info("Cleared %d conversations (project=%s)", len(targets), project_filter or "*")
    return len(targets)
