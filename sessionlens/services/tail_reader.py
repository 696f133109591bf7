"""Incremental reads of a growing log file.

``totalLines`` counts every non-blank line, decodable or not, so a caller
can pass it back as ``from_line`` on the next call and receive only lines
appended since.
"""
from __future__ import annotations

from pathlib import Path

from sessionlens import archive
from sessionlens.models import TailMessage, TailResult
from sessionlens.parsers.records import decode_line, iter_lines


def tail_session(session_path: Path | str, from_line: int = 0) -> TailResult:
    path = Path(session_path)
    if not path.is_file():
        raise archive.SessionNotFoundError(session_path)

    messages: list[TailMessage] = []
    total_lines = 0

    for line in iter_lines(path):
        total_lines += 1
        if total_lines <= from_line:
            continue

        record = decode_line(line)
        if record is None or not record.qualifies:
            continue

        messages.append(
            TailMessage(
                role=record.role,
                content=record.text,
                timestamp=record.timestamp,
                messageKind=record.kind,
                model=record.model,
                tokensIn=record.tokens_in,
                tokensOut=record.tokens_out,
            )
        )

    return TailResult(messages=messages, totalLines=total_lines)
