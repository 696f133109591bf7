"""Decode transcript JSONL lines into typed records.

A transcript line is one JSON object::

    {"type": "user", "timestamp": "...",
     "message": {"role": "user", "content": "..." | [{"type": "text", "text": "..."}],
                 "model": "...", "usage": {"input_tokens": 1, "output_tokens": 2}}}

Malformed lines are expected (partial writes, foreign record types) and are
never raised; they decode to ``None`` and are tallied in ``ScanStats``.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from sessionlens import config

MESSAGE_KINDS = frozenset({"user", "assistant"})
ELLIPSIS = "..."


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class PartsContent:
    parts: tuple[dict, ...]


Content = Union[TextContent, PartsContent]


@dataclass
class LogRecord:
    kind: str  # "user" | "assistant" | "other"
    role: str
    content: Optional[Content]
    timestamp: str = ""
    model: str = ""
    tokens_in: int = 0
    tokens_out: int = 0
    text: str = ""

    @property
    def is_message(self) -> bool:
        return self.kind in MESSAGE_KINDS

    @property
    def qualifies(self) -> bool:
        """True for user/assistant records with non-empty preview text."""
        return self.is_message and bool(self.text)


@dataclass
class ScanStats:
    lines: int = 0
    decoded: int = 0
    malformed: int = 0

    @property
    def all_malformed(self) -> bool:
        return self.lines > 0 and self.decoded == 0

    def merge(self, other: "ScanStats") -> None:
        self.lines += other.lines
        self.decoded += other.decoded
        self.malformed += other.malformed


def truncate_preview(text: str, max_chars: int = config.PREVIEW_MAX_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + ELLIPSIS


def decode_content(raw: Any) -> Optional[Content]:
    if isinstance(raw, str):
        return TextContent(raw)
    if isinstance(raw, list):
        return PartsContent(tuple(part for part in raw if isinstance(part, dict)))
    return None


def extract_preview(content: Optional[Content]) -> str:
    """Return the bounded preview text for decoded message content."""
    if isinstance(content, TextContent):
        return truncate_preview(content.text.strip())
    if isinstance(content, PartsContent):
        for part in content.parts:
            if part.get("type") != "text":
                continue
            text = part.get("text")
            if isinstance(text, str):
                return truncate_preview(text.strip())
        return ""
    return ""


def _token_count(usage: dict, key: str) -> int:
    value = usage.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _str_field(obj: dict, key: str) -> str:
    value = obj.get(key)
    return value if isinstance(value, str) else ""


def decode_line(line: str) -> LogRecord | None:
    """Decode one transcript line, or return None if it is blank or malformed."""
    stripped = line.strip()
    if not stripped:
        return None
    try:
        obj = json.loads(stripped)
    except ValueError:
        return None
    if not isinstance(obj, dict):
        return None

    record_type = _str_field(obj, "type")
    kind = record_type if record_type in MESSAGE_KINDS else "other"

    message = obj.get("message")
    if not isinstance(message, dict):
        message = {}
    usage = message.get("usage")
    if not isinstance(usage, dict):
        usage = {}

    content = decode_content(message.get("content"))
    return LogRecord(
        kind=kind,
        role=_str_field(message, "role") or record_type,
        content=content,
        timestamp=_str_field(obj, "timestamp"),
        model=_str_field(message, "model"),
        tokens_in=_token_count(usage, "input_tokens"),
        tokens_out=_token_count(usage, "output_tokens"),
        text=extract_preview(content) if kind != "other" else "",
    )


def iter_lines(path: Path) -> Iterator[str]:
    """Yield the non-blank lines of a log file without loading it whole."""
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            if line.strip():
                yield line


def iter_records(path: Path, stats: ScanStats | None = None) -> Iterator[LogRecord]:
    """Yield every decodable record of a log file in append order."""
    for line in iter_lines(path):
        record = decode_line(line)
        if stats is not None:
            stats.lines += 1
            if record is None:
                stats.malformed += 1
            else:
                stats.decoded += 1
        if record is not None:
            yield record
