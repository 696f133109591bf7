"""Pydantic models matching the frontend TypeScript types."""
from __future__ import annotations

from pydantic import BaseModel, Field


# ── Conversation models ─────────────────────────────────────────────

class ConversationSummary(BaseModel):
    sessionId: str
    project: str  # encoded project directory name
    firstMessagePreview: str = ""
    firstTimestamp: str = ""
    messageCount: int = 0
    filePath: str


class ConversationMessage(BaseModel):
    role: str
    content: str = ""
    timestamp: str = ""
    messageKind: str  # "user" | "assistant"


class SearchHit(BaseModel):
    sessionPath: str
    project: str
    matchedLine: str = ""
    timestamp: str = ""


# ── Live session models ─────────────────────────────────────────────

class ActiveSession(BaseModel):
    sessionId: str
    project: str  # decoded, human readable project name
    filePath: str
    lastModifiedMillis: int = 0
    messageCount: int = 0
    lastMessagePreview: str = ""
    model: str = ""


class TailMessage(ConversationMessage):
    model: str = ""
    tokensIn: int = 0
    tokensOut: int = 0


class TailResult(BaseModel):
    messages: list[TailMessage] = Field(default_factory=list)
    totalLines: int = 0


# ── Archive models ──────────────────────────────────────────────────

class HistoryEntry(BaseModel):
    display: str
    project: str = ""
    timestamp: int


class ProjectInfo(BaseModel):
    encodedPath: str
    decodedPath: str
    name: str
    hasClaudeMd: bool = False
    hasSettings: bool = False


class WatcherStatus(BaseModel):
    started: bool = False
    running: bool = False
    root: str = ""
    trackedSessions: int = 0
    subscribers: int = 0
