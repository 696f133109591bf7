"""Archive layout helpers for ~/.claude/projects.

Each project directory is named after the absolute project path with path
separators replaced by ``-`` (``/Users/me/app`` -> ``-Users-me-app``) and
holds one ``<session-id>.jsonl`` log per session, optionally alongside a
``<session-id>/`` side-car directory.
"""
from __future__ import annotations

import logging
from pathlib import Path

from sessionlens import config

logger = logging.getLogger("sessionlens.archive")


class SessionNotFoundError(FileNotFoundError):
    """Raised when a requested log file does not exist."""

    def __init__(self, path: Path | str):
        super().__init__(f"File not found: {path}")
        self.path = str(path)


class InvalidSessionPathError(ValueError):
    """Raised when a session path falls outside the archive or is not a log file."""


def projects_dir() -> Path:
    return config.PROJECTS_DIR


def decode_project_path(encoded: str) -> str:
    return encoded.replace("-", "/")


def project_name(encoded: str) -> str:
    """Last non-empty segment of the decoded project path."""
    segments = [s for s in decode_project_path(encoded).split("/") if s]
    return segments[-1] if segments else encoded


def session_id_for(path: Path) -> str:
    return path.stem


def is_log_file(path: Path) -> bool:
    return path.suffix == config.LOG_FILE_SUFFIX


def list_project_dirs(root: Path | None = None, project_filter: str | None = None) -> list[Path]:
    """Enumerate encoded project directories, sorted by name.

    A missing root yields an empty list; failure to read an existing root
    propagates.
    """
    root = root if root is not None else projects_dir()
    if not root.exists():
        return []

    dirs: list[Path] = []
    for entry in root.iterdir():
        if project_filter is not None and entry.name != project_filter:
            continue
        if not entry.name.startswith("-"):
            continue
        try:
            if entry.is_dir():
                dirs.append(entry)
        except OSError as e:
            logger.warning("Skipping unreadable project entry %s: %s", entry, e)
    return sorted(dirs, key=lambda p: p.name)


def list_log_files(project_dir: Path) -> list[Path]:
    """Log files directly inside one project directory, sorted by name."""
    return sorted(
        (p for p in project_dir.iterdir() if is_log_file(p) and p.is_file()),
        key=lambda p: p.name,
    )


def iter_archive_logs(root: Path | None = None, project_filter: str | None = None):
    """Yield (project_dir, log_path) across the archive, skipping unreadable projects."""
    for project_dir in list_project_dirs(root, project_filter):
        try:
            log_files = list_log_files(project_dir)
        except OSError as e:
            logger.warning("Skipping unreadable project directory %s: %s", project_dir, e)
            continue
        for log_path in log_files:
            yield project_dir, log_path


def validate_session_path(session_path: str, root: Path | None = None) -> Path:
    """Resolve a caller-supplied path and confine it to the projects directory."""
    path = Path(session_path)
    if not path.is_absolute():
        raise InvalidSessionPathError("Session path must be absolute")

    base = (root if root is not None else projects_dir()).resolve()
    resolved = path.resolve()
    if resolved != base and base not in resolved.parents:
        raise InvalidSessionPathError("Path outside allowed directory")
    if not is_log_file(resolved):
        raise InvalidSessionPathError("Invalid file type")
    return resolved
