"""Enumerate projects recorded in the archive."""
from __future__ import annotations

from pathlib import Path

from sessionlens import archive
from sessionlens.models import ProjectInfo


def list_projects(projects_dir: Path | None = None) -> list[ProjectInfo]:
    projects: list[ProjectInfo] = []
    for project_dir in archive.list_project_dirs(projects_dir):
        decoded = archive.decode_project_path(project_dir.name)
        root = Path(decoded)
        projects.append(
            ProjectInfo(
                encodedPath=project_dir.name,
                decodedPath=decoded,
                name=archive.project_name(project_dir.name),
                hasClaudeMd=(root / "CLAUDE.md").exists() or (root / ".claude" / "CLAUDE.md").exists(),
                hasSettings=(root / ".claude" / "settings.json").exists(),
            )
        )
    projects.sort(key=lambda p: p.name.lower())
    return projects
