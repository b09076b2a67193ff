"""
Resolve task-group ids to files on disk.

    "epics/v1-roadmap"  → <tasks>/epics/v1-roadmap.mdx|.md, then <docs>/epics/...
    "getting-started"   → recursive search of docs, then tasks, for
                          getting-started.mdx|.md (and the same name with a
                          trailing "-<n>" removed)

Recursive searches stop at ``max_depth`` directory levels.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

log = logging.getLogger(__name__)

EXTENSIONS = (".mdx", ".md")
DEFAULT_MAX_DEPTH = 8


def find_file_recursively(
    directory: Path,
    filename: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Optional[Path]:
    """Breadth-first by level: files in a directory win over subdirectories."""
    if max_depth < 0 or not directory.is_dir():
        return None

    try:
        entries = sorted(directory.iterdir())
    except OSError:
        log.exception("Cannot list %s", directory)
        return None

    for entry in entries:
        if entry.is_file() and entry.name == filename:
            return entry

    for entry in entries:
        if entry.is_dir() and not entry.name.startswith("."):
            found = find_file_recursively(entry, filename, max_depth - 1)
            if found:
                return found
    return None


def _candidate_names(task_id: str) -> Iterator[str]:
    for ext in EXTENSIONS:
        yield f"{task_id}{ext}"
    if "-" in task_id:
        base = task_id.rsplit("-", 1)[0]
        for ext in EXTENSIONS:
            yield f"{base}{ext}"


def find_task_file(
    task_id: str,
    docs_dir: Path,
    tasks_dir: Path,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Optional[Tuple[Path, bool]]:
    """
    Locate the file behind a task-group id.

    Returns:
        ``(path, is_docs_file)`` or None when no file matches
    """
    task_id = task_id.strip("/")
    if not task_id or ".." in Path(task_id).parts:
        return None

    if "/" in task_id:
        folder, name = task_id.rsplit("/", 1)
        roots: List[Tuple[Path, bool]] = [(tasks_dir, False), (docs_dir, True)]
        for root, is_docs in roots:
            for ext in EXTENSIONS:
                candidate = root / folder / f"{name}{ext}"
                if candidate.is_file():
                    return candidate, is_docs
        return None

    for filename in _candidate_names(task_id):
        for root, is_docs in ((docs_dir, True), (tasks_dir, False)):
            found = find_file_recursively(root, filename, max_depth)
            if found:
                return found, is_docs
    return None
