"""
Checkbox task extraction from markdown bodies.

Main API:
    extract_tasks(content, filepath)  → List[TaskRecord]
    scan_task_lines(content, filepath)  → Iterator[TaskLine]

Matching is a flat per-line regex with no knowledge of markdown block
structure: indentation is captured but not interpreted, so nested
checkboxes come out in line order like any other task. Frontmatter must be
stripped by the caller; line numbers count from the first body line.

scan_task_lines is the single place task ids are computed. The serializer
locates lines through it too, so an id produced here always resolves back to
the same line while the content is unchanged.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from gition.models.task import TaskRecord, task_type_for_folder
from gition.parsers.tokens import tokenize

RE_TASK_LINE = re.compile(r"^(\s*)-\s*\[([ xX~])\]\s*(.+)$")

# Checkbox char → status
_CHECKBOX_STATUS = {
    "x": "done",
    "X": "done",
    "~": "in_progress",
}


@dataclass
class TaskLine:
    """A body line that matched the checkbox pattern."""

    index: int
    id: str
    indent: str
    checkbox: str
    text: str

    @property
    def completed(self) -> bool:
        return self.checkbox in ("x", "X")

    @property
    def status(self) -> str:
        return _CHECKBOX_STATUS.get(self.checkbox, "todo")


def task_id(filepath: Union[str, Path], index: int) -> str:
    """Id of the task on 0-based line ``index`` of ``filepath``."""
    return f"{Path(filepath).name}-{index}"


def scan_task_lines(content: str, filepath: Union[str, Path]) -> Iterator[TaskLine]:
    """Yield every checkbox line of ``content`` with its id."""
    for index, line in enumerate(content.split("\n")):
        m = RE_TASK_LINE.match(line)
        if not m:
            continue
        yield TaskLine(
            index=index,
            id=task_id(filepath, index),
            indent=m.group(1),
            checkbox=m.group(2),
            text=m.group(3),
        )


def classify_path(
    filepath: Union[str, Path],
    tasks_dir: Union[str, Path] = "tasks",
) -> Tuple[str, Optional[str]]:
    """
    Return ``(type, folder)`` for a file.

    Files in a sub-folder of the tasks directory take their type from that
    folder (``tasks/epics/x.md`` → epic). Everything else is a doc. An absolute
    path checked against a relative ``tasks_dir`` is matched on that
    directory name, so ``/ws/tasks/epics/x.md`` is an epic by default.
    """
    path = Path(filepath)
    try:
        rel = path.relative_to(tasks_dir).parts
    except ValueError:
        if not path.is_absolute() or Path(tasks_dir).is_absolute():
            return "doc", None
        name = Path(tasks_dir).name
        hits = [i for i, part in enumerate(path.parts[:-1]) if part == name]
        if not hits:
            return "doc", None
        rel = path.parts[hits[-1] + 1:]
    if len(rel) < 2:
        return "doc", None
    folder = rel[0]
    return task_type_for_folder(folder), folder


def extract_tasks(
    content: str,
    filepath: Union[str, Path],
    tasks_dir: Union[str, Path] = "tasks",
) -> List[TaskRecord]:
    """
    Parse every checkbox line of a markdown body into a TaskRecord.

    Args:
        content: Markdown body with frontmatter already removed
        filepath: Source path; its basename seeds the task ids
        tasks_dir: Tasks root used to derive the folder/type of the file

    Returns:
        Tasks in line order. Empty when nothing matches; never raises.
    """
    task_type, folder = classify_path(filepath, tasks_dir)
    tasks: List[TaskRecord] = []

    for task_line in scan_task_lines(content, filepath):
        parsed = tokenize(task_line.text)
        tasks.append(
            TaskRecord(
                id=task_line.id,
                title=parsed.title,
                completed=task_line.completed,
                status=parsed.status or task_line.status,
                line=task_line.index + 1,
                file=str(filepath),
                type=task_type,
                folder=folder,
                references=parsed.references,
                metadata=parsed.metadata,
            )
        )

    return tasks
