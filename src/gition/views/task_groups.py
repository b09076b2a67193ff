"""
Fold flat task lists into per-file task groups.

Pure aggregation; file bodies and frontmatter come in through
``file_lookup`` so nothing here touches the filesystem.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from gition.models.task import TaskGroup, TaskRecord

# Sort order of group types; unknown types sort last
TYPE_PRIORITY: Dict[str, int] = {
    "epic": 1,
    "doc": 2,
    "story": 3,
    "custom": 4,
}


def group_id_for(task: TaskRecord) -> str:
    stem = Path(task.file).stem
    return f"{task.folder}/{stem}" if task.folder else f"docs/{stem}"


def _file_field(entry: Any, name: str) -> Any:
    if entry is None:
        return None
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def is_visible(group: TaskGroup) -> bool:
    """Single-task files only show up when they are epics or docs."""
    return (
        group.total_tasks > 1
        or group.type == "epic"
        or (group.type == "doc" and group.total_tasks > 0)
    )


def get_task_groups(
    tasks: Iterable[TaskRecord],
    file_lookup: Optional[Mapping[str, Any]] = None,
) -> List[TaskGroup]:
    """
    Group tasks by source file.

    Args:
        tasks: Task records, typically from extract_tasks over many files
        file_lookup: file path → object (or dict) with ``content`` and
            ``metadata``, used to seed each group

    Returns:
        Visible groups, epics first, then docs, stories, custom; ties by
        case-insensitive name.
    """
    file_lookup = file_lookup or {}
    groups: Dict[str, TaskGroup] = {}

    for task in tasks:
        gid = group_id_for(task)
        group = groups.get(gid)
        if group is None:
            entry = file_lookup.get(task.file)
            group = TaskGroup(
                id=gid,
                name=Path(task.file).stem,
                type=task.type,
                file=task.file,
                folder=task.folder,
                content=_file_field(entry, "content"),
                metadata=dict(_file_field(entry, "metadata") or {}),
            )
            groups[gid] = group
        group.add(task)

    visible = [g for g in groups.values() if is_visible(g)]
    visible.sort(key=lambda g: (TYPE_PRIORITY.get(g.type, 5), g.name.lower()))
    return visible


def get_tasks_by_group(tasks: Iterable[TaskRecord], group_id: str) -> List[TaskRecord]:
    """Return the tasks belonging to ``group_id`` (``folder/name`` or ``name``)."""
    if "/" in group_id:
        folder, name = group_id.split("/", 1)
    else:
        folder, name = "docs", group_id
    return [
        t for t in tasks
        if (t.folder or "docs") == folder and Path(t.file).stem == name
    ]
