"""Kanban board projection of task records, one column per status."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from gition.models.task import TaskRecord

DEFAULT_COLUMNS = (
    ("todo", "To Do"),
    ("in_progress", "In Progress"),
    ("done", "Done"),
)


@dataclass
class KanbanColumn:
    id: str
    title: str
    tasks: List[TaskRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class KanbanBoard:
    columns: List[KanbanColumn]
    total_tasks: int = 0
    group_id: Optional[str] = None
    group_name: Optional[str] = None

    def stats(self) -> Dict[str, int]:
        counts = {col.id: len(col.tasks) for col in self.columns}
        return {
            "total": self.total_tasks,
            "todo": counts.get("todo", 0),
            "inProgress": counts.get("in_progress", 0),
            "done": counts.get("done", 0),
        }

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "columns": [c.to_dict() for c in self.columns],
            "totalTasks": self.total_tasks,
        }
        if self.group_id is not None:
            d["groupId"] = self.group_id
        if self.group_name is not None:
            d["groupName"] = self.group_name
        return d


def build_kanban_board(
    tasks: Iterable[TaskRecord],
    group_id: Optional[str] = None,
) -> KanbanBoard:
    """
    Sort tasks into To Do / In Progress / Done columns.

    Tasks with a status outside the three columns are counted in
    ``total_tasks`` but not placed.
    """
    columns = [KanbanColumn(id=cid, title=title) for cid, title in DEFAULT_COLUMNS]
    by_id = {col.id: col for col in columns}
    total = 0
    for task in tasks:
        total += 1
        col = by_id.get(task.status)
        if col is not None:
            col.tasks.append(task)

    if group_id:
        group_name = group_id.split("/")[-1] or group_id
    else:
        group_name = "All Tasks"

    return KanbanBoard(
        columns=columns,
        total_tasks=total,
        group_id=group_id or None,
        group_name=group_name,
    )
