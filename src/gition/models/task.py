"""
Core task data models.

TaskRecord is one checkbox line; TaskGroup aggregates the records of one
source file. Both are recomputed from file content on every read, so the
only identity a record has is its ``{basename}-{line index}`` id.

``to_dict`` renders the JSON shape served by the REST API. Optional fields
that are absent are left out of the dict rather than emitted as null.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

Status = Literal["todo", "in_progress", "done"]
Priority = Literal["low", "medium", "high"]
TaskType = Literal["doc", "epic", "story", "bug", "custom"]

STATUSES = ("todo", "in_progress", "done")
PRIORITIES = ("low", "medium", "high")

# Folder name → task type
_FOLDER_TYPES: Dict[str, str] = {
    "epics": "epic",
    "stories": "story",
    "bugs": "bug",
    "docs": "doc",
}


def task_type_for_folder(folder: str) -> str:
    """Map a folder under the tasks directory to its task type."""
    return _FOLDER_TYPES.get(folder, "custom")


@dataclass
class TaskMetadata:
    """Inline annotations extracted from a task title."""

    priority: Optional[Priority] = None
    due_date: Optional[str] = None
    assignee: Optional[str] = None
    tags: Optional[List[str]] = None

    def is_empty(self) -> bool:
        return (
            self.priority is None
            and self.due_date is None
            and self.assignee is None
            and not self.tags
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.priority is not None:
            d["priority"] = self.priority
        if self.due_date is not None:
            d["due_date"] = self.due_date
        if self.assignee is not None:
            d["assignee"] = self.assignee
        if self.tags:
            d["tags"] = list(self.tags)
        return d


@dataclass
class TaskRecord:
    """A single checkbox task parsed from a markdown body."""

    id: str
    title: str
    completed: bool
    status: str
    line: int
    file: str
    type: TaskType = "doc"
    folder: Optional[str] = None
    references: Optional[List[str]] = None
    metadata: Optional[TaskMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "status": self.status,
            "line": self.line,
            "file": self.file,
            "type": self.type,
        }
        if self.folder is not None:
            d["folder"] = self.folder
        if self.references:
            d["references"] = list(self.references)
        if self.metadata is not None:
            d["metadata"] = self.metadata.to_dict()
        return d


@dataclass
class TaskGroup:
    """All tasks found in one source file."""

    id: str
    name: str
    type: str
    file: str
    folder: Optional[str] = None
    subtasks: List[TaskRecord] = field(default_factory=list)
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    content: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add(self, task: TaskRecord) -> None:
        """Append a subtask and keep the counters in step."""
        self.subtasks.append(task)
        self.total_tasks += 1
        if task.completed:
            self.completed_tasks += 1
        else:
            self.pending_tasks += 1

    @property
    def progress(self) -> int:
        """Completion percentage, rounded."""
        if self.total_tasks == 0:
            return 0
        return round(self.completed_tasks * 100 / self.total_tasks)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "file": self.file,
            "subtasks": [t.to_dict() for t in self.subtasks],
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "pendingTasks": self.pending_tasks,
            "progress": self.progress,
            "metadata": dict(self.metadata),
        }
        if self.folder is not None:
            d["folder"] = self.folder
        if self.content is not None:
            d["content"] = self.content
        return d


@dataclass
class TaskUpdate:
    """A partial change to one subtask line."""

    status: Optional[Status] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class UpdateResult:
    updated_content: str
    found: bool
