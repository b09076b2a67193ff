from .task import (
    PRIORITIES,
    STATUSES,
    TaskGroup,
    TaskMetadata,
    TaskRecord,
    TaskUpdate,
    UpdateResult,
    task_type_for_folder,
)
from .document import CachedFile, DirectoryNode, MarkdownFile

__all__ = [
    "PRIORITIES",
    "STATUSES",
    "TaskGroup",
    "TaskMetadata",
    "TaskRecord",
    "TaskUpdate",
    "UpdateResult",
    "task_type_for_folder",
    "CachedFile",
    "DirectoryNode",
    "MarkdownFile",
]
