from .task_groups import get_task_groups, get_tasks_by_group
from .kanban import KanbanBoard, KanbanColumn, build_kanban_board

__all__ = [
    "get_task_groups",
    "get_tasks_by_group",
    "KanbanBoard",
    "KanbanColumn",
    "build_kanban_board",
]
