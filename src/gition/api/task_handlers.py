"""Task handler functions shared by MCP tools and REST API."""

import logging
from typing import Any, Dict, List, Optional

from gition.config import GitionConfig, merge_config, save_config
from gition.models.task import TaskUpdate

log = logging.getLogger(__name__)


def handle_task_list(cache, *, view: Optional[str] = None) -> List[dict]:
    """All tasks, or the visible task groups when ``view == "groups"``."""
    if view == "groups":
        return [g.to_dict() for g in cache.task_groups()]
    return [t.to_dict() for t in cache.all_tasks()]


def handle_group_tasks(cache, *, group_id: str) -> List[dict]:
    return [t.to_dict() for t in cache.tasks_by_group(group_id)]


def handle_kanban(cache, *, group: Optional[str] = None) -> dict:
    board = cache.kanban_board(group or None)
    d = board.to_dict()
    d["stats"] = board.stats()
    return d


def handle_task_file(cache, *, slug: str) -> dict:
    result = cache.task_file(slug)
    if result is None:
        log.info("Task file not found: %s", slug)
        return {
            "error": "Task file not found",
            "debug": {
                "slug": slug,
                "tasksDir": str(cache.tasks_dir),
                "docsDir": str(cache.docs_dir),
            },
        }
    return result


def handle_subtask_update(
    cache,
    *,
    task_id: str,
    subtask_id: str,
    status: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> dict:
    """
    Change the checkbox and/or ``{...}`` metadata of one subtask line.

    Not-found conditions come back as ``{"error": ...}`` dicts. Read and
    write failures propagate to the caller.
    """
    log.info(
        "Updating subtask %s of %s (status=%s, metadata=%s)",
        subtask_id, task_id, status, metadata,
    )
    located = cache.update_subtask(
        task_id, subtask_id, TaskUpdate(status=status, metadata=metadata)
    )
    if located is None:
        return {"error": "Task file not found", "taskId": task_id}
    path, found = located
    if not found:
        return {"error": "Subtask not found", "subtaskId": subtask_id}
    return {
        "success": True,
        "message": "Subtask updated successfully",
        "filePath": str(path),
    }


def handle_task_status(cache, *, task_id: str, status: str) -> dict:
    """Set the frontmatter ``status`` of a task file."""
    path = cache.update_task_status(task_id, status)
    if path is None:
        return {"error": "Task file not found", "taskId": task_id}
    return {
        "success": True,
        "message": "Task status updated successfully",
        "status": status,
        "filePath": str(path),
    }


def handle_docs(cache) -> List[dict]:
    return [f.to_dict() for f in cache.docs_files()]


def handle_structure(cache) -> dict:
    return cache.structure()


def handle_config(cache) -> dict:
    return cache.config.to_dict()


def handle_config_update(
    cache, *, changes: Dict[str, Any], replace: bool = False
) -> dict:
    """
    Merge ``changes`` into the workspace config, or replace it outright, then
    save it to config.yaml and hand it to the cache.

    Raises:
        OSError: when config.yaml cannot be written
        TypeError, ValueError: when a value cannot be converted
    """
    base = GitionConfig() if replace else cache.config
    config = merge_config(base, changes)
    path = save_config(cache.target_dir, config)
    cache.update_config(config)
    log.info("Saved configuration to %s", path)
    return config.to_dict()


def handle_cache_status(cache) -> dict:
    return cache.status()
