"""
Task MCP tools.

Core logic lives in the handle_* functions of gition.api.task_handlers
(return dicts, shared with the REST API). The wrappers registered here
serialize to JSON strings.
"""

import json
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from gition.api.task_handlers import (
    handle_group_tasks,
    handle_kanban,
    handle_subtask_update,
    handle_task_list,
)
from gition.models.task import STATUSES

log = logging.getLogger(__name__)


def register_task_tools(mcp: FastMCP, cache) -> None:
    """Register all task-related MCP tools onto the FastMCP instance."""

    @mcp.tool()
    def task_groups() -> str:
        """
        List task groups, one per markdown file with tasks.

        Single-task files are hidden unless they are epics or docs. Groups
        are ordered epics, docs, stories, then custom folders.

        Returns:
            JSON array of groups with their subtasks and progress counters
        """
        # frontmatter may hold dates
        return json.dumps(handle_task_list(cache, view="groups"), indent=2, default=str)

    @mcp.tool()
    def task_list(group_id: Optional[str] = None) -> str:
        """
        List checkbox tasks across the workspace.

        Args:
            group_id: Restrict to one group, e.g. "epics/v1-roadmap" or
                "docs/getting-started". Omit for every task.

        Returns:
            JSON array of task objects
        """
        if group_id:
            return json.dumps(handle_group_tasks(cache, group_id=group_id), indent=2)
        return json.dumps(handle_task_list(cache), indent=2)

    @mcp.tool()
    def kanban_board(group_id: Optional[str] = None) -> str:
        """
        Tasks arranged in To Do / In Progress / Done columns.

        Args:
            group_id: Restrict the board to one group. Omit for all tasks.
        """
        return json.dumps(handle_kanban(cache, group=group_id), indent=2)

    @mcp.tool()
    def subtask_update(
        task_id: str,
        subtask_id: str,
        status: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Update one checkbox line in place.

        Args:
            task_id: Group id of the file, e.g. "epics/v1-roadmap"
            subtask_id: Task id as returned by task_list, e.g. "v1-roadmap.mdx-12"
            status: "todo", "in_progress" or "done"
            metadata: Keys merged into the line's trailing {...} metadata;
                null values remove a key

        Returns:
            JSON result with success flag and file path, or an error
        """
        if status is not None and status not in STATUSES:
            return json.dumps({"error": f"Invalid status '{status}'"})
        try:
            return json.dumps(
                handle_subtask_update(
                    cache,
                    task_id=task_id,
                    subtask_id=subtask_id,
                    status=status,
                    metadata=metadata,
                ),
                indent=2,
            )
        except OSError as e:
            log.exception("subtask_update failed for %s", subtask_id)
            return json.dumps({"error": "Failed to update subtask", "details": str(e)})
