"""REST API routes for task operations."""

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gition.api.task_handlers import (
    handle_kanban,
    handle_subtask_update,
    handle_task_file,
    handle_task_list,
    handle_task_status,
)

log = logging.getLogger(__name__)


class SubtaskUpdateBody(BaseModel):
    status: Optional[Literal["todo", "in_progress", "done"]] = None
    metadata: Optional[Dict[str, Any]] = None


class TaskStatusBody(BaseModel):
    status: Optional[str] = None


def register_task_routes(app_router: APIRouter, cache) -> None:
    """Attach task REST routes that use the shared cache."""

    @app_router.get("/tasks")
    def list_tasks(view: Optional[str] = Query(None)):
        return handle_task_list(cache, view=view)

    # Registered before /tasks/{slug:path} so "kanban" is not taken as a slug
    @app_router.get("/tasks/kanban")
    def kanban_board(group: Optional[str] = Query(None)):
        return handle_kanban(cache, group=group)

    @app_router.get("/tasks/{slug:path}")
    def get_task_file(slug: str):
        result = handle_task_file(cache, slug=slug)
        if "error" in result:
            return JSONResponse(status_code=404, content=result)
        return result

    @app_router.patch("/subtasks/{task_id:path}/{subtask_id}")
    def update_subtask(task_id: str, subtask_id: str, body: SubtaskUpdateBody):
        try:
            result = handle_subtask_update(
                cache,
                task_id=task_id,
                subtask_id=subtask_id,
                status=body.status,
                metadata=body.metadata,
            )
        except OSError as e:
            log.exception("Error updating subtask %s of %s", subtask_id, task_id)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to update subtask", "details": str(e)},
            )
        if "error" in result:
            return JSONResponse(status_code=404, content=result)
        return result

    @app_router.patch("/task-management/{task_id:path}/status")
    def update_task_status(task_id: str, body: TaskStatusBody):
        if not body.status:
            return JSONResponse(status_code=400, content={"error": "Status is required"})
        try:
            result = handle_task_status(cache, task_id=task_id, status=body.status)
        except OSError as e:
            log.exception("Error updating status of %s", task_id)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to update task status", "details": str(e)},
            )
        if "error" in result:
            return JSONResponse(status_code=404, content=result)
        return result
