"""REST API routes for docs, workspace structure, configuration and diagnostics."""

import logging
from typing import List, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from gition.api.task_handlers import (
    handle_cache_status,
    handle_config,
    handle_config_update,
    handle_docs,
    handle_structure,
)

log = logging.getLogger(__name__)


class ConfigBody(BaseModel):
    """Config fields; snake_case or the camelCase keys of config.yaml."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    docs_dir: Optional[str] = Field(None, alias="docsDir")
    tasks_dir: Optional[str] = Field(None, alias="tasksDir")
    host: Optional[str] = None
    port: Optional[int] = None
    exclude_dirs: Optional[List[str]] = Field(None, alias="excludeDirs")
    poll_interval: Optional[float] = Field(None, alias="pollInterval")


def register_doc_routes(app_router: APIRouter, cache) -> None:
    """Attach workspace routes that use the shared cache."""

    @app_router.get("/docs")
    def list_docs():
        return handle_docs(cache)

    @app_router.get("/structure")
    def get_structure():
        return handle_structure(cache)

    @app_router.get("/config")
    def get_config():
        return handle_config(cache)

    @app_router.post("/config")
    def update_config(body: ConfigBody):
        try:
            return handle_config_update(cache, changes=body.model_dump(exclude_none=True))
        except (OSError, TypeError, ValueError):
            log.exception("Error updating config")
            return JSONResponse(
                status_code=500, content={"error": "Failed to update configuration"}
            )

    @app_router.put("/config")
    def replace_config(body: ConfigBody):
        try:
            return handle_config_update(
                cache, changes=body.model_dump(exclude_none=True), replace=True
            )
        except (OSError, TypeError, ValueError):
            log.exception("Error replacing config")
            return JSONResponse(
                status_code=500, content={"error": "Failed to replace configuration"}
            )

    @app_router.get("/cache/status")
    def get_cache_status():
        return handle_cache_status(cache)
