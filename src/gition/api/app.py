"""FastAPI application factory for the gition REST API."""

from fastapi import APIRouter, FastAPI

from gition.api.doc_routes import register_doc_routes
from gition.api.task_routes import register_task_routes


def create_app(cache) -> FastAPI:
    """Build and return a FastAPI app wired to the given WorkspaceCache."""
    app = FastAPI(title="gition", docs_url="/api/openapi", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_task_routes(api, cache)
    register_doc_routes(api, cache)
    app.include_router(api)

    return app
