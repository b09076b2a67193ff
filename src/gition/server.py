"""
gition server entry point.

Startup sequence:
1. Resolve the target, docs and tasks directories (GITION_* env vars)
2. Load .gitionrc/config.yaml
3. Initialize WorkspaceCache (full workspace scan)
4. Start cache background worker thread
5. Start WorkspaceWatcher daemon thread (unless GITION_WATCH is off)
6. Either serve the REST API with uvicorn, or, with GITION_MCP on, run the
   API in a background thread and the MCP server on stdio
"""

import logging
import os
import sys
import threading

import uvicorn

from gition.cache.workspace_cache import WorkspaceCache
from gition.config import (
    get_docs_directory,
    get_poll_interval,
    get_target_directory,
    get_tasks_directory,
    load_config,
)
from gition.watcher.workspace_watcher import WorkspaceWatcher

log = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in _TRUTHY


def _start_api_server(cache, host: str, port: int) -> None:
    """Run the FastAPI/uvicorn server (blocks)."""
    from gition.api.app import create_app

    app = create_app(cache)
    log.info("Starting REST API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level="warning")


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("GITION_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    target_dir = get_target_directory()
    if not target_dir.is_dir():
        log.error("Target directory does not exist: %s", target_dir)
        sys.exit(1)

    config = load_config(target_dir)
    docs_dir = get_docs_directory(config)
    tasks_dir = get_tasks_directory(config)
    host = os.environ.get("GITION_HOST", config.host)
    port = int(os.environ.get("GITION_PORT", config.port))

    log.info("Target dir: %s", target_dir)
    log.info("Docs dir: %s", docs_dir)
    log.info("Tasks dir: %s", tasks_dir)

    cache = WorkspaceCache()
    cache.initialize(target_dir, docs_dir, tasks_dir, config)
    cache.start_worker()

    watcher = None
    if _env_flag("GITION_WATCH", "true"):
        watcher = WorkspaceWatcher(
            cache,
            cache.watched_dirs(),
            config.exclude_dirs,
            get_poll_interval(config),
        )
        watcher.start()

    try:
        if _env_flag("GITION_MCP", "false"):
            from mcp.server.fastmcp import FastMCP

            from gition.tools import register_task_tools

            api_thread = threading.Thread(
                target=_start_api_server, args=(cache, host, port), daemon=True
            )
            api_thread.start()

            mcp = FastMCP("gition")
            register_task_tools(mcp, cache)
            log.info("Starting gition MCP server")
            mcp.run(transport="stdio")
        else:
            _start_api_server(cache, host, port)
    finally:
        if watcher:
            watcher.stop()
        cache.stop_worker()


if __name__ == "__main__":
    main()
