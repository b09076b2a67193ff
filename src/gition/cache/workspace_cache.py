"""
Thread-safe, process-scoped cache of parsed workspace files.

Design:
    Primary store: Dict[Path, CachedFile]  (MarkdownFile + its TaskRecords)
    File locks:    Dict[Path, Lock]        (serialises read-modify-write per file)

All reads and mutations of the store acquire _lock (threading.RLock).
Entries are replaced on refresh_file()/invalidate(). The watcher queues
changed paths on _update_queue; a worker thread drains it. Task ids and
groups are always recomputed from the cached body, never stored
independently.

The update path holds the file's lock across read → apply_update → write,
and writes through a temp file + os.replace so a reader never sees a
half-written file.
"""

import logging
import os
import queue
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from gition.config import GitionConfig
from gition.models.document import CachedFile, MarkdownFile
from gition.models.task import TaskGroup, TaskRecord, TaskUpdate
from gition.parsers.markdown_file import (
    join_frontmatter,
    parse_markdown_file,
    split_frontmatter,
    split_raw_frontmatter,
)
from gition.parsers.serializer import apply_update
from gition.parsers.task_parser import extract_tasks
from gition.store.files import (
    get_directory_structure,
    is_markdown_file,
    scan_markdown_files,
    sort_docs,
)
from gition.store.locator import find_task_file
from gition.views.kanban import KanbanBoard, build_kanban_board
from gition.views.task_groups import get_task_groups, get_tasks_by_group

log = logging.getLogger(__name__)


def _write_atomic(path: Path, text: str) -> None:
    """Write ``text`` to a sibling temp file, then rename it over ``path``."""
    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class WorkspaceCache:
    """
    In-memory cache of the docs and tasks directories.

    Call initialize() once, then start_worker(). The WorkspaceWatcher calls
    enqueue_refresh() for changed files; invalidate()/invalidate_all() are
    the synchronous hooks for everything else.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._files: Dict[Path, CachedFile] = {}
        self._file_locks: Dict[Path, threading.Lock] = {}
        self._config = GitionConfig()
        self._target_dir: Optional[Path] = None
        self._docs_dir: Optional[Path] = None
        self._tasks_dir: Optional[Path] = None
        self._last_full_scan: Optional[datetime] = None
        self._update_queue: "queue.Queue[Optional[Path]]" = queue.Queue()
        self._worker_thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def initialize(
        self,
        target_dir: Path,
        docs_dir: Optional[Path] = None,
        tasks_dir: Optional[Path] = None,
        config: Optional[GitionConfig] = None,
    ) -> None:
        """
        Full workspace scan. Blocks until complete.
        Call once at startup before starting the watcher.
        """
        self._config = config or GitionConfig()
        self._target_dir = target_dir
        self._docs_dir = docs_dir or target_dir / self._config.docs_dir
        self._tasks_dir = tasks_dir or target_dir / self._config.tasks_dir
        log.info("Starting workspace scan: %s", target_dir)
        self.invalidate_all()
        log.info(
            "Workspace scan complete: %d files, %d tasks",
            len(self._files),
            sum(len(cf.tasks) for cf in self._files.values()),
        )

    def start_worker(self) -> None:
        """Start the background queue-drain worker thread (daemon)."""
        self._worker_thread = threading.Thread(
            target=self._worker_loop, daemon=True, name="gition-cache-worker"
        )
        self._worker_thread.start()

    def stop_worker(self) -> None:
        """Signal the worker thread to stop and wait for it."""
        self._update_queue.put(None)  # sentinel
        if self._worker_thread:
            self._worker_thread.join(timeout=5)

    @property
    def config(self) -> GitionConfig:
        return self._config

    @property
    def target_dir(self) -> Path:
        assert self._target_dir is not None, "cache not initialized"
        return self._target_dir

    def update_config(self, config: GitionConfig) -> None:
        """
        Swap in a new configuration.

        Exclusions apply from the next scan; the docs and tasks directories
        stay as they were until the server restarts.
        """
        with self._lock:
            self._config = config
        log.info("Configuration updated")

    @property
    def docs_dir(self) -> Path:
        assert self._docs_dir is not None, "cache not initialized"
        return self._docs_dir

    @property
    def tasks_dir(self) -> Path:
        assert self._tasks_dir is not None, "cache not initialized"
        return self._tasks_dir

    def watched_dirs(self) -> List[Path]:
        return [d for d in (self._docs_dir, self._tasks_dir) if d is not None]

    # ------------------------------------------------------------------
    # Loading and invalidation
    # ------------------------------------------------------------------

    def _is_docs_path(self, path: Path) -> bool:
        try:
            path.relative_to(self.docs_dir)
            return True
        except ValueError:
            return False

    def _load_file(self, path: Path) -> None:
        """Parse a file and store it (caller holds _lock)."""
        try:
            mtime = path.stat().st_mtime
            md = parse_markdown_file(path)
        except Exception:
            log.exception("Failed to parse %s", path)
            self._files.pop(path, None)
            return
        tasks = extract_tasks(md.content, path, self.tasks_dir)
        self._files[path] = CachedFile(
            file=md, tasks=tasks, mtime=mtime, is_docs=self._is_docs_path(path)
        )

    def refresh_file(self, path: Path) -> None:
        """Re-parse ``path`` if it changed on disk; drop it if it is gone."""
        if not is_markdown_file(path):
            return
        with self._lock:
            if not path.exists():
                if self._files.pop(path, None) is not None:
                    log.debug("Dropped deleted file %s", path)
                return
            existing = self._files.get(path)
            try:
                mtime = path.stat().st_mtime
            except OSError:
                return
            if existing and existing.mtime >= mtime:
                return
            self._load_file(path)

    def invalidate(self, path: Path) -> None:
        """Forget ``path`` and reload it from disk, whatever its mtime."""
        with self._lock:
            self._files.pop(path, None)
        self.refresh_file(path)

    def _worker_loop(self) -> None:
        """Drain the update queue, re-parsing files as they arrive."""
        while True:
            item = self._update_queue.get()
            if item is None:  # sentinel → stop
                break
            try:
                self.invalidate(item)
            except Exception:
                log.exception("Worker failed to refresh %s", item)

    def enqueue_refresh(self, path: Path) -> None:
        """Schedule a file re-parse from a watcher callback (non-blocking)."""
        self._update_queue.put(path)

    def invalidate_all(self) -> None:
        """Drop everything and rescan both directories."""
        exclude = self._config.exclude_dirs
        with self._lock:
            self._files.clear()
            for root in self.watched_dirs():
                for path in scan_markdown_files(root, exclude):
                    if path not in self._files:
                        self._load_file(path)
            self._last_full_scan = datetime.now()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _cached(self, docs: Optional[bool] = None) -> List[CachedFile]:
        with self._lock:
            entries = sorted(self._files.items(), key=lambda kv: str(kv[0]))
        if docs is None:
            # docs first, then tasks
            return [cf for _, cf in entries if cf.is_docs] + [
                cf for _, cf in entries if not cf.is_docs
            ]
        return [cf for _, cf in entries if cf.is_docs == docs]

    def docs_files(self) -> List[MarkdownFile]:
        return sort_docs([cf.file for cf in self._cached(docs=True)])

    def tasks_files(self) -> List[MarkdownFile]:
        return [cf.file for cf in self._cached(docs=False)]

    def all_tasks(self) -> List[TaskRecord]:
        tasks: List[TaskRecord] = []
        for cf in self._cached():
            tasks.extend(cf.tasks)
        return tasks

    def file_lookup(self) -> Dict[str, MarkdownFile]:
        return {cf.file.filepath: cf.file for cf in self._cached()}

    def task_groups(self) -> List[TaskGroup]:
        return get_task_groups(self.all_tasks(), self.file_lookup())

    def tasks_by_group(self, group_id: str) -> List[TaskRecord]:
        return get_tasks_by_group(self.all_tasks(), group_id)

    def kanban_board(self, group_id: Optional[str] = None) -> KanbanBoard:
        tasks = self.tasks_by_group(group_id) if group_id else self.all_tasks()
        return build_kanban_board(tasks, group_id)

    def locate(self, task_id: str) -> Optional[Tuple[Path, bool]]:
        return find_task_file(task_id, self.docs_dir, self.tasks_dir)

    def get_file(self, path: Path) -> Optional[CachedFile]:
        self.refresh_file(path)
        with self._lock:
            return self._files.get(path)

    def task_file(self, slug: str) -> Optional[Dict[str, Any]]:
        """
        Everything the task page needs for one file: body, frontmatter, its
        tasks, its group, tasks it references and tasks referencing it.
        """
        located = self.locate(slug)
        if not located:
            return None
        path, is_docs = located
        cached = self.get_file(path)
        if cached is None:
            return None

        all_tasks = self.all_tasks()
        file_tasks = cached.tasks
        group = next((g for g in self.task_groups() if g.file == str(path)), None)

        referenced_by = [
            t for t in all_tasks
            if any(slug in ref for ref in t.references or [])
        ]
        related = [
            t for t in all_tasks
            if any(
                Path(t.file).stem in ref
                for ft in file_tasks
                for ref in ft.references or []
            )
        ]

        return {
            "slug": slug,
            "filePath": str(path),
            "content": cached.file.content,
            "frontmatter": dict(cached.file.metadata),
            "tasks": [t.to_dict() for t in file_tasks],
            "group": group.to_dict() if group else None,
            "relatedTasks": [t.to_dict() for t in related],
            "referencedBy": [t.to_dict() for t in referenced_by],
            "isDocsFile": is_docs,
        }

    def structure(self) -> Dict[str, Any]:
        exclude = self._config.exclude_dirs
        target = self._target_dir or Path.cwd()
        return {
            "root": [n.to_dict() for n in get_directory_structure(target, exclude)],
            "docs": [n.to_dict() for n in get_directory_structure(self.docs_dir, exclude)],
            "tasks": [n.to_dict() for n in get_directory_structure(self.tasks_dir, exclude)],
            "paths": {
                "target": str(target),
                "docs": str(self.docs_dir),
                "tasks": str(self.tasks_dir),
            },
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._lock:
            lock = self._file_locks.get(path)
            if lock is None:
                lock = self._file_locks[path] = threading.Lock()
            return lock

    def _write(self, path: Path, text: str) -> None:
        _write_atomic(path, text)
        self.invalidate(path)

    def update_subtask(
        self,
        task_id: str,
        subtask_id: str,
        update: TaskUpdate,
    ) -> Optional[Tuple[Path, bool]]:
        """
        Rewrite one task line of the file behind ``task_id``.

        The frontmatter block and every other body line are written back
        byte for byte.

        Returns:
            None when no file matches ``task_id``; otherwise
            ``(path, found)`` where ``found`` tells whether the subtask line
            existed (the file is untouched when it did not).

        Raises:
            OSError: when the file cannot be read or written
        """
        located = self.locate(task_id)
        if not located:
            log.info("No file found for task %s", task_id)
            return None
        path, _ = located

        with self._lock_for(path):
            original = path.read_text(encoding="utf-8")
            head, body = split_raw_frontmatter(original)
            result = apply_update(body, subtask_id, update, filepath=path)
            if not result.found:
                log.info("Subtask %s not found in %s", subtask_id, path)
                return path, False
            self._write(path, head + result.updated_content)

        log.info("Updated subtask %s in %s", subtask_id, path)
        return path, True

    def update_task_status(self, task_id: str, status: str) -> Optional[Path]:
        """
        Set the frontmatter ``status`` of the file behind ``task_id``.

        Existing keys keep their order; the body is written back unchanged.
        """
        located = self.locate(task_id)
        if not located:
            return None
        path, _ = located

        with self._lock_for(path):
            original = path.read_text(encoding="utf-8")
            metadata, body = split_frontmatter(original)
            metadata["status"] = status
            self._write(path, join_frontmatter(body, metadata))

        log.info("Set status of %s to %s", path, status)
        return path

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        with self._lock:
            files = len(self._files)
            tasks = sum(len(cf.tasks) for cf in self._files.values())
        return {
            "target_dir": str(self._target_dir) if self._target_dir else None,
            "docs_dir": str(self._docs_dir) if self._docs_dir else None,
            "tasks_dir": str(self._tasks_dir) if self._tasks_dir else None,
            "files_indexed": files,
            "tasks_indexed": tasks,
            "exclude_dirs": sorted(self._config.exclude_dirs),
            "last_full_scan": (
                self._last_full_scan.isoformat() if self._last_full_scan else None
            ),
        }
