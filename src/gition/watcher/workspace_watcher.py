"""
Polling-based workspace file watcher.

Workspaces often live on network shares or container volume mounts that do
not forward filesystem events, so we poll mtimes instead of subscribing to
inotify/FSEvents.

The watcher runs a daemon thread that:
1. Walks the docs and tasks directories every poll_interval seconds
2. Compares markdown file mtimes against the previous poll
3. Enqueues a cache refresh for any file that changed, appeared, or disappeared
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from gition.store.files import scan_markdown_files

log = logging.getLogger(__name__)

# Default polling interval in seconds
_DEFAULT_POLL_INTERVAL = 5.0


class WorkspaceWatcher:
    """
    Polling-based workspace watcher.

    Usage:
        watcher = WorkspaceWatcher(cache, [docs_dir, tasks_dir], exclude_dirs)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        cache,
        roots: Iterable[Path],
        exclude_dirs: Optional[Set[str]] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        self._cache = cache
        self._roots: List[Path] = list(roots)
        self._exclude_dirs = exclude_dirs
        self._poll_interval = poll_interval or _DEFAULT_POLL_INTERVAL
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # Known files and their mtimes from the last poll cycle
        self._known_files: Dict[Path, float] = {}

    def start(self) -> None:
        """Start the polling thread (daemon)."""
        log.info(
            "Starting workspace watcher (polling every %.1fs)", self._poll_interval
        )
        self._known_files = self._snapshot()

        self._thread = threading.Thread(
            target=self._poll_loop, daemon=True, name="gition-watcher"
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the poll thread to stop and wait for it."""
        log.info("Stopping workspace watcher")
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self._poll_interval + 2)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            self._stop_event.wait(self._poll_interval)
            if self._stop_event.is_set():
                break
            try:
                self.check_for_changes()
            except Exception:
                log.exception("Error during poll cycle")

    def check_for_changes(self) -> List[Path]:
        """Single poll cycle. Returns the paths handed to the cache."""
        current = self._snapshot()
        changed: List[Path] = []

        for path, mtime in current.items():
            old_mtime = self._known_files.get(path)
            if old_mtime is None:
                log.debug("New markdown file detected: %s", path)
                changed.append(path)
            elif mtime > old_mtime:
                log.debug("Modified markdown file: %s", path)
                changed.append(path)

        for path in self._known_files:
            if path not in current:
                log.debug("Deleted markdown file: %s", path)
                changed.append(path)

        self._known_files = current
        for path in changed:
            self._cache.enqueue_refresh(path)
        return changed

    def _snapshot(self) -> Dict[Path, float]:
        """Return {path: mtime} for every markdown file under the roots."""
        snapshot: Dict[Path, float] = {}
        for root in self._roots:
            try:
                paths = scan_markdown_files(root, self._exclude_dirs)
            except OSError:
                log.exception("Error walking %s", root)
                continue
            for path in paths:
                try:
                    snapshot[path] = path.stat().st_mtime
                except OSError:
                    pass
        return snapshot
