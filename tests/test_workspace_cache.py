"""
Tests for cache/workspace_cache.py.

Builds a real workspace on disk with docs/ and tasks/ and exercises the
cache end to end: scanning, grouping, task file views, refresh and writes.
"""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from gition.cache.workspace_cache import WorkspaceCache
from gition.config import GitionConfig
from gition.models.task import TaskUpdate
from gition.parsers.markdown_file import split_frontmatter


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_workspace(tmp_path: Path) -> Path:
    ws = tmp_path / "ws"
    docs = ws / "docs"
    epics = ws / "tasks" / "epics"
    stories = ws / "tasks" / "stories"
    docs.mkdir(parents=True)
    epics.mkdir(parents=True)
    stories.mkdir(parents=True)

    (docs / "getting-started.md").write_text(
        "---\n"
        "title: Getting Started\n"
        "date: 2024-01-10\n"
        "---\n"
        "# Getting Started\n"
        "- [ ] Install gition\n"
        "- [x] Read the roadmap ref:epics/v1-roadmap\n",
        encoding="utf-8",
    )
    (docs / "notes.md").write_text("No tasks here.\n", encoding="utf-8")
    (epics / "v1-roadmap.md").write_text(
        "---\n"
        "title: V1 Roadmap\n"
        "status: todo\n"
        "---\n"
        "# V1 Roadmap\n"
        "\n"
        "- [ ] Ship parser (high) #core\n"
        "- [~] Build API +alice\n"
        "- [x] Write overview\n",
        encoding="utf-8",
    )
    (stories / "login.md").write_text("- [ ] Login form\n", encoding="utf-8")
    return ws


def _init(ws: Path) -> WorkspaceCache:
    cache = WorkspaceCache()
    cache.initialize(ws, config=GitionConfig())
    return cache


def _task_id(cache: WorkspaceCache, title: str) -> str:
    return next(t.id for t in cache.all_tasks() if t.title == title)


def _bump_mtime(path: Path) -> None:
    st = path.stat()
    os.utime(path, (st.st_atime, st.st_mtime + 10))


@pytest.fixture
def ws(tmp_path):
    return _make_workspace(tmp_path)


@pytest.fixture
def cache(ws):
    return _init(ws)


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

class TestInitialize:
    def test_counts(self, cache):
        status = cache.status()
        assert status["files_indexed"] == 4
        assert status["tasks_indexed"] == 6
        assert status["last_full_scan"] is not None

    def test_directories_from_config(self, ws, cache):
        assert cache.docs_dir == ws / "docs"
        assert cache.tasks_dir == ws / "tasks"
        assert cache.watched_dirs() == [ws / "docs", ws / "tasks"]

    def test_explicit_directories(self, ws):
        cache = WorkspaceCache()
        cache.initialize(ws, docs_dir=ws / "tasks", tasks_dir=ws / "tasks")
        assert cache.status()["files_indexed"] == 2

    def test_excluded_dirs(self, ws):
        vendored = ws / "docs" / "vendor"
        vendored.mkdir()
        (vendored / "x.md").write_text("- [ ] Vendored\n", encoding="utf-8")
        cache = WorkspaceCache()
        cache.initialize(ws, config=GitionConfig(exclude_dirs={"vendor"}))
        assert all(t.title != "Vendored" for t in cache.all_tasks())


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class TestQueries:
    def test_all_tasks_docs_first(self, cache):
        titles = [t.title for t in cache.all_tasks()]
        assert titles[:2] == ["Install gition", "Read the roadmap"]
        assert set(titles[2:]) == {"Ship parser", "Build API", "Write overview", "Login form"}

    def test_task_types(self, cache):
        by_title = {t.title: t for t in cache.all_tasks()}
        assert by_title["Install gition"].type == "doc"
        assert by_title["Ship parser"].type == "epic"
        assert by_title["Ship parser"].folder == "epics"
        assert by_title["Login form"].type == "story"

    def test_line_numbers_count_from_body(self, cache):
        by_title = {t.title: t for t in cache.all_tasks()}
        assert by_title["Install gition"].line == 2
        assert by_title["Ship parser"].line == 3

    def test_task_groups(self, cache):
        groups = cache.task_groups()
        assert [g.id for g in groups] == ["epics/v1-roadmap", "docs/getting-started"]
        assert groups[0].metadata["title"] == "V1 Roadmap"
        assert groups[0].content.startswith("# V1 Roadmap")

    def test_tasks_by_group(self, cache):
        assert len(cache.tasks_by_group("epics/v1-roadmap")) == 3
        assert len(cache.tasks_by_group("stories/login")) == 1

    def test_kanban(self, cache):
        board = cache.kanban_board("epics/v1-roadmap")
        assert board.stats() == {"total": 3, "todo": 1, "inProgress": 1, "done": 1}
        assert cache.kanban_board().total_tasks == 6

    def test_docs_files(self, cache):
        names = [f.filename for f in cache.docs_files()]
        assert names == ["getting-started.md", "notes.md"]
        assert [f.filename for f in cache.tasks_files()] == ["v1-roadmap.md", "login.md"]

    def test_structure(self, ws, cache):
        structure = cache.structure()
        assert structure["paths"]["docs"] == str(ws / "docs")
        assert [n["name"] for n in structure["root"]] == ["docs", "tasks"]
        assert [n["name"] for n in structure["tasks"]] == ["epics", "stories"]


class TestTaskFile:
    def test_epic_file(self, ws, cache):
        view = cache.task_file("epics/v1-roadmap")
        assert view["isDocsFile"] is False
        assert view["filePath"] == str(ws / "tasks" / "epics" / "v1-roadmap.md")
        assert view["frontmatter"]["title"] == "V1 Roadmap"
        assert len(view["tasks"]) == 3
        assert view["group"]["id"] == "epics/v1-roadmap"
        assert [t["title"] for t in view["referencedBy"]] == ["Read the roadmap"]
        assert view["relatedTasks"] == []

    def test_doc_file_related_tasks(self, cache):
        view = cache.task_file("getting-started")
        assert view["isDocsFile"] is True
        assert {t["title"] for t in view["relatedTasks"]} == {
            "Ship parser",
            "Build API",
            "Write overview",
        }

    def test_single_task_file_has_no_group(self, cache):
        view = cache.task_file("stories/login")
        assert view["group"] is None
        assert len(view["tasks"]) == 1

    def test_missing(self, cache):
        assert cache.task_file("epics/missing") is None


# ---------------------------------------------------------------------------
# Refresh / invalidation
# ---------------------------------------------------------------------------

class TestRefresh:
    def test_refresh_modified_file(self, ws, cache):
        path = ws / "tasks" / "stories" / "login.md"
        path.write_text("- [ ] Login form\n- [ ] Logout\n", encoding="utf-8")
        _bump_mtime(path)
        cache.refresh_file(path)
        assert len(cache.tasks_by_group("stories/login")) == 2

    def test_refresh_unchanged_mtime_keeps_entry(self, ws, cache):
        path = ws / "tasks" / "stories" / "login.md"
        before = cache.get_file(path)
        cache.refresh_file(path)
        assert cache.get_file(path) is before

    def test_refresh_new_file(self, ws, cache):
        path = ws / "docs" / "faq.md"
        path.write_text("- [ ] Answer questions\n", encoding="utf-8")
        cache.refresh_file(path)
        assert any(t.title == "Answer questions" for t in cache.all_tasks())

    def test_refresh_deleted_file(self, ws, cache):
        path = ws / "tasks" / "stories" / "login.md"
        path.unlink()
        cache.refresh_file(path)
        assert cache.tasks_by_group("stories/login") == []
        assert cache.status()["files_indexed"] == 3

    def test_non_markdown_ignored(self, ws, cache):
        path = ws / "docs" / "data.txt"
        path.write_text("- [ ] Not a task file\n", encoding="utf-8")
        cache.refresh_file(path)
        assert cache.status()["files_indexed"] == 4

    def test_invalidate_forces_reload(self, ws, cache):
        path = ws / "tasks" / "stories" / "login.md"
        before = cache.get_file(path)
        cache.invalidate(path)
        assert cache.get_file(path) is not before

    def test_invalidate_all(self, ws, cache):
        (ws / "docs" / "notes.md").unlink()
        cache.invalidate_all()
        assert cache.status()["files_indexed"] == 3

    def test_worker_drains_queue(self, ws, cache):
        path = ws / "docs" / "notes.md"
        path.write_text("- [ ] Queued task\n", encoding="utf-8")
        cache.start_worker()
        cache.enqueue_refresh(path)
        cache.stop_worker()
        assert any(t.title == "Queued task" for t in cache.all_tasks())


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

class TestUpdateSubtask:
    def test_status_update(self, ws, cache):
        subtask = _task_id(cache, "Build API")
        located = cache.update_subtask("epics/v1-roadmap", subtask, TaskUpdate(status="done"))

        path = ws / "tasks" / "epics" / "v1-roadmap.md"
        assert located == (path, True)
        text = path.read_text(encoding="utf-8")
        assert "- [x] Build API +alice\n" in text
        assert "- [ ] Ship parser (high) #core\n" in text
        assert text.endswith("\n")

        metadata, _ = split_frontmatter(text)
        assert metadata == {"title": "V1 Roadmap", "status": "todo"}

        by_title = {t.title: t for t in cache.all_tasks()}
        assert by_title["Build API"].status == "done"
        assert by_title["Build API"].id == subtask

    def test_metadata_update(self, ws, cache):
        subtask = _task_id(cache, "Ship parser")
        cache.update_subtask(
            "epics/v1-roadmap", subtask, TaskUpdate(metadata={"estimate": 5})
        )
        text = (ws / "tasks" / "epics" / "v1-roadmap.md").read_text(encoding="utf-8")
        assert "- [ ] Ship parser (high) #core {estimate: 5}\n" in text

    def test_file_without_frontmatter(self, ws, cache):
        subtask = _task_id(cache, "Login form")
        cache.update_subtask("login", subtask, TaskUpdate(status="in_progress"))
        path = ws / "tasks" / "stories" / "login.md"
        assert path.read_text(encoding="utf-8") == "- [~] Login form\n"

    def test_unknown_task_file(self, cache):
        assert cache.update_subtask("epics/missing", "x.md-0", TaskUpdate(status="done")) is None

    def test_unknown_subtask_leaves_file(self, ws, cache):
        path = ws / "tasks" / "epics" / "v1-roadmap.md"
        before = path.read_text(encoding="utf-8")
        located = cache.update_subtask(
            "epics/v1-roadmap", "v1-roadmap.md-99", TaskUpdate(status="done")
        )
        assert located == (path, False)
        assert path.read_text(encoding="utf-8") == before

    def test_no_temp_files_left(self, ws, cache):
        subtask = _task_id(cache, "Login form")
        cache.update_subtask("stories/login", subtask, TaskUpdate(status="done"))
        assert [p.name for p in (ws / "tasks" / "stories").iterdir()] == ["login.md"]

    def test_untouched_lines_kept_byte_for_byte(self, ws, cache):
        path = ws / "tasks" / "stories" / "spacing.md"
        path.write_text("\n\n  - [ ] indented first\n- [ ] second\n\n\n", encoding="utf-8")
        cache.invalidate(path)

        subtask = _task_id(cache, "second")
        assert subtask == "spacing.md-3"
        cache.update_subtask("stories/spacing", subtask, TaskUpdate(status="done"))

        assert path.read_text(encoding="utf-8") == (
            "\n\n  - [ ] indented first\n- [x] second\n\n\n"
        )

    def test_frontmatter_block_kept_verbatim(self, ws, cache):
        path = ws / "tasks" / "stories" / "notes.md"
        original = (
            "---\n"
            "title: Notes\n"
            "author: me\n"
            "tags: [a,   b]\n"
            "---\n"
            "# Notes\n"
            "- [ ] Draft\n"
        )
        path.write_text(original, encoding="utf-8")
        cache.invalidate(path)

        subtask = _task_id(cache, "Draft")
        cache.update_subtask("stories/notes", subtask, TaskUpdate(status="done"))

        assert path.read_text(encoding="utf-8") == original.replace("- [ ] Draft", "- [x] Draft")


class TestUpdateTaskStatus:
    def test_keeps_key_order_and_body(self, ws, cache):
        path = cache.update_task_status("epics/v1-roadmap", "in_progress")
        assert path.read_text(encoding="utf-8") == (
            "---\n"
            "title: V1 Roadmap\n"
            "status: in_progress\n"
            "---\n"
            "# V1 Roadmap\n"
            "\n"
            "- [ ] Ship parser (high) #core\n"
            "- [~] Build API +alice\n"
            "- [x] Write overview\n"
        )

    def test_sets_frontmatter_status(self, ws, cache):
        path = cache.update_task_status("epics/v1-roadmap", "in_progress")
        assert path == ws / "tasks" / "epics" / "v1-roadmap.md"
        metadata, body = split_frontmatter(path.read_text(encoding="utf-8"))
        assert metadata["status"] == "in_progress"
        assert metadata["title"] == "V1 Roadmap"
        assert "- [~] Build API +alice" in body

    def test_adds_frontmatter_when_missing(self, ws, cache):
        path = cache.update_task_status("stories/login", "done")
        text = path.read_text(encoding="utf-8")
        assert text.startswith("---\nstatus: done\n---\n")

    def test_unknown(self, cache):
        assert cache.update_task_status("nope", "done") is None
