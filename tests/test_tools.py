"""
Tests for tools/task_tools.py.

Uses a real WorkspaceCache backed by a temporary workspace on disk.
Exercises the MCP tool functions directly (bypasses transport).
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from gition.cache.workspace_cache import WorkspaceCache
from gition.tools.task_tools import register_task_tools


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_workspace(tmp_path: Path) -> Path:
    ws = tmp_path / "ws"
    (ws / "docs").mkdir(parents=True)
    (ws / "tasks" / "epics").mkdir(parents=True)

    (ws / "docs" / "faq.md").write_text(
        "---\ndate: 2024-03-01\n---\n- [ ] Collect questions\n", encoding="utf-8"
    )
    (ws / "tasks" / "epics" / "beta.md").write_text(
        "- [ ] Invite testers (high)\n"
        "- [~] Fix feedback bugs\n"
        "- [x] Build beta\n",
        encoding="utf-8",
    )
    return ws


class _FakeMCP:
    """Minimal fake to capture tool registrations."""

    def __init__(self):
        self._tools = {}

    def tool(self, *args, **kwargs):
        """Decorator that records functions by name."""
        def decorator(fn):
            self._tools[fn.__name__] = fn
            return fn
        return decorator

    def get(self, name: str):
        return self._tools[name]


@pytest.fixture
def setup(tmp_path):
    ws = _make_workspace(tmp_path)
    cache = WorkspaceCache()
    cache.initialize(ws)

    mcp = _FakeMCP()
    register_task_tools(mcp, cache)

    return mcp, cache, ws


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------

class TestReadTools:
    def test_registered(self, setup):
        mcp, _, _ = setup
        assert set(mcp._tools) == {"task_groups", "task_list", "kanban_board", "subtask_update"}

    def test_task_groups(self, setup):
        mcp, _, _ = setup
        data = json.loads(mcp.get("task_groups")())
        assert [g["id"] for g in data] == ["epics/beta", "docs/faq"]
        # frontmatter dates serialize as strings
        assert data[1]["metadata"]["date"] == "2024-03-01"

    def test_task_list_all(self, setup):
        mcp, _, _ = setup
        data = json.loads(mcp.get("task_list")())
        assert len(data) == 4

    def test_task_list_group(self, setup):
        mcp, _, _ = setup
        data = json.loads(mcp.get("task_list")(group_id="epics/beta"))
        assert [t["title"] for t in data] == ["Invite testers", "Fix feedback bugs", "Build beta"]
        assert data[0]["metadata"] == {"priority": "high"}

    def test_kanban_board(self, setup):
        mcp, _, _ = setup
        data = json.loads(mcp.get("kanban_board")(group_id="epics/beta"))
        assert data["stats"] == {"total": 3, "todo": 1, "inProgress": 1, "done": 1}


# ---------------------------------------------------------------------------
# subtask_update
# ---------------------------------------------------------------------------

class TestSubtaskUpdate:
    def test_update(self, setup):
        mcp, _, ws = setup
        data = json.loads(
            mcp.get("subtask_update")(task_id="epics/beta", subtask_id="beta.md-0", status="done")
        )
        assert data["success"] is True
        text = (ws / "tasks" / "epics" / "beta.md").read_text(encoding="utf-8")
        assert text.startswith("- [x] Invite testers (high)\n")

    def test_invalid_status(self, setup):
        mcp, _, _ = setup
        data = json.loads(
            mcp.get("subtask_update")(task_id="epics/beta", subtask_id="beta.md-0", status="nope")
        )
        assert "error" in data

    def test_unknown_subtask(self, setup):
        mcp, _, _ = setup
        data = json.loads(
            mcp.get("subtask_update")(task_id="epics/beta", subtask_id="beta.md-9", status="done")
        )
        assert data == {"error": "Subtask not found", "subtaskId": "beta.md-9"}
