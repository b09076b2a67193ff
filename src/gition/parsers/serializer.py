"""
Rewrite a single task line in a markdown body.

apply_update locates the line through scan_task_lines (the same routine
that assigns ids during extraction), rewrites its checkbox and/or trailing
``{...}`` metadata literal, and returns the whole body. Every other line
is left byte-identical. No I/O happens here; frontmatter handling and
writing are the caller's job.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from gition.models.task import TaskUpdate, UpdateResult
from gition.parsers.metadata_literal import (
    MetadataLiteralError,
    parse_metadata_literal,
    render_metadata_literal,
)
from gition.parsers.task_parser import scan_task_lines
from gition.parsers.tokens import strip_status_tokens

log = logging.getLogger(__name__)

# Lazy title so the suffix starts at the earliest "{" that runs to the end
_RE_METADATA_SUFFIX = re.compile(r"^(.+?)(\s*\{.+\})?$")

# Status → checkbox
_STATUS_CHECKBOX = {
    "done": "[x]",
    "in_progress": "[~]",
}


def checkbox_for_status(status: str) -> str:
    return _STATUS_CHECKBOX.get(status, "[ ]")


def split_metadata_suffix(text: str) -> Tuple[str, str]:
    """Split a raw task title into ``(title, suffix)``; suffix may be ""."""
    m = _RE_METADATA_SUFFIX.match(text)
    if not m:
        return text, ""
    return m.group(1).strip(), m.group(2) or ""


def _merge_metadata(suffix: str, changes: Dict[str, Any]) -> str:
    existing: Dict[str, Any] = {}
    if suffix:
        try:
            existing = parse_metadata_literal(suffix.strip())
        except MetadataLiteralError as e:
            log.warning("Ignoring unreadable metadata %r: %s", suffix.strip(), e)
    merged = {**existing, **changes}
    rendered = render_metadata_literal(merged)
    return f" {rendered}" if rendered else ""


def apply_update(
    content: str,
    subtask_id: str,
    update: TaskUpdate,
    filepath: Optional[Union[str, Path]] = None,
) -> UpdateResult:
    """
    Apply a status and/or metadata change to the task line ``subtask_id``.

    Args:
        content: Markdown body (no frontmatter)
        subtask_id: ``{basename}-{line index}`` id from extract_tasks
        update: Partial change; None fields are left alone
        filepath: File the body came from. When omitted, the basename is
            taken from ``subtask_id`` itself, which matches any id.

    Returns:
        UpdateResult with the rewritten body, or the original body and
        ``found=False`` when no task line has that id.
    """
    if filepath is None:
        filepath = subtask_id.rsplit("-", 1)[0]

    lines = content.split("\n")
    for task_line in scan_task_lines(content, filepath):
        if task_line.id != subtask_id:
            continue

        original = lines[task_line.index]
        eol = "\r" if original.endswith("\r") else ""
        raw_title = task_line.text[: len(task_line.text) - len(eol)]
        title, suffix = split_metadata_suffix(raw_title)

        if update.status is not None:
            checkbox = checkbox_for_status(update.status)
            title = strip_status_tokens(title)
        else:
            checkbox = f"[{task_line.checkbox}]"

        if update.metadata is not None:
            suffix = _merge_metadata(suffix, update.metadata)

        lines[task_line.index] = f"{task_line.indent}- {checkbox} {title}{suffix}{eol}"
        log.debug("Updated %s: %r -> %r", subtask_id, original, lines[task_line.index])
        return UpdateResult(updated_content="\n".join(lines), found=True)

    return UpdateResult(updated_content=content, found=False)
