"""
Inline metadata tokens embedded in task titles.

    - [ ] Ship the parser (high) @2024-01-15 +john #backend ref:epics/epic-01 [wip]

Recognised tokens, extracted in this order:

    ref:<path>                  references (all)
    (high) / (priority: low)    priority
    @<token>                    due date, kept as an opaque string
    +<name> / +@<name>          assignee
    #<word>                     tags (all, order kept, duplicates kept)
    [doing] [wip] [done] ...    explicit status override

Each step removes what it matched before the next one runs. Anything that
does not match a pattern exactly stays in the title untouched.

The interactive editor stores metadata differently, as a trailing
``{key: "value"}`` literal (see metadata_literal.py). ``render_tokens`` and
``metadata_from_mapping`` convert between the two encodings.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Pattern, Tuple

from gition.models.task import PRIORITIES, TaskMetadata

_RE_REFERENCE = re.compile(r"ref:([\w/-]+)")
_RE_PRIORITY = re.compile(r"\((?:priority:\s*)?(high|medium|low)\)", re.IGNORECASE)
# "+@name" is an assignee, not a due date
_RE_DUE_DATE = re.compile(r"(?<!\+)@([\w-]+)")
_RE_ASSIGNEE = re.compile(r"\+@?(\w+)")
_RE_TAG = re.compile(r"#(\w+)")
_RE_STATUS = re.compile(r"\[(doing|in-progress|wip|todo|done)\]", re.IGNORECASE)

_STATUS_TOKENS = {
    "doing": "in_progress",
    "in-progress": "in_progress",
    "wip": "in_progress",
    "todo": "todo",
    "done": "done",
}


@dataclass
class TokenizedTitle:
    title: str
    metadata: Optional[TaskMetadata] = None
    references: Optional[List[str]] = None
    status: Optional[str] = None


def _take(pattern: Pattern[str], text: str) -> Tuple[List[str], str]:
    """
    Return every captured value of ``pattern`` and the text with each match
    replaced by a space.

    Replacing with a space (not "") keeps the fragments on either side of a
    removed token from joining into a new token.
    """
    values = [m.group(1) for m in pattern.finditer(text)]
    if not values:
        return [], text
    return values, pattern.sub(" ", text)


def strip_status_tokens(text: str) -> str:
    """Remove explicit ``[wip]``-style status markers from a title."""
    if not _RE_STATUS.search(text):
        return text
    return " ".join(_RE_STATUS.sub(" ", text).split())


def tokenize(raw_title: str) -> TokenizedTitle:
    """
    Split a raw task title into the clean title and its inline metadata.

    Single-valued tokens (priority, due date, assignee, status) take the first
    occurrence; later duplicates are still stripped so the returned title
    never contains a recognised token. Never raises.
    """
    title = raw_title
    metadata = TaskMetadata()

    references, title = _take(_RE_REFERENCE, title)

    priorities, title = _take(_RE_PRIORITY, title)
    if priorities:
        metadata.priority = priorities[0].lower()

    due_dates, title = _take(_RE_DUE_DATE, title)
    if due_dates:
        metadata.due_date = due_dates[0]

    assignees, title = _take(_RE_ASSIGNEE, title)
    if assignees:
        metadata.assignee = assignees[0]

    tags, title = _take(_RE_TAG, title)
    if tags:
        metadata.tags = tags

    statuses, title = _take(_RE_STATUS, title)
    status = _STATUS_TOKENS[statuses[0].lower()] if statuses else None

    return TokenizedTitle(
        title=" ".join(title.split()),
        metadata=None if metadata.is_empty() else metadata,
        references=references or None,
        status=status,
    )


def render_tokens(
    metadata: Optional[TaskMetadata],
    references: Optional[List[str]] = None,
) -> str:
    """
    Render metadata in the inline token grammar.

    ``tokenize(f"{title} {render_tokens(m)}")`` gives back ``m``.
    """
    parts: List[str] = []
    if metadata is not None:
        if metadata.priority:
            parts.append(f"({metadata.priority})")
        if metadata.due_date:
            parts.append(f"@{metadata.due_date}")
        if metadata.assignee:
            parts.append(f"+{metadata.assignee}")
        for tag in metadata.tags or []:
            parts.append(f"#{tag}")
    for ref in references or []:
        parts.append(f"ref:{ref}")
    return " ".join(parts)


def metadata_from_mapping(values: Mapping[str, Any]) -> Optional[TaskMetadata]:
    """
    Build TaskMetadata from a loose mapping, e.g. a parsed ``{...}`` literal.

    Unknown keys and priorities outside low/medium/high are ignored.
    """
    metadata = TaskMetadata()

    priority = values.get("priority")
    if isinstance(priority, str) and priority.lower() in PRIORITIES:
        metadata.priority = priority.lower()

    due_date = values.get("due_date")
    if due_date is not None:
        metadata.due_date = str(due_date)

    assignee = values.get("assignee")
    if assignee is not None:
        metadata.assignee = str(assignee).lstrip("@")

    tags = values.get("tags")
    if isinstance(tags, str):
        tags = [tags]
    if isinstance(tags, (list, tuple)) and tags:
        metadata.tags = [str(t) for t in tags]

    return None if metadata.is_empty() else metadata
