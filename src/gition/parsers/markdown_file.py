"""
Frontmatter split/join for markdown and MDX files.

The task parser and serializer only ever see the body; this module is the
boundary that removes the YAML block before parsing and puts it back before
writing. The body is passed through untouched so line numbers, and every
line an update does not edit, match the file on disk.
"""

from pathlib import Path
from typing import Any, Dict, Tuple, Union

import frontmatter
import yaml

from gition.models.document import MarkdownFile

EXCERPT_SEPARATOR = "<!-- more -->"
FRONTMATTER_DELIMITER = "---"


def split_raw_frontmatter(text: str) -> Tuple[str, str]:
    """
    Split ``text`` into ``(head, body)`` without rewriting either.

    ``head`` is the frontmatter block verbatim, delimiters and any leading
    blank lines included, or ``""`` when the file has none. An unclosed
    block is not frontmatter. ``head + body == text`` always holds.
    """
    lines = text.splitlines(keepends=True)
    i = 0
    while i < len(lines) and not lines[i].strip():
        i += 1

    if i >= len(lines) or lines[i].strip() != FRONTMATTER_DELIMITER:
        return "", text

    i += 1
    while i < len(lines):
        if lines[i].strip() == FRONTMATTER_DELIMITER:
            head = "".join(lines[: i + 1])
            return head, text[len(head):]
        i += 1

    return "", text


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Return ``(metadata, body)``. Files without frontmatter get ``{}``."""
    head, body = split_raw_frontmatter(text)
    if not head:
        return {}, body
    return dict(frontmatter.loads(head).metadata), body


def render_frontmatter(metadata: Dict[str, Any]) -> str:
    """YAML block for ``metadata`` in insertion order, or ``""`` when empty."""
    if not metadata:
        return ""
    dumped = yaml.safe_dump(
        metadata, sort_keys=False, default_flow_style=False, allow_unicode=True
    )
    return f"{FRONTMATTER_DELIMITER}\n{dumped}{FRONTMATTER_DELIMITER}\n"


def join_frontmatter(body: str, metadata: Dict[str, Any]) -> str:
    """
    Reattach frontmatter to a body.

    An empty metadata dict writes the body alone rather than an empty
    ``---`` block.
    """
    return render_frontmatter(metadata) + body


def parse_markdown_text(text: str, filepath: Union[str, Path]) -> MarkdownFile:
    """Build a MarkdownFile from raw file text."""
    path = Path(filepath)
    metadata, body = split_frontmatter(text)

    excerpt = None
    if EXCERPT_SEPARATOR in body:
        excerpt = body.split(EXCERPT_SEPARATOR, 1)[0].strip() or None

    return MarkdownFile(
        slug=path.stem,
        filename=path.name,
        filepath=str(path),
        content=body,
        metadata=metadata,
        excerpt=excerpt,
    )


def parse_markdown_file(path: Path) -> MarkdownFile:
    """Read and parse a markdown file from disk."""
    return parse_markdown_text(path.read_text(encoding="utf-8"), path)
