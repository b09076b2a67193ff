"""Markdown file and directory tree models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .task import TaskRecord


@dataclass
class MarkdownFile:
    """
    A markdown/MDX file split into frontmatter and body.

    ``content`` never includes the frontmatter block; task line numbers are
    counted from the first line of ``content``.
    """

    slug: str
    filename: str
    filepath: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    excerpt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "slug": self.slug,
            "filename": self.filename,
            "filepath": self.filepath,
            "content": self.content,
            "metadata": dict(self.metadata),
        }
        if self.excerpt:
            d["excerpt"] = self.excerpt
        return d


@dataclass
class DirectoryNode:
    name: str
    path: str
    type: str  # "directory" or "file"
    children: List[DirectoryNode] = field(default_factory=list)
    is_markdown: bool = False

    def to_dict(self) -> Dict[str, Any]:
        if self.type == "directory":
            return {
                "name": self.name,
                "path": self.path,
                "type": self.type,
                "children": [c.to_dict() for c in self.children],
            }
        return {
            "name": self.name,
            "path": self.path,
            "type": self.type,
            "isMarkdown": self.is_markdown,
        }


@dataclass
class CachedFile:
    """A parsed markdown file held in the workspace cache."""

    file: MarkdownFile
    tasks: List[TaskRecord]
    mtime: float
    is_docs: bool = False
