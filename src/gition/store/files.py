"""
Filesystem scanning for markdown workspaces.

Hidden directories and ``node_modules`` are never descended into.
"""

from pathlib import Path
from typing import List, Optional, Set

from gition.models.document import DirectoryNode, MarkdownFile

MARKDOWN_EXTENSIONS = frozenset({".md", ".mdx"})
DEFAULT_EXCLUDE_DIRS = frozenset({"node_modules"})


def is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_EXTENSIONS


def _skip_dir(name: str, exclude_dirs: Set[str]) -> bool:
    return name.startswith(".") or name in exclude_dirs


def scan_markdown_files(
    directory: Path,
    exclude_dirs: Optional[Set[str]] = None,
) -> List[Path]:
    """Recursively collect markdown/MDX files under ``directory``."""
    exclude = set(exclude_dirs or DEFAULT_EXCLUDE_DIRS)
    files: List[Path] = []
    if not directory.is_dir():
        return files

    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if not _skip_dir(entry.name, exclude):
                files.extend(scan_markdown_files(entry, exclude))
        elif entry.is_file() and is_markdown_file(entry):
            files.append(entry)
    return files


def sort_docs(files: List[MarkdownFile]) -> List[MarkdownFile]:
    """
    Order docs newest first by frontmatter ``date``; undated files by name.

    Dated files come before undated ones.
    """
    dated = [f for f in files if f.metadata.get("date")]
    undated = [f for f in files if not f.metadata.get("date")]
    dated.sort(key=lambda f: str(f.metadata["date"]), reverse=True)
    undated.sort(key=lambda f: f.filename)
    return dated + undated


def get_directory_structure(
    directory: Path,
    exclude_dirs: Optional[Set[str]] = None,
) -> List[DirectoryNode]:
    """Directory tree for a file explorer: directories first, then files."""
    exclude = set(exclude_dirs or DEFAULT_EXCLUDE_DIRS)
    nodes: List[DirectoryNode] = []
    if not directory.is_dir():
        return nodes

    for entry in directory.iterdir():
        if _skip_dir(entry.name, exclude):
            continue
        if entry.is_dir():
            nodes.append(
                DirectoryNode(
                    name=entry.name,
                    path=str(entry),
                    type="directory",
                    children=get_directory_structure(entry, exclude),
                )
            )
        elif entry.is_file():
            nodes.append(
                DirectoryNode(
                    name=entry.name,
                    path=str(entry),
                    type="file",
                    is_markdown=is_markdown_file(entry),
                )
            )

    nodes.sort(key=lambda n: (n.type != "directory", n.name))
    return nodes
