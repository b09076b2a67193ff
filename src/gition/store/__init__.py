from .files import (
    get_directory_structure,
    is_markdown_file,
    scan_markdown_files,
    sort_docs,
)
from .locator import find_file_recursively, find_task_file

__all__ = [
    "get_directory_structure",
    "is_markdown_file",
    "scan_markdown_files",
    "sort_docs",
    "find_file_recursively",
    "find_task_file",
]
