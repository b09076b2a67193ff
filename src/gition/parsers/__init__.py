from .tokens import tokenize, render_tokens, metadata_from_mapping
from .task_parser import extract_tasks, scan_task_lines
from .serializer import apply_update
from .metadata_literal import (
    MetadataLiteralError,
    parse_metadata_literal,
    render_metadata_literal,
)
from .markdown_file import (
    join_frontmatter,
    parse_markdown_file,
    parse_markdown_text,
    split_frontmatter,
    split_raw_frontmatter,
)

__all__ = [
    "tokenize",
    "render_tokens",
    "metadata_from_mapping",
    "extract_tasks",
    "scan_task_lines",
    "apply_update",
    "MetadataLiteralError",
    "parse_metadata_literal",
    "render_metadata_literal",
    "join_frontmatter",
    "parse_markdown_file",
    "parse_markdown_text",
    "split_frontmatter",
    "split_raw_frontmatter",
]
