from .workspace_cache import WorkspaceCache

__all__ = ["WorkspaceCache"]
