"""In-memory filesystem shadow."""

from agent_sandbox.vfs.shadow import FilesystemShadow

__all__ = ["FilesystemShadow"]
