"""Virtual file and file-diff types."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


def content_hash(content: bytes) -> str:
    """Hex-encoded SHA-256 of *content*."""
    return hashlib.sha256(content).hexdigest()


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class VirtualFile:
    """A file held in the filesystem shadow.

    ``hash`` is always the SHA-256 of ``content``; use :meth:`update_content`
    rather than assigning ``content`` directly.
    """

    path: str
    content: bytes
    permissions: int = 0o644
    is_executable: bool = False
    hash: str = ""
    created_at: datetime = field(default_factory=_now)
    modified_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        self.hash = content_hash(self.content)

    @classmethod
    def new_executable(cls, path: str, content: bytes) -> VirtualFile:
        return cls(path=path, content=content, permissions=0o755, is_executable=True)

    def update_content(self, content: bytes) -> None:
        self.content = content
        self.hash = content_hash(content)
        self.modified_at = _now()

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class DiffOperation(Enum):
    """Kind of change reported for a path."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class FileDiff:
    """A predicted or observed change to a single path."""

    path: str
    operation: DiffOperation
    old_content: str | None = None
    new_content: str | None = None

    def format(self) -> str:
        """Status-style rendering of the change."""
        match self.operation:
            case DiffOperation.ADDED:
                return f"+++ {self.path}\n{self.new_content or ''}\n"
            case DiffOperation.MODIFIED:
                return (
                    f"M  {self.path}\n--- a/{self.path}\n+++ b/{self.path}\n"
                    f"{self.new_content or ''}\n"
                )
            case DiffOperation.DELETED:
                return f"D  {self.path}\n{self.old_content or ''}\n"
