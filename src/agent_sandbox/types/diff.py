"""Line-diff types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ChangeTag(Enum):
    """Tag emitted by the line-diff primitive."""

    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class DiffChange:
    """One line inside a hunk. ``line_number`` is the 0-based cursor on its side."""

    line_number: int
    content: str
    tag: ChangeTag


@dataclass(slots=True)
class DiffHunk:
    """A contiguous run of inserted/deleted lines."""

    old_start: int
    old_lines: int = 0
    new_start: int = 0
    new_lines: int = 0
    changes: list[DiffChange] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UnifiedDiff:
    old_path: str
    new_path: str
    hunks: tuple[DiffHunk, ...] = ()


@dataclass(frozen=True, slots=True)
class DiffSummary:
    """Flat tally of inserted, deleted and unchanged lines."""

    added: int = 0
    deleted: int = 0
    unchanged: int = 0

    def has_changes(self) -> bool:
        return self.added + self.deleted > 0

    def format(self) -> str:
        return f"+{self.added} -{self.deleted}\n"
