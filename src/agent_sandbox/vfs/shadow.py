"""FilesystemShadow — in-memory mirror of a directory tree.

Two disjoint mappings are kept: ``live`` (currently present) and
``tombstoned`` (deleted since mount, kept so :meth:`reset` can restore
them). A path is never in both.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path, PurePosixPath

from agent_sandbox.errors import FileSystemError, VirtualFileNotFound
from agent_sandbox.types.files import DiffOperation, FileDiff, VirtualFile

logger = logging.getLogger(__name__)


def _key(path: str | os.PathLike[str]) -> str:
    """Normalise *path* into the POSIX-style relative key used by the shadow."""
    return PurePosixPath(Path(path).as_posix()).as_posix()


class FilesystemShadow:
    """Content-addressed, in-memory shadow of one or more mounted directories."""

    def __init__(self) -> None:
        self._live: dict[str, VirtualFile] = {}
        self._tombstoned: dict[str, VirtualFile] = {}
        self._mount_points: list[Path] = []

    @classmethod
    def from_directory(cls, root: str | Path) -> FilesystemShadow:
        shadow = cls()
        shadow.mount(root)
        return shadow

    @property
    def mount_points(self) -> list[Path]:
        return list(self._mount_points)

    # -- Mounting ---------------------------------------------------------

    def mount(self, root: str | Path) -> int:
        """Import every regular file under *root*. Returns the number imported.

        Paths are stored relative to *root*. Symlinks are not followed. The
        source tree is not touched again after this call.
        """
        root = Path(root)
        if not root.exists():
            raise FileSystemError(f"Directory does not exist: {root}")
        if not root.is_dir():
            raise FileSystemError(f"Not a directory: {root}")

        self._mount_points.append(root)
        count = 0
        for dirpath, _dirnames, filenames in os.walk(root):
            for name in filenames:
                full = Path(dirpath) / name
                try:
                    st = full.lstat()
                    if not stat.S_ISREG(st.st_mode):
                        continue
                    content = full.read_bytes()
                except OSError as exc:
                    raise FileSystemError(f"Cannot read {full}: {exc}") from exc

                rel = _key(full.relative_to(root))
                mode = stat.S_IMODE(st.st_mode)
                self._live[rel] = VirtualFile(
                    path=rel,
                    content=content,
                    permissions=mode,
                    is_executable=bool(mode & 0o111),
                )
                self._tombstoned.pop(rel, None)
                count += 1

        logger.debug("Mounted %d files from %s", count, root)
        return count

    # -- File operations --------------------------------------------------

    def read(self, path: str | Path) -> bytes:
        key = _key(path)
        file = self._live.get(key)
        if file is None:
            raise VirtualFileNotFound(key)
        return file.content

    def write(self, path: str | Path, content: bytes | str) -> VirtualFile:
        """Insert or replace *path*. No permission checks happen here."""
        key = _key(path)
        data = content.encode("utf-8") if isinstance(content, str) else content
        self._tombstoned.pop(key, None)
        existing = self._live.get(key)
        if existing is not None:
            existing.update_content(data)
            return existing
        file = VirtualFile(path=key, content=data)
        self._live[key] = file
        return file

    def delete(self, path: str | Path) -> None:
        key = _key(path)
        file = self._live.pop(key, None)
        if file is None:
            raise VirtualFileNotFound(key)
        self._tombstoned[key] = file

    def exists(self, path: str | Path) -> bool:
        key = _key(path)
        return key in self._live or key in self._tombstoned

    def get_metadata(self, path: str | Path) -> VirtualFile:
        key = _key(path)
        file = self._live.get(key)
        if file is None:
            raise VirtualFileNotFound(key)
        return file

    def list_files(self) -> list[str]:
        return sorted(self._live)

    def tombstoned_paths(self) -> list[str]:
        return sorted(self._tombstoned)

    def __len__(self) -> int:
        return len(self._live)

    # -- Change tracking --------------------------------------------------

    def diff(self) -> list[FileDiff]:
        """Report pending changes.

        Every live entry is reported as MODIFIED (files present at mount time
        are not distinguished from files written since); every tombstone is
        reported as DELETED.
        """
        diffs = [
            FileDiff(path=path, operation=DiffOperation.MODIFIED, new_content=file.text)
            for path, file in sorted(self._live.items())
        ]
        diffs.extend(
            FileDiff(path=path, operation=DiffOperation.DELETED, old_content=file.text)
            for path, file in sorted(self._tombstoned.items())
        )
        return diffs

    def reset(self) -> None:
        """Move every tombstoned entry back into live."""
        restored = len(self._tombstoned)
        self._live.update(self._tombstoned)
        self._tombstoned.clear()
        if restored:
            logger.debug("Restored %d deleted files", restored)

    def commit(self) -> None:
        """Forget tombstones permanently."""
        self._tombstoned.clear()
