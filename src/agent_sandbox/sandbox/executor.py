"""ProcessExecutor ABC + subprocess implementation."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProcessOutput:
    """Result from running an external process."""

    stdout: str
    stderr: str
    exit_code: int | None
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return not self.timed_out and self.exit_code == 0


class ProcessExecutor(ABC):
    """Runs a tool with arguments in a working directory.

    Implementations raise ``OSError`` when the binary cannot be located or
    spawned; the engine records that as a failed execution.
    """

    @abstractmethod
    def run(self, tool: str, args: Sequence[str], cwd: str) -> ProcessOutput:
        """Run *tool* with *args* and wait for it to exit."""
        ...


class SubprocessExecutor(ProcessExecutor):
    """Executes tools directly (no shell) and buffers their output.

    ``timeout_sec`` is an optional external deadline; without it the call
    blocks until the process exits.
    """

    def __init__(self, timeout_sec: float | None = None) -> None:
        self._timeout_sec = timeout_sec

    @property
    def timeout_sec(self) -> float | None:
        return self._timeout_sec

    def run(self, tool: str, args: Sequence[str], cwd: str) -> ProcessOutput:
        argv = [tool, *args]
        logger.debug("Spawning %s in %s", argv, cwd)
        try:
            proc = subprocess.run(
                argv,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self._timeout_sec,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            return ProcessOutput(
                stdout=_decode(exc.stdout),
                stderr=f"Command timed out after {self._timeout_sec}s",
                exit_code=-1,
                timed_out=True,
            )
        except ValueError as exc:
            # e.g. an embedded NUL byte in argv; nothing was spawned
            raise OSError(f"Cannot spawn {tool}: {exc}") from exc

        return ProcessOutput(
            stdout=_decode(proc.stdout),
            stderr=_decode(proc.stderr),
            exit_code=proc.returncode,
        )


def _decode(data: bytes | str | None) -> str:
    if not data:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")
