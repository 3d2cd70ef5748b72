"""Test fixtures including MockProcessExecutor for deterministic testing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from agent_sandbox.sandbox.executor import ProcessExecutor, ProcessOutput


@dataclass
class MockRun:
    """A scripted process result for MockProcessExecutor.

    Set ``error`` to make the spawn itself fail with that OSError.
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timed_out: bool = False
    error: OSError | None = None


class MockProcessExecutor(ProcessExecutor):
    """A process executor that returns scripted results and records calls.

    Usage:
        executor = MockProcessExecutor(runs=[
            MockRun(stdout="On branch main\\n"),
            MockRun(exit_code=1, stderr="fatal: not a git repository\\n"),
        ])
    """

    def __init__(self, runs: list[MockRun] | None = None) -> None:
        self._runs = list(runs or [MockRun(stdout="ok\n")])
        self._call_index = 0
        self._calls: list[dict[str, Any]] = []

    def run(self, tool: str, args: list[str], cwd: str) -> ProcessOutput:
        self._calls.append({"tool": tool, "args": list(args), "cwd": cwd})
        if self._call_index < len(self._runs):
            scripted = self._runs[self._call_index]
            self._call_index += 1
        else:
            scripted = MockRun(stdout="(no more scripted runs)\n")
        if scripted.error is not None:
            raise scripted.error
        return ProcessOutput(
            stdout=scripted.stdout,
            stderr=scripted.stderr,
            exit_code=scripted.exit_code,
            timed_out=scripted.timed_out,
        )

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory with sample files."""
    (tmp_path / "README.md").write_text("# Test Project\n\nA test project.\n")
    (tmp_path / "main.py").write_text("def hello():\n    print('Hello, world!')\n\nhello()\n")
    src = tmp_path / "src"
    src.mkdir()
    (src / "utils.py").write_text("def add(a, b):\n    return a + b\n")
    (src / "app.py").write_text("from utils import add\n\nresult = add(1, 2)\nprint(result)\n")
    return tmp_path


@pytest.fixture
def mock_executor() -> MockProcessExecutor:
    return MockProcessExecutor()
