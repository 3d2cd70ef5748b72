"""Process execution and command tokenizing."""

from agent_sandbox.sandbox.executor import ProcessExecutor, ProcessOutput, SubprocessExecutor
from agent_sandbox.sandbox.tokenizer import split_command

__all__ = ["ProcessExecutor", "ProcessOutput", "SubprocessExecutor", "split_command"]
