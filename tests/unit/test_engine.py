"""Tests for the mediation engine (Sandbox)."""

import pytest

from agent_sandbox.core.engine import Sandbox, summarize_changes
from agent_sandbox.errors import FileSystemError, InvalidCommand, PermissionDenied
from agent_sandbox.permissions.defaults import GIT_ARGS
from agent_sandbox.permissions.gate import PermissionGate
from agent_sandbox.sandbox.executor import SubprocessExecutor
from agent_sandbox.types.config import ApprovalPolicy
from agent_sandbox.types.execution import ExecutionMode, ExecutionStatus
from agent_sandbox.types.files import DiffOperation, FileDiff
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission
from agent_sandbox.vfs.shadow import FilesystemShadow
from tests.conftest import MockProcessExecutor, MockRun


def make_sandbox(tmp_project, executor=None, **kwargs):
    return Sandbox(
        shadow=FilesystemShadow.from_directory(tmp_project),
        executor=executor or MockProcessExecutor(),
        working_dir=tmp_project,
        **kwargs,
    )


# --- Construction ---


class TestConstruction:
    def test_with_working_dir_mounts(self, tmp_project):
        sandbox = Sandbox.with_working_dir(tmp_project)
        assert sandbox.working_dir == str(tmp_project)
        assert len(sandbox.shadow) == 4
        assert sandbox.mode is ExecutionMode.LIVE

    def test_with_working_dir_rejects_file(self, tmp_project):
        with pytest.raises(FileSystemError):
            Sandbox.with_working_dir(tmp_project / "main.py")

    def test_with_working_dir_missing_path_gives_empty_shadow(self, tmp_path):
        sandbox = Sandbox.with_working_dir(tmp_path / "later")
        assert len(sandbox.shadow) == 0

    def test_relative_working_dir_is_resolved(self, tmp_project, monkeypatch):
        monkeypatch.chdir(tmp_project)
        sandbox = Sandbox.with_working_dir(".", executor=MockProcessExecutor())
        assert sandbox.working_dir == str(tmp_project)
        assert len(sandbox.shadow) == 4

        sandbox.set_mode(ExecutionMode.DIFF)
        record = sandbox.submit("git status")
        assert record.status is ExecutionStatus.SIMULATED
        commit = sandbox.submit("git commit -m 'fix: bug'")
        assert commit.status is ExecutionStatus.SIMULATED

    def test_explicit_gate_is_used(self, tmp_project):
        gate = PermissionGate([ToolPermission("make", PermissionLevel.EXECUTE)])
        sandbox = make_sandbox(tmp_project, gate=gate)
        assert sandbox.gate is gate
        with pytest.raises(PermissionDenied):
            sandbox.submit("git status")

    def test_ids_unique(self, tmp_project):
        assert make_sandbox(tmp_project).id != make_sandbox(tmp_project).id


# --- Submission errors ---


class TestSubmitErrors:
    @pytest.mark.parametrize("command", ["", "   "])
    def test_empty_command(self, tmp_project, command):
        with pytest.raises(InvalidCommand):
            make_sandbox(tmp_project).submit(command)

    def test_unparseable_command(self, tmp_project):
        with pytest.raises(InvalidCommand):
            make_sandbox(tmp_project).submit("echo 'unterminated")

    def test_unknown_tool_denied(self, tmp_project):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(tmp_project, executor)
        with pytest.raises(PermissionDenied, match="not registered"):
            sandbox.submit("frobnicate --all")
        assert executor.calls == []
        assert sandbox.records() == []

    def test_unknown_tool_admitted_when_allowed(self, tmp_project):
        gate = PermissionGate(allow_unknown=True)
        record = make_sandbox(tmp_project, gate=gate).submit("frobnicate --all")
        assert record.status is ExecutionStatus.SUCCESS
        assert record.permission_level is PermissionLevel.EXECUTE

    def test_denied_tool(self, tmp_project):
        with pytest.raises(PermissionDenied, match="denied"):
            make_sandbox(tmp_project).submit("sudo rm -rf /")

    def test_disallowed_args(self, tmp_project):
        with pytest.raises(PermissionDenied, match="Arguments not allowed"):
            make_sandbox(tmp_project).submit("git rebase main")

    def test_path_outside_scope(self, tmp_project):
        sandbox = make_sandbox(tmp_project, allow_all=False)
        with pytest.raises(PermissionDenied, match="Path '/etc/passwd' not allowed"):
            sandbox.submit("rm /etc/passwd")

    def test_denied_path_in_redirect(self, tmp_project):
        gate = PermissionGate([
            ToolPermission("tee", PermissionLevel.EXECUTE, denied_paths=("/etc",)),
        ])
        sandbox = make_sandbox(tmp_project, gate=gate)
        with pytest.raises(PermissionDenied):
            sandbox.submit("tee >/etc/hosts")

    def test_relative_paths_resolved_against_working_dir(self, tmp_project):
        gate = PermissionGate([
            ToolPermission("touch", PermissionLevel.EXECUTE, allowed_paths=(str(tmp_project),)),
        ])
        sandbox = make_sandbox(tmp_project, gate=gate)
        assert sandbox.submit("touch src/new.py").status is ExecutionStatus.SUCCESS
        with pytest.raises(PermissionDenied):
            sandbox.submit("touch ../escape.py")

    def test_record_blocked(self, tmp_project):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(tmp_project, executor, record_blocked=True)
        record = sandbox.submit("sudo reboot")
        assert record.status is ExecutionStatus.BLOCKED
        assert record.permission_level is PermissionLevel.DENIED
        assert "denied" in record.stderr
        assert sandbox.records() == [record]
        assert sandbox.history() == []
        assert executor.calls == []


# --- Live mode ---


class TestLive:
    def test_success(self, tmp_project):
        executor = MockProcessExecutor([MockRun(stdout="hello\n")])
        sandbox = make_sandbox(tmp_project, executor)
        record = sandbox.submit("echo hello")
        assert record.status is ExecutionStatus.SUCCESS
        assert record.mode is ExecutionMode.LIVE
        assert record.stdout == "hello\n"
        assert record.exit_code == 0
        assert record.approved is True
        assert record.tool == "echo"
        assert record.args == ("hello",)
        assert executor.calls == [{"tool": "echo", "args": ["hello"], "cwd": str(tmp_project)}]
        assert sandbox.history() == [record]

    def test_nonzero_exit_is_failed(self, tmp_project):
        executor = MockProcessExecutor([MockRun(stderr="boom\n", exit_code=2)])
        record = make_sandbox(tmp_project, executor).submit("ls missing")
        assert record.status is ExecutionStatus.FAILED
        assert record.exit_code == 2
        assert record.stderr == "boom\n"

    def test_timeout_is_failed(self, tmp_project):
        executor = MockProcessExecutor([MockRun(exit_code=-1, timed_out=True)])
        record = make_sandbox(tmp_project, executor).submit("ls")
        assert record.status is ExecutionStatus.FAILED

    def test_spawn_failure_recorded(self, tmp_project):
        error = FileNotFoundError(2, "No such file or directory", "echo")
        executor = MockProcessExecutor([MockRun(error=error)])
        sandbox = make_sandbox(tmp_project, executor)
        record = sandbox.submit("echo hi")
        assert record.status is ExecutionStatus.FAILED
        assert record.exit_code == -1
        assert "No such file" in record.stderr
        assert sandbox.history() == [record]

    def test_nul_byte_argument_recorded_as_failure(self, tmp_project):
        sandbox = Sandbox(
            shadow=FilesystemShadow.from_directory(tmp_project),
            executor=SubprocessExecutor(),
            working_dir=tmp_project,
        )
        record = sandbox.submit("echo 'a\x00b'")
        assert record.status is ExecutionStatus.FAILED
        assert record.exit_code == -1
        assert "null byte" in record.stderr
        assert sandbox.history() == [record]

    def test_execute_tool(self, tmp_project):
        executor = MockProcessExecutor()
        record = make_sandbox(tmp_project, executor).execute_tool("echo", ["a b"])
        assert record.command == "echo 'a b'"
        assert executor.calls[0]["args"] == ["a b"]

    def test_execute_tool_empty(self, tmp_project):
        with pytest.raises(InvalidCommand):
            make_sandbox(tmp_project).execute_tool("")

    def test_allow_all_bypasses_gate_and_approval(self, tmp_project):
        executor = MockProcessExecutor([MockRun(), MockRun()])
        sandbox = make_sandbox(tmp_project, executor)
        sandbox.allow_all()
        assert sandbox.allows_all is True
        record = sandbox.submit("rm -rf /home/user/project")
        assert record.status is ExecutionStatus.SUCCESS
        assert record.permission_level is PermissionLevel.FULL
        assert sandbox.submit("sudo ls").status is ExecutionStatus.SUCCESS
        assert len(executor.calls) == 2


# --- Approval queue ---


class TestApproval:
    def test_rm_requires_approval(self, tmp_project):
        executor = MockProcessExecutor([MockRun(exit_code=0)])
        sandbox = make_sandbox(tmp_project, executor)
        pending = sandbox.submit("rm -rf /tmp/x")
        assert pending.status is ExecutionStatus.PENDING_APPROVAL
        assert pending.approved is False
        assert pending.exit_code is None
        assert executor.calls == []
        assert list(sandbox.pending_approvals()) == [pending.id]

        record = sandbox.approve(pending.id)
        assert record.status in (ExecutionStatus.SUCCESS, ExecutionStatus.FAILED)
        assert record.exit_code == 0
        assert record.approved is True
        assert record.source_id == pending.id
        assert record.id != pending.id
        assert executor.calls == [{"tool": "rm", "args": ["-rf", "/tmp/x"], "cwd": str(tmp_project)}]
        assert sandbox.pending_approvals() == {}
        assert sandbox.history() == [record]

    def test_approved_failure_has_exit_code(self, tmp_project):
        executor = MockProcessExecutor([MockRun(exit_code=1, stderr="rm: cannot remove\n")])
        sandbox = make_sandbox(tmp_project, executor)
        pending = sandbox.submit("rm /tmp/x")
        record = sandbox.approve(pending.id)
        assert record.status is ExecutionStatus.FAILED
        assert record.exit_code == 1

    @pytest.mark.parametrize("mode", list(ExecutionMode))
    def test_gated_tool_pending_in_every_mode(self, tmp_project, mode):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(tmp_project, executor, mode=mode)
        record = sandbox.submit("chmod 755 main.py")
        assert record.status is ExecutionStatus.PENDING_APPROVAL
        assert record.mode is mode
        assert executor.calls == []

    def test_approve_always_runs_live(self, tmp_project):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(tmp_project, executor, mode=ExecutionMode.DIFF)
        pending = sandbox.submit("rm /tmp/x")
        record = sandbox.approve(pending.id)
        assert record.mode is ExecutionMode.LIVE
        assert len(executor.calls) == 1

    def test_live_only_policy_allows_previews(self, tmp_project):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(
            tmp_project, executor,
            mode=ExecutionMode.SIMULATION, approval_policy=ApprovalPolicy.LIVE_ONLY,
        )
        assert sandbox.approval_policy is ApprovalPolicy.LIVE_ONLY
        record = sandbox.submit("rm /tmp/x")
        assert record.status is ExecutionStatus.SIMULATED
        assert "Requires approval: YES" in record.stdout
        sandbox.set_mode(ExecutionMode.LIVE)
        assert sandbox.submit("rm /tmp/x").status is ExecutionStatus.PENDING_APPROVAL
        assert executor.calls == []

    def test_approve_unknown_id(self, tmp_project):
        with pytest.raises(InvalidCommand, match="Execution not found"):
            make_sandbox(tmp_project).approve("nope")

    def test_approve_twice(self, tmp_project):
        sandbox = make_sandbox(tmp_project)
        pending = sandbox.submit("rm /tmp/x")
        sandbox.approve(pending.id)
        with pytest.raises(InvalidCommand):
            sandbox.approve(pending.id)

    def test_reject(self, tmp_project):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(tmp_project, executor)
        pending = sandbox.submit("rm /tmp/x")
        assert sandbox.reject(pending.id) == pending
        assert sandbox.pending_approvals() == {}
        assert executor.calls == []
        with pytest.raises(InvalidCommand):
            sandbox.approve(pending.id)

    def test_pending_approvals_is_a_copy(self, tmp_project):
        sandbox = make_sandbox(tmp_project)
        sandbox.submit("rm /tmp/x")
        sandbox.pending_approvals().clear()
        assert len(sandbox.pending_approvals()) == 1


# --- Preview modes ---


class TestSimulation:
    def test_narrative(self, tmp_project):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(tmp_project, executor, mode=ExecutionMode.SIMULATION)
        record = sandbox.submit("echo hi > out.txt")
        assert record.status is ExecutionStatus.SIMULATED
        assert record.mode is ExecutionMode.SIMULATION
        assert record.stdout.startswith("[SIMULATION] Would execute: echo hi > out.txt")
        assert "  - out.txt" in record.stdout
        assert "Permission level: execute" in record.stdout
        assert executor.calls == []

    def test_kept_in_records_not_history(self, tmp_project):
        sandbox = make_sandbox(tmp_project, mode=ExecutionMode.SIMULATION)
        record = sandbox.submit("ls")
        assert sandbox.records() == [record]
        assert sandbox.history() == []
        assert sandbox.status().execution_count == 0


class TestDiffMode:
    def test_git_status(self, tmp_project):
        gate = PermissionGate([ToolPermission("git", PermissionLevel.FULL, allowed_args=GIT_ARGS)])
        sandbox = make_sandbox(tmp_project, gate=gate, mode=ExecutionMode.DIFF)
        record = sandbox.submit("git status")
        assert record.status is ExecutionStatus.SIMULATED
        assert record.file_changes == ()
        assert record.diff_summary is not None
        assert (record.diff_summary.added, record.diff_summary.deleted) == (0, 0)

    def test_git_add_summary_matches_line_counts(self, tmp_project):
        sandbox = make_sandbox(tmp_project, mode=ExecutionMode.DIFF)
        record = sandbox.submit("git add .")
        assert len(record.file_changes) == 4
        expected_added = sum(len((c.new_content or "").splitlines()) for c in record.file_changes)
        expected_deleted = sum(len((c.old_content or "").splitlines()) for c in record.file_changes)
        assert record.diff_summary.added == expected_added == 4
        assert record.diff_summary.deleted == expected_deleted == 0
        assert record.diff_summary.unchanged == 0
        assert record.stderr == "Diff preview for 4 file(s)"

    def test_npm_install(self, tmp_project):
        executor = MockProcessExecutor()
        sandbox = make_sandbox(tmp_project, executor, mode=ExecutionMode.DIFF)
        record = sandbox.submit("npm install")
        assert [c.path for c in record.file_changes] == ["package-lock.json", "node_modules/"]
        assert executor.calls == []

    def test_summarize_changes(self):
        changes = [
            FileDiff("a", DiffOperation.MODIFIED, old_content="1\n2\n", new_content="1\n2\n3\n"),
            FileDiff("b", DiffOperation.DELETED, old_content="x\n"),
        ]
        summary = summarize_changes(changes)
        assert (summary.added, summary.deleted, summary.unchanged) == (3, 3, 0)


# --- Introspection ---


class TestIntrospection:
    def test_status(self, tmp_project):
        sandbox = make_sandbox(tmp_project)
        sandbox.submit("echo hi")
        sandbox.submit("rm /tmp/x")
        status = sandbox.status()
        assert status.id == sandbox.id
        assert status.mode is ExecutionMode.LIVE
        assert status.file_count == 4
        assert status.execution_count == 1
        assert status.pending_approval_count == 1
        assert status.working_dir == str(tmp_project)

    def test_records_in_order(self, tmp_project):
        sandbox = make_sandbox(tmp_project)
        first = sandbox.submit("echo one")
        sandbox.set_mode(ExecutionMode.SIMULATION)
        second = sandbox.submit("echo two")
        assert sandbox.records() == [first, second]

    def test_list_tools(self, tmp_project):
        tools = make_sandbox(tmp_project).list_tools()
        names = [t.name for t in tools]
        assert names == sorted(names)
        assert "git" in names

    def test_reset(self, tmp_project):
        sandbox = make_sandbox(tmp_project)
        sandbox.submit("echo hi")
        sandbox.submit("rm /tmp/x")
        sandbox.shadow.delete("main.py")
        sandbox.reset()
        assert sandbox.history() == []
        assert sandbox.records() == []
        assert sandbox.pending_approvals() == {}
        assert "main.py" in sandbox.shadow.list_files()
