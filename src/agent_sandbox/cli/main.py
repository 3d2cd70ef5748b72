"""CLI entry point for agent-sandbox."""

from __future__ import annotations

import logging
import sys
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from agent_sandbox.core.config import build_sandbox, load_config
from agent_sandbox.core.engine import Sandbox
from agent_sandbox.errors import SandboxError
from agent_sandbox.permissions.approval import ApprovalCallback, describe_command
from agent_sandbox.types.execution import ExecutionMode, ExecutionRecord, ExecutionStatus
from agent_sandbox.ui.approval import RichApprovalCallback
from agent_sandbox.ui.terminal import RecordPrinter

_FAILING = (ExecutionStatus.FAILED, ExecutionStatus.BLOCKED)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _error(message: str) -> None:
    Console(stderr=True).print(f"[bold red]Error:[/bold red] {message}", highlight=False)


@click.group()
@click.option(
    "--working-dir", "-d", default=".", show_default=True,
    help="Directory mounted into the shadow and used as the process cwd",
)
@click.option("--allow-all", is_flag=True, help="Bypass permission and approval checks")
@click.option("--allow-unknown", is_flag=True, help="Admit unregistered tools at the default level")
@click.option("--simulate", is_flag=True, help="Narrate commands instead of running them")
@click.option("--diff", "diff_mode", is_flag=True, help="Report predicted file changes only")
@click.option(
    "--policy", "policies", multiple=True, type=click.Path(exists=True, dir_okay=False),
    help="Permission file to load (repeatable)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    working_dir: str,
    allow_all: bool,
    allow_unknown: bool,
    simulate: bool,
    diff_mode: bool,
    policies: tuple[str, ...],
    verbose: bool,
) -> None:
    """agent-sandbox -- mediate shell commands through a permission gate.

    \b
    Usage:
      agent-sandbox run "git status"
      agent-sandbox sim "echo hi > notes.txt"
      agent-sandbox --diff run "npm install"
      agent-sandbox run --approve "rm -rf /tmp/build"
      agent-sandbox list-tools
      agent-sandbox shell
    """
    if simulate and diff_mode:
        raise click.UsageError("--simulate and --diff are mutually exclusive")

    _configure_logging(verbose)

    mode: ExecutionMode | None = None
    if simulate:
        mode = ExecutionMode.SIMULATION
    elif diff_mode:
        mode = ExecutionMode.DIFF

    ctx.ensure_object(dict)
    ctx.obj["working_dir"] = working_dir
    ctx.obj["overrides"] = {
        "mode": mode,
        "allow_all": True if allow_all else None,
        "allow_unknown": True if allow_unknown else None,
        "permission_files": policies or None,
    }


def _make_sandbox(ctx: click.Context, mode: ExecutionMode | None = None) -> Sandbox:
    """Build a session from config files, env and the global options."""
    overrides: dict[str, Any] = dict(ctx.obj["overrides"])
    if mode is not None:
        overrides["mode"] = mode
    try:
        config = load_config(ctx.obj["working_dir"], **overrides)
        return build_sandbox(config)
    except SandboxError as exc:
        _error(str(exc))
        sys.exit(1)


def _mediate_all(
    ctx: click.Context,
    commands: tuple[str, ...],
    *,
    mode: ExecutionMode | None,
    approve: bool,
    show_history: bool,
) -> None:
    sandbox = _make_sandbox(ctx, mode)
    printer = RecordPrinter()
    approver: ApprovalCallback | None = RichApprovalCallback() if approve else None
    failed = False

    for command in commands:
        try:
            record = sandbox.submit(command)
            if approver is not None and record.status is ExecutionStatus.PENDING_APPROVAL:
                record = _ask(sandbox, approver, record)
        except SandboxError as exc:
            _error(str(exc))
            failed = True
            continue
        printer.print_record(record, show_diff=sandbox.mode is ExecutionMode.DIFF)
        failed = failed or record.status in _FAILING

    if show_history:
        printer.print_history(sandbox.records())

    if failed:
        sys.exit(1)


def _ask(
    sandbox: Sandbox, approver: ApprovalCallback, record: ExecutionRecord,
) -> ExecutionRecord:
    description = describe_command(record.tool, record.args)
    if approver.request_approval(record, description):
        return sandbox.approve(record.id)
    return record


@cli.command()
@click.argument("commands", nargs=-1, required=True)
@click.option("--approve", is_flag=True, help="Prompt for commands that need approval")
@click.option("--history", "show_history", is_flag=True, help="Print the record table at the end")
@click.pass_context
def run(ctx: click.Context, commands: tuple[str, ...], approve: bool, show_history: bool) -> None:
    """Mediate COMMANDS in the configured mode (live unless --simulate/--diff)."""
    _mediate_all(ctx, commands, mode=None, approve=approve, show_history=show_history)


@cli.command()
@click.argument("commands", nargs=-1, required=True)
@click.option("--approve", is_flag=True, help="Prompt for commands that need approval")
@click.option("--history", "show_history", is_flag=True, help="Print the record table at the end")
@click.pass_context
def sim(ctx: click.Context, commands: tuple[str, ...], approve: bool, show_history: bool) -> None:
    """Narrate what COMMANDS would do without running them."""
    _mediate_all(
        ctx, commands, mode=ExecutionMode.SIMULATION, approve=approve, show_history=show_history,
    )


@cli.command()
@click.argument("commands", nargs=-1, required=True)
@click.option("--approve", is_flag=True, help="Prompt for commands that need approval")
@click.option("--history", "show_history", is_flag=True, help="Print the record table at the end")
@click.pass_context
def diff(ctx: click.Context, commands: tuple[str, ...], approve: bool, show_history: bool) -> None:
    """Preview the file changes COMMANDS would make."""
    _mediate_all(ctx, commands, mode=ExecutionMode.DIFF, approve=approve, show_history=show_history)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the session status for the working directory."""
    RecordPrinter().print_status(_make_sandbox(ctx).status())


@cli.command("list-tools")
@click.pass_context
def list_tools(ctx: click.Context) -> None:
    """List registered tools and their permissions."""
    RecordPrinter().print_tools(_make_sandbox(ctx).list_tools())


@cli.command()
@click.pass_context
def shell(ctx: click.Context) -> None:
    """Interactive session: submit commands and manage the approval queue."""
    from agent_sandbox.cli.repl import Shell

    Shell(_make_sandbox(ctx)).run()


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
