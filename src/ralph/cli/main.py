"""Main CLI for ralph."""

import sys
from pathlib import Path
from typing import Callable, Dict, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..core.config import config_dir_for_root, load_settings
from ..core.issue import read_issue_payload
from ..core.models import Stage, StepResult
from ..errors import ErrorTranslator, RalphError
from ..locking.lock_manager import LockManager, lock_file_path
from ..utils.rich_logging import setup_rich_logging
from ..workflow.orchestrator import WorkflowOrchestrator
from ..workflow.stages import StageRuntime
from ..workspace.worktree import is_bare_worktree_root

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

EXPECTED_LAYOUT = """\
Expected structure:
  ralph-git/
  ├── .bare/       # Git database
  ├── .git         # File pointing to .bare/
  ├── main/        # Main branch worktree
  └── feature-123/ # Feature branch worktrees"""

PAYLOAD_HELP = "JSON payload file (reads from stdin if not provided)"

STAGE_HELP: Dict[Stage, str] = {
    Stage.SPAWN: "Create a git worktree and branch for the issue, run install/build/test.",
    Stage.RESEARCH: "Research the codebase for the issue (writes _thoughts/research/).",
    Stage.PLAN: "Create the implementation plan (writes _thoughts/plan/).",
    Stage.VALIDATE: "Validate the plan with the judge agent. Exits 1 if changes are needed.",
    Stage.IMPLEMENT: "Implement the plan, resuming the saved session when given feedback.",
    Stage.REVIEW: "Code review with the judge agent. Exits 1 if changes are needed.",
    Stage.PUBLISH: "Verify completion and create the pull request.",
}


@click.group()
@click.version_option(__version__, prog_name="ralph")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging for debugging")
@click.option(
    "--root",
    "-r",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Git bare worktree root directory",
)
@click.pass_context
def cli(ctx, verbose, root):
    """Ralph - AI-assisted development workflow.

    \b
    run        spawn -> research -> plan -> validate -> implement -> review -> publish
    Plan/validate and implement/review each loop at most 4 times.
    """
    ctx.ensure_object(dict)
    ctx.obj["root"] = root.resolve()
    ctx.obj["logger"] = setup_rich_logging(verbose=verbose)


def _require_root(ctx) -> Path:
    root = ctx.obj["root"]
    if not is_bare_worktree_root(root):
        err_console.print(
            "[red]Error: Ralph must be run from a git bare worktree root directory.[/]",
        )
        err_console.print(EXPECTED_LAYOUT, markup=False)
        ctx.exit(1)
    return root


def _build_orchestrator(ctx) -> WorkflowOrchestrator:
    root = ctx.obj["root"]
    logger = ctx.obj["logger"]
    runtime = StageRuntime(
        config_dir=config_dir_for_root(root),
        settings=load_settings(),
        logger=logger,
    )
    return WorkflowOrchestrator(root, runtime, lock_manager=LockManager(logger=logger))


def _fail(ctx, error: Exception):
    translator = ErrorTranslator()
    err_console.print(translator.format_for_cli(translator.translate(error)))
    ctx.exit(1)


def _print_failure(result: StepResult):
    err_console.print(f"[red]{escape(result.message)}[/]")


def _report_default(result: StepResult) -> int:
    if not result.success:
        _print_failure(result)
        return 1
    console.print(escape(result.message))
    if result.output_file:
        console.print(f"Output: {escape(str(result.output_file))}")
    if result.session_id:
        console.print(f"Session ID saved for future resume: {escape(result.session_id)}")
    return 0


def _report_verdict(heading: str) -> Callable[[StepResult], int]:
    def report(result: StepResult) -> int:
        if getattr(result, "needs_changes", False):
            console.print(f"[yellow]{heading}[/]")
            console.print(escape(result.message))
            if getattr(result, "feedback_file", None):
                console.print(f"Feedback: {escape(str(result.feedback_file))}")
            return 1
        return _report_default(result)
    return report


STAGE_REPORTERS: Dict[Stage, Callable[[StepResult], int]] = {
    Stage.SPAWN: _report_default,
    Stage.RESEARCH: _report_default,
    Stage.PLAN: _report_default,
    Stage.VALIDATE: _report_verdict("Plan needs changes:"),
    Stage.IMPLEMENT: _report_default,
    Stage.REVIEW: _report_verdict("Code needs changes:"),
    Stage.PUBLISH: _report_default,
}


def _run_stage(ctx, stage: Stage, input_file: Optional[Path], feedback_file: Optional[Path] = None):
    root = _require_root(ctx)
    try:
        issue = read_issue_payload(input_file, stdin=sys.stdin)
        feedback = feedback_file.read_text(encoding="utf-8") if feedback_file else None
    except (RalphError, OSError, UnicodeDecodeError) as e:
        _fail(ctx, e)
        return

    ctx.obj["logger"].debug(f"Running {stage.value} for {issue.id} in {root}")
    result = _build_orchestrator(ctx).run_stage(stage, issue, feedback=feedback)
    ctx.exit(STAGE_REPORTERS[stage](result))


def _make_stage_command(stage: Stage) -> click.Command:
    @click.option("--input", "-i", "input_file", type=click.Path(path_type=Path), help=PAYLOAD_HELP)
    @click.pass_context
    def command(ctx, input_file):
        _run_stage(ctx, stage, input_file)

    command.__doc__ = STAGE_HELP[stage]
    return click.command(name=stage.value)(command)


@click.command(name=Stage.IMPLEMENT.value)
@click.option("--input", "-i", "input_file", type=click.Path(path_type=Path), help=PAYLOAD_HELP)
@click.option(
    "--feedback",
    "-f",
    "feedback_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Code review feedback file to address (resumes previous session)",
)
@click.pass_context
def implement(ctx, input_file, feedback_file):
    """Implement the plan, resuming the saved session when given feedback."""
    _run_stage(ctx, Stage.IMPLEMENT, input_file, feedback_file)


for _stage in Stage:
    cli.add_command(implement if _stage is Stage.IMPLEMENT else _make_stage_command(_stage))


@cli.command()
@click.option("--input", "-i", "input_file", type=click.Path(path_type=Path), help=PAYLOAD_HELP)
@click.pass_context
def run(ctx, input_file):
    """Run the full workflow for an issue.

    \b
    Example:
      echo '{"id": "HLN-123", "title": "Add feature", "description": "..."}' | ralph run

    \b
    Environment Variables:
      RALPH_COMMAND_TIMEOUT_MS  Timeout for README setup commands (default: 300000)
    """
    _require_root(ctx)
    try:
        issue = read_issue_payload(input_file, stdin=sys.stdin)
    except RalphError as e:
        _fail(ctx, e)
        return

    result = _build_orchestrator(ctx).run(issue)
    if not result.success:
        _print_failure(result)
        ctx.exit(1)
    console.print(f"[bold green]✓[/] {escape(result.message)}")


@cli.command()
@click.pass_context
def status(ctx):
    """Show which workflow, if any, holds the lock."""
    root = _require_root(ctx)
    manager = LockManager(logger=ctx.obj["logger"])
    info = manager.read_lock_info(root)

    if info is None:
        console.print("[green]No workflow is running.[/]")
        return

    table = Table(title="Workflow lock")
    table.add_column("PID")
    table.add_column("Issue")
    table.add_column("Command")
    table.add_column("Started")
    table.add_column("State")
    state = "[yellow]running[/]" if manager.is_locked(root) else "[dim]stale[/]"
    table.add_row(str(info.pid), escape(info.issue_id), escape(info.command), info.started_at.isoformat(), state)
    console.print(table)


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def unlock(ctx, yes):
    """Remove the workflow lock regardless of its owner."""
    root = _require_root(ctx)
    manager = LockManager(logger=ctx.obj["logger"])

    if manager.is_locked(root) and not yes:
        info = manager.read_lock_info(root)
        if not click.confirm(f"PID {info.pid} is still running for {info.issue_id}. Remove its lock?"):
            ctx.exit(1)

    if manager.force_remove(root):
        console.print(f"[green]✓ Removed {escape(str(lock_file_path(root)))}[/]")
    else:
        console.print("No lock file found.")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
