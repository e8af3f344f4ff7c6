"""Spawn: create or reuse the issue's worktree and prove it builds."""

from pathlib import Path

from ...core.issue import Issue, branch_name, worktree_name
from ...core.models import SpawnResult, Stage, WorkflowContext
from ...utils.subprocess_utils import run_shell_command
from ...workspace.setup_commands import extract_setup_commands
from ...workspace.worktree import create_worktree, worktree_exists, worktree_path
from .base import StageRuntime

FAILURE_PREFIXES = {
    "install": "Install command failed",
    "build": "Build command failed",
    "test": "Tests failed",
}


class SpawnStage:
    """Single attempt; the first failing setup command ends the stage."""

    stage = Stage.SPAWN

    def __init__(self, runtime: StageRuntime):
        self.runtime = runtime
        self.logger = runtime.logger

    def execute(self, root_dir: Path, issue: Issue) -> SpawnResult:
        self.logger.stage_started(self.stage.value)
        try:
            return self._execute(Path(root_dir), issue)
        except Exception as e:
            self.logger.debug(f"spawn step error: {e!r}")
            return SpawnResult(success=False, message=f"Failed to run spawn step: {e}")

    def _execute(self, root_dir: Path, issue: Issue) -> SpawnResult:
        branch = branch_name(issue.id)
        name = worktree_name(issue.id)
        self.logger.info(f"Creating worktree for issue {issue.id}...")

        if worktree_exists(root_dir, name):
            self.logger.info(f"Worktree {name} already exists, using existing...")
            path = worktree_path(root_dir, name)
        else:
            created = create_worktree(root_dir, branch, name)
            if not created.success:
                return SpawnResult(success=False, message=created.message)
            self.logger.info(created.message)
            path = created.path

        context = WorkflowContext(issue=issue, worktree_dir=path, branch_name=branch)
        return self._run_setup(context)

    def _run_setup(self, context: WorkflowContext) -> SpawnResult:
        readme = context.worktree_dir / "README.md"
        if not readme.is_file():
            self.logger.info("No README.md found, skipping setup commands...")
            return SpawnResult(
                success=True,
                message="Worktree created successfully (no README.md found)",
                context=context,
            )

        commands = extract_setup_commands(readme.read_text())
        timeout_ms = self.runtime.settings.command_timeout_ms

        for kind, command in commands.in_order():
            self.logger.info(f"Running {kind} command: {command}")
            result = run_shell_command(command, context.worktree_dir, timeout_ms)
            if not result.success:
                return SpawnResult(
                    success=False,
                    message=f"{FAILURE_PREFIXES[kind]}: {result.stderr}",
                    context=context,
                )

        return SpawnResult(
            success=True,
            message="Worktree created and tests passed successfully",
            context=context,
        )
