"""Research and Plan: builder stages judged by the artifact they leave behind."""

from pathlib import Path

from ...core.models import Stage, StepResult, WorkflowContext
from ...errors import AgentProcessError, ArtifactMissingError, RalphError
from .base import AgentStage, expected_artifact, find_artifact


class ArtifactStage(AgentStage):
    """Run the builder until it reports success and writes ``<id>_*.md``.

    Makes `settings.artifact_retries + 1` attempts. An attempt fails when the
    template cannot be loaded, the agent exits non-zero or cannot be started,
    or it exits zero without writing the artifact.
    """

    output_subdir: str
    label: str
    success_message: str

    def _attempt(self, context: WorkflowContext, expected: str) -> Path:
        config = self.load_config(context)
        result = self.runtime.invoker.run(config, context.worktree_dir)
        if not result.success:
            raise AgentProcessError(
                config.command,
                result.stderr.strip() or f"exited with code {result.exit_code}",
                exit_code=result.exit_code,
            )

        artifact = find_artifact(context.worktree_dir, self.output_subdir, context.issue.id)
        if artifact is None:
            raise ArtifactMissingError(expected)
        return artifact

    def _execute(self, context: WorkflowContext, **kwargs) -> StepResult:
        expected = expected_artifact(context.issue, self.output_subdir)
        max_attempts = self.settings.artifact_retries + 1
        self.logger.debug(f"Expected output file: {expected}")

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                self.logger.retrying(self.stage.value, attempt, max_attempts)
            try:
                artifact = self._attempt(context, expected)
            except (RalphError, OSError) as e:
                self.logger.warning(f"{self.label} attempt {attempt} failed: {e}")
                continue

            self.logger.debug(f"{self.label} output file found: {artifact}")
            return StepResult(success=True, message=self.success_message, output_file=artifact)

        return self.failure(
            f"{self.label} failed after {max_attempts} attempts. Expected file: {expected}"
        )


class ResearchStage(ArtifactStage):
    stage = Stage.RESEARCH
    output_subdir = "research"
    label = "Research"
    success_message = "Research completed successfully"


class PlanStage(ArtifactStage):
    """Always starts a fresh builder session; plans are never resumed."""
    stage = Stage.PLAN
    output_subdir = "plan"
    label = "Plan"
    success_message = "Plan completed successfully"
