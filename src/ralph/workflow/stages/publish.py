"""Publish: final judge pass, then open the pull request."""

from pathlib import Path
from typing import Callable, Optional

from ...core.issue import Issue
from ...core.models import Stage, StepResult, WorkflowContext
from ...integrations.github.pull_request import PullRequestResult, create_pull_request
from ...workspace.worktree import detect_default_branch
from ..verdict import CompletenessClassifier
from .base import AgentStage, StageRuntime

GH_MISSING_MESSAGE = (
    "Error: GitHub CLI (gh) is required but not found. "
    "Please install it: https://cli.github.com/"
)
INCOMPLETE_MESSAGE = (
    "Implementation incomplete. Cannot create PR until all plan items are implemented."
)

PullRequestCreator = Callable[[Issue, str, Path], PullRequestResult]


class PublishStage(AgentStage):
    stage = Stage.PUBLISH

    def __init__(
        self,
        runtime: StageRuntime,
        completeness: Optional[CompletenessClassifier] = None,
        pr_creator: Optional[PullRequestCreator] = None,
        base_branch_detector: Optional[Callable[[Path], str]] = None,
    ):
        super().__init__(runtime)
        self.completeness = completeness or CompletenessClassifier()
        self.pr_creator = pr_creator or self._create_with_gh
        self.base_branch_detector = base_branch_detector or detect_default_branch

    def _create_with_gh(self, issue: Issue, base_branch: str, cwd: Path) -> PullRequestResult:
        return create_pull_request(issue, base_branch, cwd, gh_executable=self.settings.pr_tool)

    def _execute(self, context: WorkflowContext, **kwargs) -> StepResult:
        if not self.runtime.invoker.exists(self.settings.pr_tool):
            return self.failure(GH_MISSING_MESSAGE)

        config = self.load_config(context)
        result = self.runtime.invoker.run(config, context.worktree_dir)

        if not result.success:
            return self.failure(f"Publish verification failed: {result.stderr}")

        if not self.completeness.is_complete(result.stdout):
            self.logger.debug("Implementation incomplete - cannot create PR")
            return self.failure(INCOMPLETE_MESSAGE)

        base_branch = self.base_branch_detector(context.worktree_dir)
        self.logger.info(f"Creating pull request for branch {context.branch_name} into {base_branch}...")
        pr = self.pr_creator(context.issue, base_branch, context.worktree_dir)

        if pr.success:
            return StepResult(success=True, message=f"Pull request created: {pr.url}")
        return self.failure(f"Failed to create pull request: {pr.error}")
