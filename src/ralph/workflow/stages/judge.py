"""Validate and Review: judge stages whose verdict drives the retry loops."""

from pathlib import Path
from typing import Optional

from ...core.models import ReviewResult, Stage, ValidateResult, WorkflowContext
from ..verdict import (
    VerdictClassifier,
    extract_validation_feedback,
    review_classifier,
    review_file_classifier,
    validation_classifier,
)
from .base import AgentStage, StageRuntime, find_artifact

CODE_REVIEW_SUBDIR = "code-review"


class ValidateStage(AgentStage):
    """Judge the plan. `success` reflects the process; `needs_changes` the verdict."""

    stage = Stage.VALIDATE

    def __init__(self, runtime: StageRuntime, classifier: Optional[VerdictClassifier] = None):
        super().__init__(runtime)
        self.classifier = classifier or validation_classifier()

    def failure(self, message: str) -> ValidateResult:
        return ValidateResult(success=False, message=message, needs_changes=False)

    def _execute(self, context: WorkflowContext, **kwargs) -> ValidateResult:
        config = self.load_config(context)
        result = self.runtime.invoker.run(config, context.worktree_dir)

        needs_changes = self.classifier.needs_changes(result.stdout)
        self.logger.debug(f"Validation result - needsChanges: {needs_changes}")

        if not result.success:
            return ValidateResult(
                success=False,
                message=f"Validation failed: {result.stderr}",
                needs_changes=needs_changes,
            )
        if needs_changes:
            return ValidateResult(
                success=True,
                message=f"Plan needs changes: {extract_validation_feedback(result.stdout)}",
                needs_changes=True,
            )
        return ValidateResult(
            success=True,
            message="Plan validated successfully - meets quality bar",
            needs_changes=False,
        )


class ReviewStage(AgentStage):
    """Judge the implementation; also inspects the review file the judge writes."""

    stage = Stage.REVIEW

    def __init__(
        self,
        runtime: StageRuntime,
        classifier: Optional[VerdictClassifier] = None,
        file_classifier: Optional[VerdictClassifier] = None,
    ):
        super().__init__(runtime)
        self.classifier = classifier or review_classifier()
        self.file_classifier = file_classifier or review_file_classifier()

    def failure(self, message: str) -> ReviewResult:
        return ReviewResult(success=False, message=message, needs_changes=False)

    def _needs_changes(self, stdout: str, feedback_file: Optional[Path]) -> bool:
        if self.classifier.needs_changes(stdout):
            return True
        if feedback_file is None:
            return False
        content = read_review_feedback(feedback_file)
        return content is not None and self.file_classifier.needs_changes(content)

    def _execute(self, context: WorkflowContext, **kwargs) -> ReviewResult:
        config = self.load_config(context)
        result = self.runtime.invoker.run(config, context.worktree_dir)

        feedback_file = find_artifact(context.worktree_dir, CODE_REVIEW_SUBDIR, context.issue.id)
        self.logger.debug(f"Feedback file found: {feedback_file or 'none'}")

        needs_changes = self._needs_changes(result.stdout, feedback_file)
        self.logger.debug(f"Review result - needsChanges: {needs_changes}")

        if not result.success:
            return ReviewResult(
                success=False,
                message=f"Review failed: {result.stderr}",
                needs_changes=needs_changes,
                feedback_file=feedback_file,
            )
        if needs_changes:
            return ReviewResult(
                success=True,
                message="Code review found issues that need to be addressed",
                needs_changes=True,
                feedback_file=feedback_file,
            )
        return ReviewResult(
            success=True,
            message="Code review passed - meets quality bar",
            needs_changes=False,
            feedback_file=feedback_file,
        )


def read_review_feedback(feedback_file: Path) -> Optional[str]:
    """Text of a review artifact, or None if it cannot be read."""
    try:
        return Path(feedback_file).read_text()
    except OSError:
        return None
