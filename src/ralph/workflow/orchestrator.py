"""Full pipeline: spawn → research → (plan ↔ validate) → (implement ↔ review) → publish.

The orchestrator holds the root lock for the whole run and owns the two
bounded loops. Stage executors return results and never raise, so any
`success=False` aborts the run with that stage's message, while
`needs_changes=True` only continues a loop until its attempt cap.
"""

from pathlib import Path
from typing import Dict, Optional

from ..core.issue import Issue, branch_name, worktree_name
from ..core.models import Stage, StepResult, WorkflowContext
from ..errors import AttemptsExhaustedError, LockError
from ..locking.lock_manager import LockManager
from .stages import (
    ImplementStage,
    PlanStage,
    PublishStage,
    ResearchStage,
    ReviewStage,
    SpawnStage,
    StageRuntime,
    ValidateStage,
    read_review_feedback,
)
from .stages.base import AgentStage

RUN_COMMAND = "run"


class WorkflowOrchestrator:
    def __init__(
        self,
        root_dir: Path,
        runtime: StageRuntime,
        lock_manager: Optional[LockManager] = None,
        stages: Optional[Dict[Stage, object]] = None,
    ):
        self.root_dir = Path(root_dir)
        self.runtime = runtime
        self.logger = runtime.logger
        self.settings = runtime.settings
        self.lock_manager = lock_manager or LockManager(logger=self.logger)

        self.stages: Dict[Stage, object] = {
            Stage.SPAWN: SpawnStage(runtime),
            Stage.RESEARCH: ResearchStage(runtime),
            Stage.PLAN: PlanStage(runtime),
            Stage.VALIDATE: ValidateStage(runtime),
            Stage.IMPLEMENT: ImplementStage(runtime),
            Stage.REVIEW: ReviewStage(runtime),
            Stage.PUBLISH: PublishStage(runtime),
        }
        if stages:
            self.stages.update(stages)

    def context_for(self, issue: Issue) -> WorkflowContext:
        """Context for a standalone stage run against an existing worktree."""
        return WorkflowContext(
            issue=issue,
            worktree_dir=self.root_dir / worktree_name(issue.id),
            branch_name=branch_name(issue.id),
        )

    def run_stage(self, stage: Stage, issue: Issue, feedback: Optional[str] = None) -> StepResult:
        """Run a single stage outside the pipeline (no lock, no loops)."""
        self.logger.set_issue_context(issue_id=issue.id)
        if stage is Stage.SPAWN:
            return self.stages[Stage.SPAWN].execute(self.root_dir, issue)

        executor: AgentStage = self.stages[stage]
        if stage is Stage.IMPLEMENT:
            return executor.execute(self.context_for(issue), feedback=feedback)
        return executor.execute(self.context_for(issue))

    def run(self, issue: Issue) -> StepResult:
        """Run the whole pipeline for `issue` under the root lock."""
        self.logger.set_issue_context(issue_id=issue.id)
        self.logger.debug(f"Root directory: {self.root_dir}")
        self.logger.debug(f"Config directory: {self.runtime.config_dir}")

        lock = self.lock_manager.acquire(self.root_dir, issue.id, RUN_COMMAND)
        if not lock.acquired:
            return StepResult(success=False, message=str(LockError(lock.existing_lock)))

        try:
            return self._run_workflow(issue)
        except AttemptsExhaustedError as e:
            self.logger.error(str(e))
            return StepResult(success=False, message=str(e))
        finally:
            self.lock_manager.release(self.root_dir)

    def _run_workflow(self, issue: Issue) -> StepResult:
        self.logger.info(f"=== Starting Ralph workflow for {issue.id} ===")

        spawn = self.stages[Stage.SPAWN].execute(self.root_dir, issue)
        if not spawn.success or spawn.context is None:
            self.logger.stage_failed(Stage.SPAWN.value, spawn.message)
            return spawn
        self.logger.stage_succeeded(Stage.SPAWN.value, spawn.message)
        context = spawn.context

        research = self.stages[Stage.RESEARCH].execute(context)
        if not research.success:
            self.logger.stage_failed(Stage.RESEARCH.value, research.message)
            return research
        self.logger.stage_succeeded(Stage.RESEARCH.value, research.message)

        failure = self._plan_validate_loop(context)
        if failure is not None:
            return failure

        failure = self._implement_review_loop(context)
        if failure is not None:
            return failure

        publish = self.stages[Stage.PUBLISH].execute(context)
        if not publish.success:
            self.logger.stage_failed(Stage.PUBLISH.value, publish.message)
            return publish
        self.logger.stage_succeeded(Stage.PUBLISH.value, publish.message)

        self.logger.info("=== Ralph workflow completed successfully ===")
        return StepResult(success=True, message=f"Workflow completed: {publish.message}")

    def _plan_validate_loop(self, context: WorkflowContext) -> Optional[StepResult]:
        max_attempts = self.settings.max_plan_validation_attempts

        while context.plan_validation_attempts < max_attempts:
            plan = self.stages[Stage.PLAN].execute(context)
            if not plan.success:
                self.logger.stage_failed(Stage.PLAN.value, plan.message)
                return plan
            self.logger.stage_succeeded(Stage.PLAN.value, plan.message)

            validation = self.stages[Stage.VALIDATE].execute(context)
            context.plan_validation_attempts += 1

            if not validation.success:
                self.logger.stage_failed(Stage.VALIDATE.value, validation.message)
                return validation
            if not validation.needs_changes:
                self.logger.stage_succeeded(Stage.VALIDATE.value, validation.message)
                return None

            self.logger.info(
                f"⟳ Validate: Plan needs changes "
                f"(attempt {context.plan_validation_attempts}/{max_attempts})"
            )

        raise AttemptsExhaustedError("Plan validation", max_attempts)

    def _implement_review_loop(self, context: WorkflowContext) -> Optional[StepResult]:
        max_attempts = self.settings.max_code_review_attempts
        feedback: Optional[str] = None

        while context.code_review_attempts < max_attempts:
            implementation = self.stages[Stage.IMPLEMENT].execute(context, feedback=feedback)
            if not implementation.success:
                self.logger.stage_failed(Stage.IMPLEMENT.value, implementation.message)
                return implementation
            if implementation.session_id:
                context.session_id = implementation.session_id
            self.logger.stage_succeeded(Stage.IMPLEMENT.value, implementation.message)

            review = self.stages[Stage.REVIEW].execute(context)
            context.code_review_attempts += 1

            if not review.success:
                self.logger.stage_failed(Stage.REVIEW.value, review.message)
                return review
            if not review.needs_changes:
                self.logger.stage_succeeded(Stage.REVIEW.value, review.message)
                return None

            self.logger.info(
                f"⟳ Review: Code needs changes "
                f"(attempt {context.code_review_attempts}/{max_attempts})"
            )
            if review.feedback_file is not None:
                feedback = read_review_feedback(review.feedback_file)

        raise AttemptsExhaustedError("Code review", max_attempts)
