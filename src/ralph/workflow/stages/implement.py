"""Implement: builder stage that keeps a resumable session across review rounds."""

from typing import Optional

from ...core.models import Stage, StepResult, WorkflowContext
from .base import AgentStage, thoughts_dir

IMPLEMENT_SUBDIR = "implement"


class ImplementStage(AgentStage):
    stage = Stage.IMPLEMENT

    def _execute(self, context: WorkflowContext, feedback: Optional[str] = None, **kwargs) -> StepResult:
        thoughts_dir(context.worktree_dir, IMPLEMENT_SUBDIR).mkdir(parents=True, exist_ok=True)
        store = self.runtime.session_store
        builder = self.runtime.builder

        config = self.load_config(context)

        # Standalone invocations have no context session; fall back to the file
        session_id = context.session_id or store.load(context.worktree_dir)
        self.logger.debug(f"Known session ID: {session_id or 'none'}")

        if feedback and session_id:
            self.logger.info(f"Resuming session {session_id} with review feedback")
            run = builder.resume(session_id, config, feedback, context.worktree_dir)
        else:
            if feedback:
                self.logger.warning("No session to resume; review feedback is not forwarded")
            self.logger.info("Starting implementation...")
            run = builder.start(config, context.worktree_dir)

        final_session_id = run.session_id or session_id
        if final_session_id:
            store.save(context.worktree_dir, final_session_id)

        if run.process.success:
            return StepResult(
                success=True,
                message="Implementation completed successfully",
                session_id=final_session_id,
            )
        return StepResult(
            success=False,
            message=f"Implementation failed: {run.process.stderr or run.process.stdout}",
            session_id=final_session_id,
        )
