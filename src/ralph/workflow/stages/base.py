"""Shared plumbing for stage executors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ...core.config import RalphSettings, resolve_stage_template
from ...core.issue import Issue, artifact_name
from ...core.models import Stage, StepConfig, StepResult, WorkflowContext
from ...core.step_config import load_step_config
from ...llm.agent_invoker import AgentInvoker
from ...llm.builder_session import BuilderSession, CliBuilderSession
from ...utils.rich_logging import ContextLogger, get_logger
from ...workspace.assets import sync_agents_to_worktree
from ...workspace.session_store import SessionStore

THOUGHTS_DIR = "_thoughts"


@dataclass
class StageRuntime:
    """Collaborators every stage executor needs, built once per process."""
    config_dir: Path
    settings: RalphSettings = field(default_factory=RalphSettings)
    logger: Optional[ContextLogger] = None
    invoker: Optional[AgentInvoker] = None
    session_store: Optional[SessionStore] = None
    builder: Optional[BuilderSession] = None

    def __post_init__(self):
        self.config_dir = Path(self.config_dir)
        self.logger = get_logger("ralph.workflow", self.logger)
        if self.invoker is None:
            self.invoker = AgentInvoker(logger=self.logger)
        if self.session_store is None:
            self.session_store = SessionStore(logger=self.logger)
        if self.builder is None:
            self.builder = CliBuilderSession(self.invoker, self.settings.builder_session_pattern)


def thoughts_dir(worktree_dir: Path, subdir: str) -> Path:
    return Path(worktree_dir) / THOUGHTS_DIR / subdir


def expected_artifact(issue: Issue, subdir: str) -> str:
    """Worktree-relative path an agent is asked to write, for messages."""
    return f"{THOUGHTS_DIR}/{subdir}/{artifact_name(issue)}"


def find_artifact(worktree_dir: Path, subdir: str, issue_id: str) -> Optional[Path]:
    """First ``<issue_id>_*.md`` file in the stage's output directory."""
    directory = thoughts_dir(worktree_dir, subdir)
    if not directory.is_dir():
        return None
    matches = sorted(directory.glob(f"{issue_id}_*.md"))
    return matches[0] if matches else None


class AgentStage(ABC):
    """A stage that renders its template and runs an agent in the worktree.

    `execute` never raises: any exception from config loading or process
    spawning becomes a failed result, so the orchestrator only ever sees
    results.
    """

    stage: Stage

    def __init__(self, runtime: StageRuntime):
        self.runtime = runtime
        self.logger = runtime.logger

    @property
    def settings(self) -> RalphSettings:
        return self.runtime.settings

    def load_config(self, context: WorkflowContext) -> StepConfig:
        sync_agents_to_worktree(context.worktree_dir, logger=self.logger)
        template = resolve_stage_template(self.runtime.config_dir, self.stage)
        self.logger.debug(f"Config path: {template}")
        return load_step_config(template, context.issue, context.worktree_dir)

    def execute(self, context: WorkflowContext, **kwargs) -> StepResult:
        self.logger.stage_started(self.stage.value)
        try:
            return self._execute(context, **kwargs)
        except Exception as e:
            self.logger.debug(f"{self.stage.value} step error: {e!r}")
            return self.failure(f"Failed to run {self.stage.value} step: {e}")

    def failure(self, message: str) -> StepResult:
        return StepResult(success=False, message=message)

    @abstractmethod
    def _execute(self, context: WorkflowContext, **kwargs) -> StepResult:
        ...
