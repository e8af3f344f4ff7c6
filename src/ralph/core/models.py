"""Workflow data model: rendered stage configs, stage results and run context."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .issue import Issue

FEEDBACK_HEADING = "## Code Review Feedback to Address"


class Stage(str, Enum):
    """The seven pipeline stages, in execution order."""
    SPAWN = "spawn"
    RESEARCH = "research"
    PLAN = "plan"
    VALIDATE = "validate"
    IMPLEMENT = "implement"
    REVIEW = "review"
    PUBLISH = "publish"


@dataclass(frozen=True)
class StepConfig:
    """Fully rendered agent invocation for one stage."""
    command: str
    args: Tuple[str, ...] = ()
    prompt: str = ""

    def with_resume(self, session_id: str, feedback: str) -> "StepConfig":
        """Return a copy that resumes `session_id` and carries review feedback."""
        return replace(
            self,
            prompt=f"{self.prompt}\n\n{FEEDBACK_HEADING}\n\n{feedback}",
            args=(*self.args, "--resume", session_id),
        )


@dataclass
class StepResult:
    success: bool
    message: str
    output_file: Optional[Path] = None
    session_id: Optional[str] = None


@dataclass
class ValidateResult(StepResult):
    # Orthogonal to success: a judge can succeed and still ask for changes
    needs_changes: bool = False
    feedback_file: Optional[Path] = None


@dataclass
class ReviewResult(ValidateResult):
    pass


@dataclass
class SpawnResult(StepResult):
    context: Optional["WorkflowContext"] = None


@dataclass
class WorkflowContext:
    """Mutable run state, owned by a single orchestrator for one run."""
    issue: Issue
    worktree_dir: Path
    branch_name: str
    session_id: Optional[str] = None
    plan_validation_attempts: int = 0
    code_review_attempts: int = 0


class LockInfo(BaseModel):
    """Lock file contents. Serialised with the camelCase keys on disk."""
    model_config = ConfigDict(populate_by_name=True)

    pid: int
    started_at: datetime = Field(alias="startedAt")
    issue_id: str = Field(alias="issueId")
    command: str

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
