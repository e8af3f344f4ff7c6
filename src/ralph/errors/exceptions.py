"""Exception hierarchy for workflow runs.

Stage executors never let these escape to the orchestrator; they are turned
into failed StepResults at the stage boundary. The CLI and library callers
that use the raising APIs directly see them as-is.
"""

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ..core.models import LockInfo


class RalphError(Exception):
    """Base class for all workflow errors."""


class ConfigError(RalphError):
    """Stage template is missing, malformed, or references missing files."""


class ConfigNotFoundError(ConfigError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Config file not found: {path}")


class MissingFrontMatterError(ConfigError):
    def __init__(self, path: Optional[Path] = None):
        self.path = path
        super().__init__("Config file must have YAML front-matter")


class MissingCommandError(ConfigError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Config file missing required 'command' field: {path}")


class MissingSkillFileError(ConfigError):
    def __init__(self, missing: List[str], worktree_dir: Path):
        self.missing = list(missing)
        self.worktree_dir = worktree_dir
        super().__init__(
            f"Skill file(s) not found: {', '.join(self.missing)}. "
            f"Ensure these files exist in the worktree directory: {worktree_dir}"
        )


class PayloadError(RalphError):
    """Issue payload is malformed or carries an unsafe field."""


class LockError(RalphError):
    """Another workflow run holds the lock for this working-tree root."""

    def __init__(self, existing: Optional["LockInfo"] = None):
        self.existing = existing
        if existing is not None:
            holder = (
                f"PID {existing.pid} started at {existing.started_at} "
                f"for issue {existing.issue_id}"
            )
        else:
            holder = "unknown process"
        super().__init__(
            f"Another Ralph workflow is already running ({holder}). "
            "Wait for it to complete or manually remove the lock file."
        )


class AgentProcessError(RalphError):
    """External agent process failed to spawn or exited non-zero."""

    def __init__(self, command: str, message: str, exit_code: Optional[int] = None):
        self.command = command
        self.exit_code = exit_code
        super().__init__(f"{command}: {message}")


class ArtifactMissingError(RalphError):
    """Agent reported success but the expected artifact never appeared."""

    def __init__(self, expected: str):
        self.expected = expected
        super().__init__(f"Expected file not found: {expected}")


class AttemptsExhaustedError(RalphError):
    """A bounded retry loop hit its cap while changes were still needed."""

    def __init__(self, loop: str, attempts: int):
        self.loop = loop
        self.attempts = attempts
        super().__init__(f"{loop} failed after {attempts} attempts")
