"""Runtime settings and stage template resolution."""

import logging
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .models import Stage

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT_MS = 300_000
DEFAULT_SESSION_PATTERN = r"session[_\s-]?id[:\s]+([a-zA-Z0-9-_]+)"

# Hidden per-worktree directory holding the lock, session and synced skills
RALPH_DIR = ".ralph"
CONFIG_SUBDIR = "config"
MAIN_WORKTREE = "main"


class RalphSettings(BaseSettings):
    """Settings read from RALPH_* environment variables."""

    # Timeout for README-discovered install/build/test commands
    command_timeout_ms: int = DEFAULT_COMMAND_TIMEOUT_MS

    builder_session_pattern: str = DEFAULT_SESSION_PATTERN
    max_plan_validation_attempts: int = Field(default=4, ge=1)
    max_code_review_attempts: int = Field(default=4, ge=1)
    artifact_retries: int = Field(default=1, ge=0)
    pr_tool: str = "gh"

    class Config:
        env_prefix = "RALPH_"
        extra = "ignore"

    @field_validator("command_timeout_ms", mode="before")
    @classmethod
    def fallback_timeout(cls, v: Any) -> int:
        try:
            timeout = int(str(v).strip())
        except (TypeError, ValueError):
            timeout = 0
        if timeout <= 0:
            logger.warning(
                f"Invalid RALPH_COMMAND_TIMEOUT_MS '{v}', "
                f"using default {DEFAULT_COMMAND_TIMEOUT_MS}ms"
            )
            return DEFAULT_COMMAND_TIMEOUT_MS
        return timeout


def load_settings() -> RalphSettings:
    return RalphSettings()


def config_dir_for_root(root_dir: Path) -> Path:
    """Stage overrides live in the main worktree's config/ directory."""
    return Path(root_dir) / MAIN_WORKTREE


def bundled_template(stage: Stage) -> Path:
    """Path of the template shipped inside the package."""
    return Path(str(resources.files("ralph") / "assets" / CONFIG_SUBDIR / f"{stage.value}.md"))


def resolve_stage_template(config_dir: Path, stage: Stage) -> Path:
    """Pick the repository's override for a stage template, else the bundled one."""
    override = Path(config_dir) / CONFIG_SUBDIR / f"{stage.value}.md"
    if override.exists():
        logger.debug(f"Using stage template override {override}")
        return override
    return bundled_template(stage)
