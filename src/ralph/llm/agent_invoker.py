"""Run external builder/judge agent processes."""

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..core.models import StepConfig
from ..errors import AgentProcessError
from ..utils.rich_logging import ContextLogger, get_logger


@dataclass
class AgentProcessResult:
    """Outcome of one agent invocation."""
    success: bool
    exit_code: int
    stdout: str
    stderr: str


class AgentInvoker:
    """Spawn an agent CLI and wait for it.

    The prompt is passed as the trailing positional argument after the
    configured args; stdin is inherited so interactive permission prompts
    still reach the user. Agents have no timeout and run to completion.
    """

    def __init__(self, logger: Optional[ContextLogger] = None):
        self.logger = get_logger(__name__, logger)

    def build_command(self, config: StepConfig) -> List[str]:
        return [config.command, *config.args, config.prompt]

    def run(self, config: StepConfig, cwd: Path) -> AgentProcessResult:
        """
        Run the agent described by `config` in `cwd`.

        Raises:
            AgentProcessError: If the process could not be started
        """
        cmd = self.build_command(config)
        self.logger.debug(f"Executing agent command: {config.command} {' '.join(config.args)}")
        self.logger.debug(f"Working directory: {cwd}")
        self.logger.debug(f"Prompt length: {len(config.prompt)} characters")

        try:
            proc = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
        except OSError as e:
            raise AgentProcessError(config.command, f"failed to start: {e}") from e

        self.logger.debug(f"Command exited with code: {proc.returncode}")
        if proc.stdout:
            self.logger.debug(f"stdout length: {len(proc.stdout)} characters")
        if proc.stderr:
            self.logger.debug(f"stderr length: {len(proc.stderr)} characters")

        return AgentProcessResult(
            success=proc.returncode == 0,
            exit_code=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )

    def exists(self, tool_name: str) -> bool:
        """Whether `tool_name` resolves to an executable on PATH."""
        found = shutil.which(tool_name) is not None
        self.logger.debug(f"{tool_name} available: {found}")
        return found
