"""Builder agent sessions that can be resumed across invocations.

The builder CLI prints its session handle in free-form output; how the handle
is recovered is kept inside this module so a structured handle can replace
the text pattern without touching the stages.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from ..core.config import DEFAULT_SESSION_PATTERN
from ..core.models import StepConfig
from .agent_invoker import AgentInvoker, AgentProcessResult


@dataclass
class BuilderRun:
    process: AgentProcessResult
    # Handle reported by this run, None if the output carried none
    session_id: Optional[str] = None


class BuilderSession(Protocol):
    def start(self, config: StepConfig, cwd: Path) -> BuilderRun:
        ...

    def resume(self, session_id: str, config: StepConfig, feedback: str, cwd: Path) -> BuilderRun:
        ...


class CliBuilderSession:
    """Builder session backed by an agent CLI that supports ``--resume <id>``."""

    def __init__(self, invoker: AgentInvoker, session_pattern: str = DEFAULT_SESSION_PATTERN):
        self.invoker = invoker
        self.session_re = re.compile(session_pattern, re.IGNORECASE)

    def extract_session_id(self, output: str) -> Optional[str]:
        match = self.session_re.search(output)
        return match.group(1) if match else None

    def start(self, config: StepConfig, cwd: Path) -> BuilderRun:
        return self._run(config, cwd)

    def resume(self, session_id: str, config: StepConfig, feedback: str, cwd: Path) -> BuilderRun:
        return self._run(config.with_resume(session_id, feedback), cwd)

    def _run(self, config: StepConfig, cwd: Path) -> BuilderRun:
        result = self.invoker.run(config, cwd)
        return BuilderRun(process=result, session_id=self.extract_session_id(result.stdout))
