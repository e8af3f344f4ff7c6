"""Test doubles for agent processes and stage templates."""

from pathlib import Path
from typing import Callable, Dict, List, Optional

from ralph.core.issue import Issue
from ralph.core.models import Stage, StepConfig
from ralph.llm.agent_invoker import AgentProcessResult


class FakeInvoker:
    """Stands in for AgentInvoker; dispatches on the rendered command.

    Handlers receive (config, cwd) and return an AgentProcessResult. Commands
    without a handler succeed with empty output.
    """

    def __init__(self, handlers: Optional[Dict[str, Callable]] = None, tools=("gh",)):
        self.handlers = dict(handlers or {})
        self.tools = set(tools)
        self.calls: List[StepConfig] = []

    def run(self, config: StepConfig, cwd: Path) -> AgentProcessResult:
        self.calls.append(config)
        handler = self.handlers.get(config.command)
        if handler is None:
            return ok()
        return handler(config, cwd)

    def exists(self, tool_name: str) -> bool:
        return tool_name in self.tools

    def commands(self) -> List[str]:
        return [c.command for c in self.calls]


def ok(stdout: str = "", stderr: str = "") -> AgentProcessResult:
    return AgentProcessResult(success=True, exit_code=0, stdout=stdout, stderr=stderr)


def failed(stderr: str = "boom", stdout: str = "", exit_code: int = 1) -> AgentProcessResult:
    return AgentProcessResult(success=False, exit_code=exit_code, stdout=stdout, stderr=stderr)


def write_template(config_dir: Path, stage: Stage, command: Optional[str] = None, body: str = "Work on ${issue.id}") -> Path:
    """Write a stage override whose command is the stage name, for FakeInvoker dispatch."""
    path = config_dir / "config" / f"{stage.value}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\ncommand: {command or stage.value}\nargs: []\n---\n{body}\n")
    return path


def write_artifact(worktree_dir: Path, subdir: str, issue: Issue, content: str = "# notes") -> Path:
    path = worktree_dir / "_thoughts" / subdir / f"{issue.id}_notes.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path
