"""Agent process invocation."""

from .agent_invoker import AgentInvoker, AgentProcessResult
from .builder_session import BuilderRun, BuilderSession, CliBuilderSession

__all__ = [
    "AgentInvoker",
    "AgentProcessResult",
    "BuilderRun",
    "BuilderSession",
    "CliBuilderSession",
]
