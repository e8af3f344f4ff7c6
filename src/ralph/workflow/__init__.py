"""Workflow engine: stage executors, verdict classification and orchestration."""

from .orchestrator import WorkflowOrchestrator
from .stages import StageRuntime

__all__ = ["StageRuntime", "WorkflowOrchestrator"]
