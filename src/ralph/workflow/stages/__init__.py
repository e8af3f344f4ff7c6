"""Stage executors, one per pipeline stage."""

from .artifact import PlanStage, ResearchStage
from .base import StageRuntime
from .implement import ImplementStage
from .judge import ReviewStage, ValidateStage, read_review_feedback
from .publish import PublishStage
from .spawn import SpawnStage

__all__ = [
    "ImplementStage",
    "PlanStage",
    "PublishStage",
    "ResearchStage",
    "ReviewStage",
    "SpawnStage",
    "StageRuntime",
    "ValidateStage",
    "read_review_feedback",
]
