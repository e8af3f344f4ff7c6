"""Error types and translation into user-friendly messages."""

from .exceptions import (
    AgentProcessError,
    ArtifactMissingError,
    AttemptsExhaustedError,
    ConfigError,
    ConfigNotFoundError,
    LockError,
    MissingCommandError,
    MissingFrontMatterError,
    MissingSkillFileError,
    PayloadError,
    RalphError,
)
from .translator import ErrorTranslator, UserFriendlyError

__all__ = [
    "AgentProcessError",
    "ArtifactMissingError",
    "AttemptsExhaustedError",
    "ConfigError",
    "ConfigNotFoundError",
    "ErrorTranslator",
    "LockError",
    "MissingCommandError",
    "MissingFrontMatterError",
    "MissingSkillFileError",
    "PayloadError",
    "RalphError",
    "UserFriendlyError",
]
