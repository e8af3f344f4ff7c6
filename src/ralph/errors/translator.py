"""Translate technical errors to user-friendly messages."""

import re
from dataclasses import dataclass
from typing import List

from rich.markup import escape


@dataclass
class UserFriendlyError:
    """User-friendly error representation."""
    original_error: Exception
    title: str
    explanation: str
    actions: List[str]
    show_technical: bool = False


class ErrorTranslator:
    """Translate technical errors to user-friendly messages."""

    # Matched against "<ExceptionType>: <message>", first hit wins
    ERROR_PATTERNS = {
        r"LockError|already running": {
            "title": "Another workflow is running",
            "explanation": "A Ralph workflow already holds the lock for this worktree root.",
            "actions": [
                "Check the lock holder: ralph status",
                "Wait for the other run to finish",
                "If the holder is gone, remove the lock: ralph unlock",
            ],
        },
        r"PayloadError|Invalid JSON payload|Issue payload|Issue ID|Input file not found": {
            "title": "Invalid issue payload",
            "explanation": "The issue JSON could not be parsed or failed validation.",
            "actions": [
                'Provide a JSON object: {"id": "HLN-123", "title": "...", "description": "..."}',
                "Use only letters, digits, '-' and '_' in the issue id",
                "Pass the payload with --input <file> or on stdin",
            ],
        },
        r"MissingSkillFileError|Skill file\(s\) not found": {
            "title": "Skill files missing",
            "explanation": "A stage prompt references skill files that are not in the worktree.",
            "actions": [
                "Remove <worktree>/.ralph/.assets-hash to force re-extraction",
                "Check the skill paths referenced by the stage template",
            ],
        },
        r"ConfigError|Config file": {
            "title": "Stage template problem",
            "explanation": "A stage template under main/config/ is missing or malformed.",
            "actions": [
                "Templates need YAML front-matter with a 'command' field",
                "Delete the override to fall back to the bundled template",
            ],
        },
        r"AgentProcessError|No such file or directory": {
            "title": "Agent process could not run",
            "explanation": "The external agent command failed to start.",
            "actions": [
                "Check that the agent CLI (claude, codex) is installed and on PATH",
                "Re-run with -v for the full command line",
            ],
        },
    }

    def translate(self, error: Exception) -> UserFriendlyError:
        error_str = str(error)
        error_type = type(error).__name__
        full_error = f"{error_type}: {error_str}"

        for pattern, translation in self.ERROR_PATTERNS.items():
            if re.search(pattern, full_error, re.IGNORECASE):
                return UserFriendlyError(
                    original_error=error,
                    title=translation["title"],
                    explanation=translation["explanation"],
                    actions=translation["actions"],
                    show_technical=True,
                )

        return UserFriendlyError(
            original_error=error,
            title="Unexpected error",
            explanation=error_str,
            actions=["Re-run with -v to see debug output"],
            show_technical=False,
        )

    def format_for_cli(self, friendly_error: UserFriendlyError) -> str:
        output = f"[bold red]{friendly_error.title}[/]\n\n"
        output += f"{escape(friendly_error.explanation)}\n\n"

        output += "[bold]How to fix:[/]\n"
        for i, action in enumerate(friendly_error.actions, 1):
            output += f"  {i}. {escape(action)}\n"

        if friendly_error.show_technical:
            output += f"\n[dim]Details:[/]\n[dim]{escape(str(friendly_error.original_error))}[/]"

        return output
