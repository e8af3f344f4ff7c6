"""Persist the builder agent's session handle per worktree."""

from pathlib import Path
from typing import Optional

from ..core.config import RALPH_DIR
from ..utils.atomic_io import atomic_write_text
from ..utils.rich_logging import ContextLogger, get_logger

SESSION_FILE = "session"


class SessionStore:
    """Single-line session file at ``<worktree>/.ralph/session``.

    Not locked on its own: only the active Implement stage touches it, and
    runs against a root are serialised by the LockManager.
    """

    def __init__(self, logger: Optional[ContextLogger] = None):
        self.logger = get_logger(__name__, logger)

    @staticmethod
    def session_file(worktree_dir: Path) -> Path:
        return Path(worktree_dir) / RALPH_DIR / SESSION_FILE

    def save(self, worktree_dir: Path, session_id: str) -> None:
        path = self.session_file(worktree_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(path, session_id)
        self.logger.debug(f"Session ID saved to {path}")

    def load(self, worktree_dir: Path) -> Optional[str]:
        """Stored handle, or None when the file is missing or blank."""
        path = self.session_file(worktree_dir)
        if not path.is_file():
            self.logger.debug("Session file not found")
            return None
        session_id = path.read_text().strip()
        self.logger.debug(f"Session ID loaded: {session_id or '(empty)'}")
        return session_id or None

    def clear(self, worktree_dir: Path) -> None:
        path = self.session_file(worktree_dir)
        if path.exists():
            path.write_text("")
            self.logger.debug("Session ID cleared")
