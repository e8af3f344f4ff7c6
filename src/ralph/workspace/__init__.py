"""Worktree management: git worktrees, setup commands, session store and assets."""

from .session_store import SessionStore
from .worktree import (
    WorktreeResult,
    create_worktree,
    detect_default_branch,
    is_bare_worktree_root,
    worktree_exists,
)

__all__ = [
    "SessionStore",
    "WorktreeResult",
    "create_worktree",
    "detect_default_branch",
    "is_bare_worktree_root",
    "worktree_exists",
]
