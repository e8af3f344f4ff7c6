"""Git worktree operations for a bare-repository worktree root.

Expected layout::

    ralph-git/
    ├── .bare/        # Git database (bare repository)
    ├── .git          # File pointing to .bare/
    ├── main/         # Main branch worktree
    └── hln-123/      # Feature worktree for issue HLN-123
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..core.config import MAIN_WORKTREE
from ..utils.subprocess_utils import SubprocessError, run_git_command

logger = logging.getLogger(__name__)

DEFAULT_BASE_BRANCH = "main"


@dataclass
class WorktreeResult:
    success: bool
    path: Path
    message: str


def is_bare_worktree_root(directory: Path) -> bool:
    directory = Path(directory)
    bare_dir = directory / ".bare"
    git_file = directory / ".git"

    if not bare_dir.is_dir() or not git_file.is_file():
        return False
    try:
        return ".bare" in git_file.read_text().strip()
    except OSError:
        return False


def worktree_path(root_dir: Path, name: str) -> Path:
    return Path(root_dir) / name


def worktree_exists(root_dir: Path, name: str) -> bool:
    return worktree_path(root_dir, name).exists()


def create_worktree(root_dir: Path, branch: str, name: str) -> WorktreeResult:
    """Add a worktree for `branch` next to main/, branching from main's HEAD."""
    path = worktree_path(root_dir, name)
    try:
        run_git_command(
            ["-C", str(Path(root_dir) / MAIN_WORKTREE), "worktree", "add", "-b", branch, str(path)],
            timeout=120,
        )
    except SubprocessError as e:
        return WorktreeResult(
            success=False,
            path=path,
            message=f"Failed to create worktree: {e.stderr.strip() or e}",
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        return WorktreeResult(success=False, path=path, message=f"Failed to create worktree: {e}")

    logger.debug(f"Created worktree {path} on branch {branch}")
    return WorktreeResult(
        success=True,
        path=path,
        message=f"Created worktree at {path} on branch {branch}",
    )


def detect_default_branch(directory: Path) -> str:
    """Base branch for pull requests: origin's HEAD, else main."""
    try:
        result = run_git_command(
            ["-C", str(directory), "rev-parse", "--abbrev-ref", "origin/HEAD"],
            check=False,
            timeout=10,
        )
    except (subprocess.TimeoutExpired, OSError):
        return DEFAULT_BASE_BRANCH

    branch = result.stdout.strip()
    if result.returncode != 0 or not branch or branch == "origin/HEAD":
        return DEFAULT_BASE_BRANCH
    return branch.removeprefix("origin/")
