"""Advisory, PID-checked lock over a worktree root.

The lock file lives at ``<root>/.ralph/lock`` and holds JSON::

    {"pid": 1234, "startedAt": "2026-01-01T00:00:00+00:00", "issueId": "HLN-1", "command": "run"}

A lock whose PID is not alive, or whose file cannot be parsed, is stale and
treated as absent. Nothing cleans up after a killed holder; the next
acquisition reclaims the stale file. The lock is advisory: two processes
reclaiming the same stale lock at the same moment can both succeed.
"""

import os
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from ..core.config import RALPH_DIR
from ..core.models import LockInfo
from ..errors import LockError
from ..utils.atomic_io import atomic_create_text
from ..utils.rich_logging import ContextLogger, get_logger
from .liveness import ProcessLiveness, default_liveness

LOCK_FILE = "lock"


@dataclass
class LockAcquisition:
    acquired: bool
    existing_lock: Optional[LockInfo] = None


def lock_file_path(root_dir: Path) -> Path:
    return Path(root_dir) / RALPH_DIR / LOCK_FILE


class LockManager:
    """Acquire, inspect and release the per-root workflow lock."""

    def __init__(
        self,
        liveness: Optional[ProcessLiveness] = None,
        logger: Optional[ContextLogger] = None,
    ):
        self.liveness = liveness or default_liveness()
        self.logger = get_logger(__name__, logger)

    def read_lock_info(self, root_dir: Path) -> Optional[LockInfo]:
        """Lock contents, or None if the file is missing or unparsable."""
        lock_path = lock_file_path(root_dir)
        try:
            return LockInfo.model_validate_json(lock_path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValueError, ValidationError) as e:
            self.logger.debug(f"Could not parse lock file {lock_path}: {e}")
            return None

    def _is_stale(self, info: Optional[LockInfo]) -> bool:
        if info is None:
            return True
        if not self.liveness.is_alive(info.pid):
            self.logger.debug(f"Lock is stale - process {info.pid} is no longer running")
            return True
        return False

    def acquire(self, root_dir: Path, issue_id: str, command: str) -> LockAcquisition:
        """Take the lock, reclaiming a stale one.

        Returns acquired=False with the holder's LockInfo when a live process
        already owns it, including the calling process itself.
        """
        lock_path = lock_file_path(root_dir)
        self.logger.debug(f"Attempting to acquire lock at {lock_path}")

        if lock_path.exists():
            existing = self.read_lock_info(root_dir)
            if not self._is_stale(existing):
                self.logger.debug(
                    f"Lock held by PID {existing.pid} for issue {existing.issue_id}"
                )
                return LockAcquisition(acquired=False, existing_lock=existing)
            self.logger.info(f"Removing stale lock at {lock_path}")
            self._unlink(lock_path)

        lock_path.parent.mkdir(parents=True, exist_ok=True)
        info = LockInfo(
            pid=os.getpid(),
            started_at=datetime.now(timezone.utc),
            issue_id=issue_id,
            command=command,
        )

        # Never visible empty or half-written
        if not atomic_create_text(lock_path, info.to_json()):
            self.logger.debug("Lock file appeared concurrently (race condition)")
            return LockAcquisition(acquired=False, existing_lock=self.read_lock_info(root_dir))

        self.logger.debug(f"Acquired lock for {issue_id} (PID: {info.pid})")
        return LockAcquisition(acquired=True)

    def release(self, root_dir: Path) -> None:
        """Remove the lock only if this process owns it."""
        lock_path = lock_file_path(root_dir)
        if not lock_path.exists():
            self.logger.debug("No lock file found to release")
            return

        info = self.read_lock_info(root_dir)
        if info is not None and info.pid == os.getpid():
            self._unlink(lock_path)
            self.logger.debug("Lock released")
        else:
            self.logger.debug("Lock not owned by this process, skipping release")

    def is_locked(self, root_dir: Path) -> bool:
        """True only for a live lock; stale locks count as unlocked."""
        if not lock_file_path(root_dir).exists():
            return False
        return not self._is_stale(self.read_lock_info(root_dir))

    def force_remove(self, root_dir: Path) -> bool:
        """Delete the lock regardless of owner. Returns True if a file was removed."""
        lock_path = lock_file_path(root_dir)
        if not lock_path.exists():
            return False
        self.logger.warning(f"Force removing lock at {lock_path}")
        self._unlink(lock_path)
        return True

    @contextmanager
    def hold(self, root_dir: Path, issue_id: str, command: str) -> Iterator[None]:
        """Hold the lock for the duration of the block, raising LockError if taken."""
        result = self.acquire(root_dir, issue_id, command)
        if not result.acquired:
            raise LockError(result.existing_lock)
        try:
            yield
        finally:
            self.release(root_dir)

    def _unlink(self, lock_path: Path) -> None:
        try:
            lock_path.unlink()
        except FileNotFoundError:
            pass
