"""Cross-process workflow locking."""

from .liveness import PosixProcessLiveness, ProcessLiveness, WindowsProcessLiveness, default_liveness
from .lock_manager import LockAcquisition, LockManager, lock_file_path

__all__ = [
    "LockAcquisition",
    "LockManager",
    "PosixProcessLiveness",
    "ProcessLiveness",
    "WindowsProcessLiveness",
    "default_liveness",
    "lock_file_path",
]
