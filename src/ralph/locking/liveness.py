"""Process liveness probes used to detect stale locks.

A recorded PID can be reused by an unrelated process after the lock holder
dies, in which case a stale lock looks live. That window is accepted: the
lock is advisory and `ralph unlock` exists for manual recovery.
"""

import ctypes
import logging
import os
from typing import Protocol

logger = logging.getLogger(__name__)


class ProcessLiveness(Protocol):
    def is_alive(self, pid: int) -> bool:
        ...


class PosixProcessLiveness:
    """Signal-0 probe."""

    def is_alive(self, pid: int) -> bool:
        if pid <= 0:
            # 0 and negatives address process groups, never a single holder
            return False
        try:
            os.kill(pid, 0)
            return True
        except ProcessLookupError:
            return False
        except PermissionError:
            # Can't signal the process (different user) but it exists
            logger.debug(f"PID {pid} exists but cannot be signalled, assuming live")
            return True


class WindowsProcessLiveness:
    """OpenProcess/GetExitCodeProcess probe."""

    _PROCESS_QUERY_LIMITED_INFORMATION = 0x1000
    _STILL_ACTIVE = 259

    def is_alive(self, pid: int) -> bool:
        if pid <= 0:
            return False
        kernel32 = ctypes.windll.kernel32
        handle = kernel32.OpenProcess(self._PROCESS_QUERY_LIMITED_INFORMATION, False, pid)
        if not handle:
            return False
        try:
            exit_code = ctypes.c_ulong()
            if not kernel32.GetExitCodeProcess(handle, ctypes.byref(exit_code)):
                return True
            return exit_code.value == self._STILL_ACTIVE
        finally:
            kernel32.CloseHandle(handle)


def default_liveness() -> ProcessLiveness:
    if os.name == "nt":
        return WindowsProcessLiveness()
    return PosixProcessLiveness()
